"""
Canonical export columns and validation helpers for datatip tables.
"""
from typing import Dict, List, Any

# Canonical shapes (documented)
TIP_COLUMNS = ('SignalName', 'Index', 'X', 'Y')


def is_tip_header(header: List[str]) -> bool:
    return tuple(h.strip() for h in header) == TIP_COLUMNS


def is_tip_record(obj: Dict[str, Any]) -> bool:
    try:
        int(obj['Index'])
        float(obj['X'])
        float(obj['Y'])
        return 'SignalName' in obj
    except (KeyError, TypeError, ValueError):
        return False


def normalize_tip_record(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce a record read back from CSV to export types."""
    return {
        'SignalName': str(obj['SignalName']),
        'Index': int(obj['Index']),
        'X': float(obj['X']),
        'Y': float(obj['Y'])
    }


def validate_tip_records(records: List[Dict[str, Any]]) -> List[str]:
    """Return a list of validation error messages; empty list means OK."""
    errs = []
    for row, rec in enumerate(records, start=1):
        if not isinstance(rec, dict):
            errs.append(f'Row {row}: not a record')
        elif not is_tip_record(rec):
            errs.append(f'Row {row}: expected {", ".join(TIP_COLUMNS)}')
    return errs
