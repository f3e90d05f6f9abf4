"""
Exporter utility to write datatips to CSV and to an interactive namespace.
- Tips CSV: header `SignalName,Index,X,Y`, one row per tip in registry order
- Workspace: `DataTipResults` (tip records) and `MoveHistory` (move records)
"""
import csv
import logging
import os
from datetime import datetime
from typing import Dict, Any, Iterable, List, Optional

from .models import TipRegistry, DataTip
from .schema import TIP_COLUMNS, is_tip_header, normalize_tip_record, validate_tip_records

logger = logging.getLogger(__name__)

MODE_OVERWRITE = 'overwrite'
MODE_APPEND = 'append'

WORKSPACE_TIPS = 'DataTipResults'
WORKSPACE_MOVES = 'MoveHistory'


class ExportError(Exception):
    """Raised when datatips cannot be written."""


def default_csv_path(directory: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Timestamped CSV name, e.g. datatips_2024-05-01_134501.csv."""
    stamp = (now or datetime.now()).strftime('%Y-%m-%d_%H%M%S')
    return os.path.join(directory or os.getcwd(), f"datatips_{stamp}.csv")


def read_tips_csv(path: str) -> List[Dict[str, Any]]:
    """Read a tips table previously written by write_tips_csv."""
    with open(path, 'r', newline='', encoding='utf-8') as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if header is None or not is_tip_header(header):
            raise ValueError(f"{path} is not a datatip table")
        records = [dict(zip(TIP_COLUMNS, row)) for row in reader if row]
    errs = validate_tip_records(records)
    if errs:
        raise ValueError(f"{path}: {errs[0]}")
    return [normalize_tip_record(r) for r in records]


def write_tips_csv(tips: Iterable[DataTip], path: str, mode: str = MODE_OVERWRITE) -> int:
    """
    Write tips to path. In append mode rows already in the file are kept
    ahead of the new ones; a file that is not a tips table is replaced.
    Returns the number of rows written.
    """
    if mode not in (MODE_OVERWRITE, MODE_APPEND):
        raise ValueError(f"Unknown write mode: {mode!r}")

    rows = []
    if mode == MODE_APPEND and os.path.exists(path):
        try:
            rows = read_tips_csv(path)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning("Could not read %s for append, overwriting: %s", path, e)
            rows = []
    rows.extend(t.to_record() for t in tips)

    try:
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=TIP_COLUMNS)
            writer.writeheader()
            for r in rows:
                writer.writerow(r)
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e

    logger.info("Wrote %d datatip row(s) to %s", len(rows), path)
    return len(rows)


def workspace_payload(registry: TipRegistry) -> Dict[str, List[Dict[str, Any]]]:
    """Tip and move records keyed by the names they are exported under."""
    return {
        WORKSPACE_TIPS: [t.to_record() for t in registry.tips],
        WORKSPACE_MOVES: [m.to_record() for m in registry.move_history]
    }


def send_to_workspace(registry: TipRegistry, namespace: Optional[dict] = None) -> List[str]:
    """Assign the export payload into namespace (default: the __main__ module)."""
    if namespace is None:
        import __main__
        namespace = vars(__main__)
    payload = workspace_payload(registry)
    namespace.update(payload)
    logger.info("Exported %d tip(s) and %d move(s) to the workspace",
                len(payload[WORKSPACE_TIPS]), len(payload[WORKSPACE_MOVES]))
    return list(payload)
