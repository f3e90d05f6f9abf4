"""
Tests for CSV export, append handling and workspace export.
"""
import csv
from datetime import datetime

import pytest

from datatip_core.exporter import (ExportError, default_csv_path, read_tips_csv, write_tips_csv,
                                   send_to_workspace, workspace_payload, MODE_APPEND)
from datatip_core.models import DataTip, MoveRecord, TipRegistry


def _tip(name, index, x, y):
    return DataTip(line=None, line_name=name, index=index, x=x, y=y)


def _rows(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.reader(f))


def test_default_csv_path_is_timestamped(tmp_path):
    path = default_csv_path(str(tmp_path), now=datetime(2024, 5, 1, 13, 45, 1))
    assert path == str(tmp_path / "datatips_2024-05-01_134501.csv")


def test_write_overwrite(tmp_path):
    path = tmp_path / "tips.csv"
    path.write_text("old content\n")
    n = write_tips_csv([_tip('sin(t)', 3, 0.5, 0.25), _tip('cos(t)', 7, 1.5, -1.0)], str(path))
    assert n == 2
    assert _rows(path) == [
        ['SignalName', 'Index', 'X', 'Y'],
        ['sin(t)', '3', '0.5', '0.25'],
        ['cos(t)', '7', '1.5', '-1.0'],
    ]


def test_append_keeps_existing_rows_first(tmp_path):
    path = str(tmp_path / "tips.csv")
    write_tips_csv([_tip('a', 0, 1.0, 2.0)], path)
    n = write_tips_csv([_tip('b', 1, 3.0, 4.0)], path, MODE_APPEND)
    assert n == 2
    assert read_tips_csv(path) == [
        {'SignalName': 'a', 'Index': 0, 'X': 1.0, 'Y': 2.0},
        {'SignalName': 'b', 'Index': 1, 'X': 3.0, 'Y': 4.0},
    ]


def test_append_to_foreign_file_replaces_it(tmp_path):
    path = tmp_path / "tips.csv"
    path.write_text("name,value\nfoo,1\n")
    assert write_tips_csv([_tip('b', 1, 3.0, 4.0)], str(path), MODE_APPEND) == 1
    assert _rows(path)[0] == ['SignalName', 'Index', 'X', 'Y']


def test_append_to_missing_file_just_writes(tmp_path):
    path = str(tmp_path / "new.csv")
    assert write_tips_csv([_tip('b', 1, 3.0, 4.0)], path, MODE_APPEND) == 1


def test_read_rejects_bad_rows(tmp_path):
    path = tmp_path / "tips.csv"
    path.write_text("SignalName,Index,X,Y\nsin,notanint,1,2\n")
    with pytest.raises(ValueError):
        read_tips_csv(str(path))


def test_unknown_mode_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        write_tips_csv([], str(tmp_path / "x.csv"), 'merge')


def test_unwritable_path_raises_export_error(tmp_path):
    with pytest.raises(ExportError):
        write_tips_csv([_tip('a', 0, 1.0, 2.0)], str(tmp_path / "missing" / "x.csv"))


def test_workspace_export():
    registry = TipRegistry()
    registry.tips.append(_tip('sin(t)', 4, 0.25, 0.75))
    namespace = {}

    names = send_to_workspace(registry, namespace)

    assert names == ['DataTipResults', 'MoveHistory']
    assert namespace['DataTipResults'] == [{'SignalName': 'sin(t)', 'Index': 4, 'X': 0.25, 'Y': 0.75}]
    assert namespace['MoveHistory'] == []


def test_workspace_payload_includes_moves():
    registry = TipRegistry()
    when = datetime(2024, 1, 2, 3, 4, 5)
    registry.move_history.append(MoveRecord(time=when, signal='cos(t)', axis='Y', delta=0.5))
    payload = workspace_payload(registry)
    assert payload['MoveHistory'] == [{'Time': when, 'Signal': 'cos(t)', 'Axis': 'Y', 'Delta': 0.5}]
