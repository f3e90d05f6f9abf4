"""
Tests for the Aligner window, run on the offscreen Qt platform.
"""
import pytest
from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QCheckBox, QMessageBox

from datatip_app.aligner_widget import COL_X_CHECK, COL_Y_CHECK, AlignerWindow
from datatip_app.datatip_tool import InteractiveDataTipTool
from datatip_app.install import install_mouse_datatips_feature
from datatip_core.exporter import MODE_APPEND, read_tips_csv


@pytest.fixture
def messages(monkeypatch):
    shown = []
    monkeypatch.setattr(QMessageBox, "information", lambda parent, title, text: shown.append((title, text)))
    monkeypatch.setattr(QMessageBox, "critical", lambda parent, title, text: shown.append((title, text)))
    return shown


@pytest.fixture
def tool(qapp, demo_ax):
    tool = InteractiveDataTipTool(demo_ax, workspace={})
    tool.set_enabled(True)
    tool.create_datatips((1.0, -2.0), (1.0, 2.0))
    yield tool
    if tool.aligner is not None:
        tool.aligner.close()


@pytest.fixture
def aligner(tool):
    return tool.open_aligner()


def _row_of(model, name):
    return next(r for r in range(model.rowCount()) if model.tip_at(r).line_name == name)


def _check(model, row, col, checked=True):
    state = Qt.CheckState.Checked if checked else Qt.CheckState.Unchecked
    return model.setData(model.index(row, col), state.value, Qt.ItemDataRole.CheckStateRole)


def test_open_aligner_lists_tips(aligner, tool):
    model = aligner.tips_model
    assert isinstance(aligner, AlignerWindow)
    assert aligner.windowTitle() == "DataTip Aligner"
    assert model.rowCount() == 3
    assert [model.headerData(c, Qt.Orientation.Horizontal) for c in range(5)] == \
        ['Signal Name', 'X', 'X□', 'Y', 'Y□']
    assert model.data(model.index(0, COL_X_CHECK), Qt.ItemDataRole.CheckStateRole) == Qt.CheckState.Unchecked
    assert model.flags(model.index(0, COL_X_CHECK)) & Qt.ItemFlag.ItemIsUserCheckable
    assert not model.flags(model.index(0, 0)) & Qt.ItemFlag.ItemIsUserCheckable


def test_rows_start_in_creation_order(aligner, tool):
    model = aligner.tips_model
    assert [model.tip_at(r).line_name for r in range(model.rowCount())] == \
        [t.line_name for t in tool.registry.tips]
    assert aligner.tips_table.horizontalHeader().sortIndicatorSection() == -1


def test_header_sort_survives_refresh(aligner):
    model = aligner.tips_model
    model.sort(0, Qt.SortOrder.AscendingOrder)
    aligner.refresh_tables()
    assert [model.tip_at(r).line_name for r in range(model.rowCount())] == ['cos(t)', 'sin(t)', 'y=0.5']


def test_open_aligner_twice_reuses_window(tool, aligner):
    assert tool.open_aligner((10, 20, 600, 300)) is aligner


def test_rejects_bad_position(tool):
    with pytest.raises(ValueError):
        tool.open_aligner((1, 2, 3))


def test_new_gesture_refreshes_open_aligner(tool, aligner):
    tool.create_datatips((2.0, -1.2), (2.0, 1.2))
    assert aligner.tips_model.rowCount() == 6


def test_two_checks_align_and_log(aligner, tool):
    model = aligner.tips_model
    sin_row = _row_of(model, 'sin(t)')
    assert _check(model, sin_row, COL_Y_CHECK)
    assert model.data(model.index(sin_row, COL_Y_CHECK), Qt.ItemDataRole.CheckStateRole) == Qt.CheckState.Checked
    assert tool.registry.pending_y is not None

    _check(model, _row_of(model, 'y=0.5'), COL_Y_CHECK)

    assert tool.registry.pending_y is None
    assert aligner.log_model.rowCount() == 1
    sin_tip = model.tip_at(_row_of(model, 'sin(t)'))
    assert sin_tip.y == pytest.approx(0.5)
    for row in range(model.rowCount()):
        assert model.data(model.index(row, COL_Y_CHECK), Qt.ItemDataRole.CheckStateRole) == Qt.CheckState.Unchecked


def test_refresh_drops_deleted_tips(aligner, tool):
    tool.registry.tips[0].artist.remove()
    aligner.refresh_btn.click()
    assert aligner.tips_model.rowCount() == 2


def test_reset_button_restores_curves(aligner, tool):
    model = aligner.tips_model
    sin_tip = model.tip_at(_row_of(model, 'sin(t)'))
    original_y = sin_tip.y
    _check(model, _row_of(model, 'sin(t)'), COL_Y_CHECK)
    _check(model, _row_of(model, 'y=0.5'), COL_Y_CHECK)
    assert aligner.log_model.rowCount() == 1

    aligner.reset_btn.click()

    assert aligner.log_model.rowCount() == 0
    assert sin_tip.y == pytest.approx(original_y)


def test_save_csv_without_tips(qapp, demo_ax, messages):
    tool = InteractiveDataTipTool(demo_ax)
    aligner = tool.open_aligner()
    aligner.on_save_csv()
    aligner.close()
    assert messages == [("Nothing to export", "No datatips to save yet.")]


def test_save_csv_writes_and_appends(aligner, tmp_path, monkeypatch, messages):
    path = str(tmp_path / "tips.csv")
    monkeypatch.setattr(aligner, "_ask_save_path", lambda: path)
    aligner.on_save_csv()
    assert len(read_tips_csv(path)) == 3

    monkeypatch.setattr(aligner, "_ask_write_mode", lambda: MODE_APPEND)
    aligner.on_save_csv()
    assert len(read_tips_csv(path)) == 6
    assert messages[-1] == ("Export complete", f"Saved to: {path}")


def test_cancelled_overwrite_prompt_leaves_file(aligner, tmp_path, monkeypatch, messages):
    path = tmp_path / "tips.csv"
    path.write_text("keep me\n")
    monkeypatch.setattr(aligner, "_ask_save_path", lambda: str(path))
    monkeypatch.setattr(aligner, "_ask_write_mode", lambda: None)
    aligner.save_btn.click()
    assert path.read_text() == "keep me\n"
    assert messages == []


def test_send_to_workspace_button(aligner, tool, messages):
    aligner.to_ws_btn.click()
    assert len(tool.workspace['DataTipResults']) == 3
    assert tool.workspace['MoveHistory'] == []
    assert messages == [("Sent to Workspace", "Exported variables: DataTipResults, MoveHistory")]


def test_install_follows_qt_checkbox(qapp, demo_ax):
    checkbox = QCheckBox("Enable data tips")
    tool = install_mouse_datatips_feature(demo_ax, checkbox)
    assert not tool.enabled
    checkbox.setChecked(True)
    assert tool.enabled
    checkbox.setChecked(False)
    assert not tool.enabled


def test_main_window_builds_demo(qapp, tmp_path):
    from datatip_app.main_window import MainWindow
    from datatip_core.config import ToolConfig

    window = MainWindow(ToolConfig(str(tmp_path / "config.ini")))
    assert window.tool.enabled
    assert [ln.get_label() for ln in window.ax.lines] == ['sin(t)', 'cos(t)', 'y=0.5', 'x=π']

    window.enable_cb.setChecked(False)
    assert not window.tool.enabled
    window.close()


def test_move_log_keeps_sort_after_refresh(aligner, tool):
    model = aligner.tips_model
    _check(model, _row_of(model, 'sin(t)'), COL_Y_CHECK)
    _check(model, _row_of(model, 'y=0.5'), COL_Y_CHECK)
    _check(model, _row_of(model, 'cos(t)'), COL_Y_CHECK)
    _check(model, _row_of(model, 'y=0.5'), COL_Y_CHECK)
    deltas = [rec.delta for rec in tool.registry.move_history]
    assert len(deltas) == 2 and deltas[0] > deltas[1]

    log = aligner.log_model
    log.sort(0, Qt.SortOrder.AscendingOrder)
    aligner.refresh_btn.click()

    shown = [log.data(log.index(r, 0)) for r in range(log.rowCount())]
    assert shown == [f"{d:.6g}" for d in sorted(deltas)]


def test_closing_aligner_saves_geometry(qapp, demo_ax, tmp_path):
    from datatip_core.config import ToolConfig

    path = str(tmp_path / "settings.ini")
    tool = InteractiveDataTipTool(demo_ax, config=ToolConfig(path))
    aligner = tool.open_aligner((50, 60, 500, 300))
    aligner.close()
    assert ToolConfig(path).aligner_geometry() == (50, 60, 500, 300)
