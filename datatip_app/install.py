"""
Wire the mouse-based datatip feature into an existing GUI.

Usage:
    tool = install_mouse_datatips_feature(ax)
    # or, to follow a checkbox's state:
    tool = install_mouse_datatips_feature(ax, checkbox)

`checkbox` may be a PyQt6 QCheckBox or a matplotlib CheckButtons widget
(its first box). Keep a reference to the returned tool for as long as the
feature should stay active.
"""
import logging
from typing import Optional

from matplotlib.axes import Axes

from datatip_core.config import ToolConfig
from .datatip_tool import InteractiveDataTipTool

logger = logging.getLogger(__name__)


def install_mouse_datatips_feature(ax, checkbox=None, config: Optional[ToolConfig] = None,
                                   workspace: Optional[dict] = None) -> InteractiveDataTipTool:
    if not isinstance(ax, Axes):
        raise ValueError("Provide a valid axes handle.")

    try:
        tool = InteractiveDataTipTool(ax, config=config, workspace=workspace)
    except Exception as e:
        raise RuntimeError(f"Could not create the datatip tool: {e}") from e

    if checkbox is not None:
        tool.set_enabled(_checkbox_value(checkbox))
        if hasattr(checkbox, 'toggled'):
            checkbox.toggled.connect(tool.set_enabled)
        elif hasattr(checkbox, 'on_clicked'):
            checkbox.on_clicked(lambda _label: tool.set_enabled(_checkbox_value(checkbox)))
        else:
            raise ValueError("Checkbox must be a QCheckBox or matplotlib CheckButtons")
        logger.debug("Datatip tool bound to checkbox %r", checkbox)

    return tool


def _checkbox_value(checkbox) -> bool:
    if hasattr(checkbox, 'isChecked'):
        return bool(checkbox.isChecked())
    return bool(checkbox.get_status()[0])
