"""
Entry point for the Interactive DataTip Tool demo.
"""
import argparse
import sys
from PyQt6.QtWidgets import QApplication

from datatip_core.config import ToolConfig, DEFAULT_CONFIG_FILE
from datatip_core.logs import setup_logging
from datatip_app.main_window import MainWindow


def main(argv=None):
    """Initialize and run the application."""
    parser = argparse.ArgumentParser(description="Draw lines over a plot to place datatips.")
    parser.add_argument('--config', default=DEFAULT_CONFIG_FILE, help="settings file (INI)")
    parser.add_argument('--aligner', action='store_true', help="open the Aligner window at start")
    args = parser.parse_args(argv)

    config = ToolConfig(args.config)
    setup_logging(config.log_level, config.log_file or None)

    app = QApplication(sys.argv[:1])
    app.setApplicationName("Interactive DataTip Tool")

    window = MainWindow(config)
    window.show()
    if args.aligner:
        window.tool.open_aligner()

    sys.exit(app.exec())


if __name__ == '__main__':
    main()
