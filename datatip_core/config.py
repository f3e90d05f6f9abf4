"""
INI-backed settings for the datatip tool.
"""
import configparser
import os
from typing import Tuple

DEFAULT_CONFIG_FILE = "config.ini"

DEFAULTS = {
    'General': {
        'export_dir': '',
        'log_level': 'INFO',
        'log_file': '',
    },
    'Preview': {
        'color': 'r',
        'linestyle': '--',
        'linewidth': '3',
        'marker': 'o',
        'markersize': '6',
    },
    'Aligner': {
        'x': '120',
        'y': '100',
        'width': '720',
        'height': '360',
    },
}


class ToolConfig:
    """Settings read from config.ini; missing sections and keys fall back to DEFAULTS."""

    def __init__(self, config_file: str = DEFAULT_CONFIG_FILE):
        self.config_file = config_file
        self.config = configparser.ConfigParser()
        self.load_config()

    def load_config(self):
        self.config.read_dict(DEFAULTS)
        if os.path.exists(self.config_file):
            self.config.read(self.config_file)

    def save_config(self):
        with open(self.config_file, 'w') as f:
            self.config.write(f)

    @property
    def export_dir(self) -> str:
        return self.config['General'].get('export_dir', '') or os.getcwd()

    @property
    def log_level(self) -> str:
        return self.config['General'].get('log_level', 'INFO').upper()

    @property
    def log_file(self) -> str:
        return self.config['General'].get('log_file', '')

    def preview_style(self) -> dict:
        """Keyword arguments for the gesture preview line."""
        sec = self.config['Preview']
        return {
            'color': sec.get('color', 'r'),
            'linestyle': sec.get('linestyle', '--'),
            'linewidth': sec.getfloat('linewidth', 3.0),
            'marker': sec.get('marker', 'o'),
            'markersize': sec.getfloat('markersize', 6.0),
        }

    def aligner_geometry(self) -> Tuple[int, int, int, int]:
        sec = self.config['Aligner']
        return (sec.getint('x', 120), sec.getint('y', 100),
                sec.getint('width', 720), sec.getint('height', 360))

    def set_aligner_geometry(self, geometry: Tuple[int, int, int, int]):
        x, y, w, h = (int(v) for v in geometry)
        self.config['Aligner'] = {'x': str(x), 'y': str(y), 'width': str(w), 'height': str(h)}
