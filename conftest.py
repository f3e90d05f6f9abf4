"""
Shared pytest setup: headless Qt and matplotlib, plus demo-plot fixtures.
"""
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pytest
from matplotlib.figure import Figure


@pytest.fixture
def ax():
    fig = Figure()
    return fig.add_subplot(111)


@pytest.fixture
def demo_ax(ax):
    """sin, cos, y=0.5 and x=pi over t in [0, 4pi], 200 samples each."""
    t = np.linspace(0, 4 * np.pi, 200)
    ax.plot(t, np.sin(t), label='sin(t)')
    ax.plot(t, np.cos(t), label='cos(t)')
    ax.plot(t, 0.5 * np.ones_like(t), label='y=0.5')
    ax.plot(np.pi * np.ones_like(t), np.linspace(-1.5, 1.5, len(t)), label='x=π')
    return ax


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture(autouse=True)
def _work_in_tmp(tmp_path, monkeypatch):
    """Keep config.ini and default CSV paths out of the source tree."""
    monkeypatch.chdir(tmp_path)
