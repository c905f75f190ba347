"""
Pytest configuration for ModelSketch solver tests.

Puts src/ on sys.path so the package imports without installation, and
keeps the static Logger clean between tests.
"""

import sys
import os

import pytest

# Add src to sys.path for imports
_src_root = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if _src_root not in sys.path:
    sys.path.insert(0, _src_root)

from modelsketch.utils.logger.logger import Logger  # noqa: E402


FRAME_DT = 1.0 / 60.0


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    Logger.reset()


@pytest.fixture
def run_frames():
    """Return a helper calling target.update(dt) `frames` times (graph, meta graph or model)."""
    def _run(target, frames, dt=FRAME_DT):
        for _ in range(frames):
            target.update(dt)
    return _run
