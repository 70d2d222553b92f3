"""
Shared synthetic fixtures.

Frames are cut from a tall random-noise canvas so that every row is textured
and every scroll offset is known exactly. Optional header/footer arrays are
pasted over each frame to simulate fixed overlays.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def make_canvas(width: int, height: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


def cut_frame(canvas, y, frame_height, header=None, footer=None) -> np.ndarray:
    frame = canvas[y: y + frame_height].copy()
    if header is not None:
        frame[: header.shape[0]] = header
    if footer is not None:
        frame[frame_height - footer.shape[0]:] = footer
    return frame


def make_scroll_frames(canvas, frame_height, step, count, header=None, footer=None):
    return [cut_frame(canvas, i * step, frame_height, header, footer) for i in range(count)]


@pytest.fixture
def canvas_factory():
    return make_canvas


@pytest.fixture
def scroll_frames():
    return make_scroll_frames


@pytest.fixture
def band():
    """Fixed overlay band of the given height and width."""
    def _band(height, width, seed=99):
        return make_canvas(width, height, seed)
    return _band
