from __future__ import annotations
import numpy as np

def sample_columns(width: int, fractions) -> np.ndarray:
    """Fixed x positions (floor of width * fraction) that the sparse comparisons read."""
    cols = np.array([int(np.floor(width * f)) for f in fractions], dtype=np.intp)
    return np.clip(cols, 0, max(0, width - 1))

def rgb_absdiff(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    |dR|+|dG|+|dB| per pixel for RGBA (or RGB) sample arrays of broadcastable shape.
    Alpha is ignored. Returns int32 with the channel axis summed away.
    """
    d = np.abs(a[..., :3].astype(np.int16) - b[..., :3].astype(np.int16))
    return d.sum(axis=-1, dtype=np.int32)

def row_signal(a: np.ndarray, b: np.ndarray, cols: np.ndarray) -> np.ndarray:
    """
    Per-row colour change between two frames, averaged over the sampled columns.
    Shape (H,), float64.
    """
    return rgb_absdiff(a[:, cols], b[:, cols]).sum(axis=1) / len(cols)

def leading_static(static: np.ndarray) -> int:
    """Number of leading True entries."""
    if static.size == 0 or static.all():
        return int(static.size)
    return int(np.argmin(static))
