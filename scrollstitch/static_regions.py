"""
Fixed header/footer detection.

Samples a few frames spread over the middle 80% of the video (skipping
fade-in/out) and keeps, for every row, the largest colour change seen between
adjacent samples. Rows that never changed by more than the noise threshold,
counted inwards from the top and bottom edges, form the static bands.
"""
from __future__ import annotations
import logging

import numpy as np

from .config import StaticRegion, StitchConfig
from .diff_core import leading_static, row_signal, sample_columns
from .io_video import FrameSource

logger = logging.getLogger(__name__)

class StaticRegionDetector:
    def __init__(self, cfg: StitchConfig | None = None):
        self.cfg = cfg or StitchConfig()

    def sample_times(self, duration: float, sample_count: int) -> list[float]:
        if sample_count <= 1:
            return [duration * 0.5]
        return [duration * 0.1 + duration * 0.8 * i / (sample_count - 1) for i in range(sample_count)]

    def row_changes(self, frames: list[np.ndarray]) -> np.ndarray:
        """Worst-case per-row change over all consecutive frame pairs."""
        h, w = frames[0].shape[:2]
        cols = sample_columns(w, self.cfg.columns)
        worst = np.zeros(h, dtype=np.float64)
        for prev, curr in zip(frames, frames[1:]):
            np.maximum(worst, row_signal(prev, curr, cols), out=worst)
        return worst

    def bands(self, worst: np.ndarray) -> StaticRegion:
        h = worst.shape[0]
        static = worst <= self.cfg.noise_threshold
        # Top scan covers y < h/2, bottom scan covers y > h/2, so the bands never meet.
        top = leading_static(static[: (h + 1) // 2])
        bottom = leading_static(static[h // 2 + 1:][::-1])
        return StaticRegion(top_height=top, bottom_height=bottom)

    def detect(self, source: FrameSource, sample_count: int | None = None) -> StaticRegion:
        n = self.cfg.detect_samples if sample_count is None else sample_count
        meta = source.metadata()
        if n < 2:
            logger.info("Static region detection needs at least 2 samples (got %d)", n)
            return StaticRegion()
        frames = [source.seek(t).pixels for t in self.sample_times(meta.duration, n)]
        region = self.bands(self.row_changes(frames))
        logger.info("Detected static bands: top=%dpx bottom=%dpx", region.top_height, region.bottom_height)
        return region

def detect_static_regions(source: FrameSource, sample_count: int = 5, cfg: StitchConfig | None = None) -> StaticRegion:
    return StaticRegionDetector(cfg).detect(source, sample_count)
