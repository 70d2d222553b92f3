"""
Vertical scroll estimation between two frames.

A signature band is taken from the previous frame just above the footer crop
and searched for, upwards, in the current frame. Only a sparse grid is
compared: three fixed columns, every `sample_stride`-th row of the band, and
every `search_stride`-th candidate position. Each candidate's score is its
colour dissimilarity plus a penalty proportional to the offset, so among
near-equal matches (repeating lists, cards) the smallest scroll wins.
"""
from __future__ import annotations
import logging

import numpy as np

from .config import CropMask, Frame, OffsetResult, StitchConfig
from .diff_core import rgb_absdiff, sample_columns
from .errors import EstimateError

logger = logging.getLogger(__name__)

class OffsetEstimator:
    def __init__(self, cfg: StitchConfig | None = None):
        self.cfg = cfg or StitchConfig()

    def _ensure_same_size(self, a: np.ndarray, b: np.ndarray):
        if a.shape != b.shape:
            raise EstimateError(f"Frame size mismatch: prev={a.shape[:2]} vs curr={b.shape[:2]}.")

    def search_window(self, height: int, crop_top: int, crop_bottom: int):
        """
        Returns (signature_y, search_height, candidate scan_y values), or None
        when the uncropped area is too small to hold a usable signature.
        """
        cfg = self.cfg
        search_height = int(np.floor((height - crop_top - crop_bottom) * cfg.signature_fraction))
        if search_height < cfg.min_search_height:
            return None
        signature_y = height - crop_bottom - search_height
        max_scroll = int(np.floor(height * cfg.max_scroll_fraction))
        min_scan_y = max(crop_top, signature_y - max_scroll)
        scan_ys = np.arange(signature_y, min_scan_y - 1, -cfg.search_stride, dtype=np.intp)
        return signature_y, search_height, scan_ys

    def scores(self, prev: np.ndarray, curr: np.ndarray, signature_y: int,
               search_height: int, scan_ys: np.ndarray) -> np.ndarray:
        """Penalised score for every candidate in scan_ys (same order)."""
        cols = sample_columns(prev.shape[1], self.cfg.columns)
        ks = np.arange(0, search_height, self.cfg.sample_stride, dtype=np.intp)

        signature = prev[signature_y + ks][:, cols]              # K x C x 4
        rows = scan_ys[:, None] + ks[None, :]                    # S x K
        candidates = curr[rows[:, :, None], cols[None, None, :]]  # S x K x C x 4

        dissimilarity = rgb_absdiff(candidates, signature[None]).sum(axis=(1, 2))
        distance = signature_y - scan_ys
        return dissimilarity + distance * self.cfg.distance_penalty

    def find_offset(self, prev: Frame, curr: Frame, crop_top: int = 0, crop_bottom: int = 0) -> OffsetResult:
        a, b = prev.pixels, curr.pixels
        self._ensure_same_size(a, b)
        CropMask(crop_top, crop_bottom).validate(a.shape[0])

        window = self.search_window(a.shape[0], crop_top, crop_bottom)
        if window is None:
            return OffsetResult()
        signature_y, search_height, scan_ys = window

        scores = self.scores(a, b, signature_y, search_height, scan_ys)
        best = int(np.argmin(scores))  # first minimum = smallest offset on ties
        best_score = float(scores[best])
        offset = int(signature_y - scan_ys[best])

        if best_score > self.cfg.reject_threshold:
            logger.debug("No confident match (score %.0f > %.0f)", best_score, self.cfg.reject_threshold)
            return OffsetResult(offset=0, score=best_score, rejected=True)
        return OffsetResult(offset=offset, score=best_score)
