from __future__ import annotations
import logging

import cv2
import numpy as np

from .config import Frame
from .errors import CompositeError, OutOfMemoryError

logger = logging.getLogger(__name__)

class Compositor:
    """
    Append-only RGBA canvas.

    Rows are committed top to bottom and never rewritten. Storage grows by
    doubling its row capacity; growth copies committed rows unchanged.
    """
    def __init__(self):
        self._buf: np.ndarray | None = None
        self.height = 0
        self.width = 0
        self.frame_height = 0

    @property
    def capacity(self) -> int:
        return 0 if self._buf is None else self._buf.shape[0]

    def _allocate(self, rows: int) -> np.ndarray:
        try:
            return np.empty((rows, self.width, 4), dtype=np.uint8)
        except (MemoryError, ValueError) as e:
            raise OutOfMemoryError(f"Could not allocate a {self.width}x{rows} canvas: {e}") from e

    def _reserve(self, rows: int) -> None:
        if rows <= self.capacity:
            return
        buf = self._allocate(max(rows, 2 * self.capacity))
        if self._buf is not None:
            buf[: self.height] = self._buf[: self.height]
        self._buf = buf
        logger.debug("Canvas capacity grown to %d rows", buf.shape[0])

    def _commit(self, rows: np.ndarray) -> None:
        n = rows.shape[0]
        self._reserve(self.height + n)
        self._buf[self.height: self.height + n] = rows
        self.height += n

    def _check_frame(self, frame: Frame) -> None:
        if self._buf is None:
            raise CompositeError("Compositor used before init().")
        if frame.width != self.width or frame.height != self.frame_height:
            raise CompositeError(
                f"Frame size mismatch: canvas expects {self.width}x{self.frame_height}, got {frame.width}x{frame.height}."
            )

    def init(self, frame: Frame, crop_bottom: int = 0) -> None:
        h = frame.height
        if not 0 <= crop_bottom < h:
            raise CompositeError(f"crop_bottom={crop_bottom} outside frame height {h}.")
        self.width, self.frame_height = frame.width, h
        self._buf, self.height = None, 0
        self._commit(frame.pixels[: h - crop_bottom])

    def append(self, frame: Frame, offset: int, crop_bottom: int = 0) -> None:
        """
        Commit the `offset` rows of `frame` that sit just above the footer crop.
        Offsets larger than the uncropped content height are not clamped and
        pull rows from the header band.
        """
        self._check_frame(frame)
        if offset <= 0:
            return
        h = frame.height
        start = h - offset - crop_bottom
        if start < 0:
            raise CompositeError(f"Offset {offset} with crop_bottom={crop_bottom} exceeds frame height {h}.")
        self._commit(frame.pixels[start: h - crop_bottom])

    def finalize_footer(self, frame: Frame, crop_bottom: int = 0) -> None:
        self._check_frame(frame)
        if crop_bottom > 0:
            self._commit(frame.pixels[frame.height - crop_bottom:])

    def _committed(self) -> np.ndarray:
        if self._buf is None:
            raise CompositeError("Nothing composited yet.")
        return self._buf[: self.height]

    @property
    def image(self) -> np.ndarray:
        """Read-only view of the committed rows (RGBA)."""
        view = self._committed()
        view.setflags(write=False)
        return view

    def encode(self, ext: str = ".png") -> bytes:
        ok, data = cv2.imencode(ext, cv2.cvtColor(self._committed(), cv2.COLOR_RGBA2BGRA))
        if not ok:
            raise CompositeError(f"Failed to encode {self.width}x{self.height} image as {ext}.")
        return data.tobytes()

    def release(self) -> None:
        self._buf = None
        self.height = 0
