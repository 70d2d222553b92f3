from __future__ import annotations
import logging
from dataclasses import replace
from typing import Protocol, Sequence

import cv2
import numpy as np

from .config import Frame, VideoMetadata
from .errors import DecodeError

logger = logging.getLogger(__name__)

class FrameSource(Protocol):
    def metadata(self) -> VideoMetadata: ...
    def seek(self, timestamp: float) -> Frame: ...
    def release(self) -> None: ...

def to_rgba(img: np.ndarray, bgr: bool = True) -> np.ndarray:
    """Normalise a decoded image (gray, BGR/RGB or BGRA/RGBA) to a contiguous RGBA uint8 array."""
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    channels = img.shape[2]
    if channels == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA if bgr else cv2.COLOR_RGB2RGBA)
    if channels == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA) if bgr else img.copy()
    raise DecodeError(f"Unsupported channel count: {channels}")

class VideoFrameSource:
    """
    Timestamp-addressed frames from a video file.
    Decodes forward for sequential access and reopens the stream for backward
    seeks, since not all backends support accurate random seeks. Streams that
    do not report a frame count (common for WebM/Matroska) are measured by
    decoding through once; seeks past the real end return the last frame.
    """
    def __init__(self, path: str):
        self.path = path
        self.cap = self._open()
        self._next_idx = 0
        self._last: np.ndarray | None = None
        self._last_idx = -1
        self._meta = self._read_metadata()

    def _open(self):
        cap = cv2.VideoCapture(self.path)
        if not cap.isOpened():
            raise DecodeError(f"Could not open video: {self.path}")
        return cap

    def _rewind(self):
        self.cap.release()
        self.cap = self._open()
        self._next_idx = 0

    def _read_metadata(self) -> VideoMetadata:
        w = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        h = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        fps = float(self.cap.get(cv2.CAP_PROP_FPS) or 0.0)
        count = int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        if w <= 0 or h <= 0:
            raise DecodeError(f"[{self.path}] Unusable frame size {w}x{h}.")
        if fps <= 0:
            logger.warning("[%s] No FPS reported, assuming 30", self.path)
            fps = 30.0
        if count <= 0:
            count = self._count_frames()
            if count <= 0:
                raise DecodeError(f"[{self.path}] No decodable frames.")
        self._frame_count = count
        return VideoMetadata(width=w, height=h, duration=count / fps, fps=fps)

    def _count_frames(self) -> int:
        count = 0
        while self.cap.grab():
            count += 1
        logger.info("[%s] Frame count not reported, measured %d frames", self.path, count)
        self._rewind()
        return count

    def _truncate(self, count: int) -> None:
        """The stream ended after `count` frames, earlier than its metadata claimed."""
        logger.warning("[%s] Stream ends at frame %d (reported %d)", self.path, count, self._frame_count)
        self._frame_count = count
        self._meta = replace(self._meta, duration=count / self._meta.fps)

    def metadata(self) -> VideoMetadata:
        return self._meta

    def _index_for(self, timestamp: float) -> int:
        t = min(max(0.0, float(timestamp)), self._meta.duration)
        return min(int(round(t * self._meta.fps)), self._frame_count - 1)

    def seek(self, timestamp: float) -> Frame:
        idx = self._index_for(timestamp)
        if self._last is not None and idx == self._last_idx:
            return Frame(to_rgba(self._last), timestamp=idx / self._meta.fps)
        if idx < self._next_idx:
            logger.debug("[%s] Rewinding to reach frame %d", self.path, idx)
            self._rewind()
        # Skip intermediate frames without a full decode.
        while self._next_idx < idx:
            if not self.cap.grab():
                return self._seek_past_end(timestamp)
            self._next_idx += 1
        ok, f = self.cap.read()
        if not ok or f is None:
            return self._seek_past_end(timestamp)
        self._next_idx += 1
        self._last, self._last_idx = f, idx
        return Frame(to_rgba(f), timestamp=idx / self._meta.fps)

    def _seek_past_end(self, timestamp: float) -> Frame:
        if self._next_idx == 0:
            raise DecodeError(f"[{self.path}] Failed to decode the first frame.")
        self._truncate(self._next_idx)
        return self.seek(timestamp)

    def release(self):
        self._last = None
        self.cap.release()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.release()

class ArrayFrameSource:
    """In-memory frames (RGB or RGBA, RGB channel order) played back at a fixed fps."""
    def __init__(self, frames: Sequence[np.ndarray], fps: float = 10.0):
        if not frames:
            raise DecodeError("No frames supplied.")
        if fps <= 0:
            raise DecodeError(f"Invalid fps: {fps}")
        self.frames = [to_rgba(f, bgr=False) for f in frames]
        shapes = {f.shape for f in self.frames}
        if len(shapes) != 1:
            raise DecodeError(f"Frames differ in size: {sorted(shapes)}")
        self.fps = fps
        h, w = self.frames[0].shape[:2]
        self._meta = VideoMetadata(width=w, height=h, duration=len(self.frames) / fps, fps=fps)
        self.released = False

    def metadata(self) -> VideoMetadata:
        return self._meta

    def seek(self, timestamp: float) -> Frame:
        if self.released:
            raise DecodeError("Frame source already released.")
        t = min(max(0.0, float(timestamp)), self._meta.duration)
        idx = min(int(round(t * self.fps)), len(self.frames) - 1)
        return Frame(self.frames[idx], timestamp=t)

    def release(self):
        self.released = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.release()
