"""
Sequential sampling loop: seek, estimate the scroll against the previously
retained frame, append the revealed strip, repeat; then add the footer once.
"""
from __future__ import annotations
import enum
import logging
from typing import Callable, Protocol

from .compositor import Compositor
from .config import CropMask, Frame, OffsetResult, StitchConfig
from .errors import StitchCancelled
from .io_video import FrameSource
from .offset import OffsetEstimator

logger = logging.getLogger(__name__)

class CancelSignal(Protocol):
    def is_set(self) -> bool: ...

class State(enum.Enum):
    IDLE = "idle"
    SAMPLING = "sampling"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

class _Progress:
    """Forwards progress clamped to [0, 100] and never lower than the last value."""
    def __init__(self, callback: Callable[[float], None] | None):
        self.callback = callback
        self.value = 0.0

    def __call__(self, pct: float) -> None:
        self.value = max(self.value, min(100.0, max(0.0, float(pct))))
        if self.callback:
            self.callback(self.value)

class StitchPipeline:
    def __init__(self, cfg: StitchConfig | None = None):
        self.cfg = cfg or StitchConfig()
        self.estimator = OffsetEstimator(self.cfg)
        self.compositor = Compositor()
        self.state = State.IDLE
        self.history: list[tuple[float, OffsetResult]] = []

    def sample_times(self, duration: float) -> list[float]:
        """Timestamps after t=0, one per sample interval, strictly before the end."""
        step = self.cfg.sample_interval
        if step <= 0:
            raise ValueError(f"Sample interval must be positive, got {step}.")
        times = []
        i = 1
        while i * step < duration - 1e-9:
            times.append(i * step)
            i += 1
        return times

    def _seek(self, source: FrameSource, t: float, cancel: CancelSignal | None) -> Frame:
        if cancel is not None and cancel.is_set():
            raise StitchCancelled(f"Cancelled before seeking {t:.2f}s.")
        return source.seek(t)

    def run(self, source: FrameSource, crop_mask: CropMask | None = None,
            on_progress: Callable[[float], None] | None = None,
            cancel: CancelSignal | None = None) -> bytes:
        """
        Stitch the whole source and return the result as PNG bytes.

        Raises ConfigError for a crop mask that does not fit the frame,
        DecodeError, EstimateError or CompositeError from the failing stage,
        and StitchCancelled when `cancel` is set.
        """
        crop = crop_mask or CropMask()
        progress = _Progress(on_progress)
        self.history = []
        try:
            meta = source.metadata()
            crop.validate(meta.height)
            self.state = State.SAMPLING

            prev = self._seek(source, 0.0, cancel)
            self.compositor.init(prev, crop.bottom)
            progress(0.0)

            for t in self.sample_times(meta.duration):
                curr = self._seek(source, t, cancel)
                result = self.estimator.find_offset(prev, curr, crop.top, crop.bottom)
                self.history.append((t, result))
                logger.debug("t=%.2fs offset=%d score=%s", t, result.offset, result.score)
                if result.offset > 0:
                    self.compositor.append(curr, result.offset, crop.bottom)
                prev = curr
                progress(t / meta.duration * 100)

            self.state = State.FINALIZING
            self.compositor.finalize_footer(prev, crop.bottom)
            png = self.compositor.encode(".png")
        except StitchCancelled:
            self.state = State.CANCELLED
            self.compositor.release()
            source.release()
            raise
        except Exception:
            self.state = State.FAILED
            self.compositor.release()
            raise

        progress(100.0)
        self.state = State.DONE
        logger.info("Stitched %dx%d from %d samples", self.compositor.width, self.compositor.height,
                    len(self.history) + 1)
        return png

def stitch_video(source: FrameSource, crop_mask: CropMask | None = None,
                 on_progress: Callable[[float], None] | None = None,
                 cfg: StitchConfig | None = None, cancel: CancelSignal | None = None) -> bytes:
    return StitchPipeline(cfg).run(source, crop_mask, on_progress, cancel)
