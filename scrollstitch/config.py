from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from .errors import ConfigError

@dataclass
class CropMask:
    top: int = 0                 # rows hidden by a fixed header
    bottom: int = 0              # rows hidden by a fixed footer

    def validate(self, height: int) -> None:
        if self.top < 0 or self.bottom < 0:
            raise ConfigError(f"Crop values must be non-negative (top={self.top}, bottom={self.bottom}).")
        if self.top + self.bottom >= height:
            raise ConfigError(
                f"Crop top+bottom ({self.top}+{self.bottom}) must be smaller than frame height {height}."
            )

@dataclass(frozen=True)
class StaticRegion:
    top_height: int = 0
    bottom_height: int = 0

    def as_crop_mask(self) -> CropMask:
        return CropMask(top=self.top_height, bottom=self.bottom_height)

@dataclass(frozen=True)
class OffsetResult:
    offset: int = 0              # 0 = no scroll / no confident match
    score: float | None = None   # best penalised score, None if no search ran
    rejected: bool = False

@dataclass(frozen=True)
class VideoMetadata:
    width: int
    height: int
    duration: float              # seconds
    fps: float = 0.0

@dataclass(frozen=True)
class Frame:
    """Decoded RGBA frame, shape (H, W, 4). Holds a private read-only copy of the pixels."""
    pixels: np.ndarray
    timestamp: float = 0.0

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4 or self.pixels.dtype != np.uint8:
            raise ValueError(f"Frame pixels must be uint8 HxWx4, got {self.pixels.dtype} {self.pixels.shape}.")
        pixels = np.array(self.pixels, copy=True)
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

@dataclass
class StitchConfig:
    sample_interval: float = 0.1                 # seconds between sampled frames
    detect_samples: int = 5                      # frames used for header/footer detection
    noise_threshold: float = 15                  # per-row diff still considered static
    search_stride: int = 2                       # px between candidate alignments
    sample_stride: int = 5                       # px between sampled rows in the signature
    columns: tuple[float, ...] = (0.25, 0.5, 0.75)
    reject_threshold: float = 8000               # best score above this = no match
    distance_penalty: float = 5                  # score added per px of offset
    max_scroll_fraction: float = 0.5             # of frame height
    signature_fraction: float = 0.2              # of usable (uncropped) height
    min_search_height: int = 10

@dataclass
class IOConfig:
    video: str
    out_path: Path | None = None
    progress: bool = True
    verbose: bool = False
