from __future__ import annotations

class StitchError(RuntimeError):
    """Base error; `stage` names the part of the pipeline that failed."""
    stage = "stitch"

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage

class DecodeError(StitchError):
    stage = "decode"

class EstimateError(StitchError):
    stage = "estimate"

class CompositeError(StitchError):
    stage = "composite"

class OutOfMemoryError(CompositeError):
    pass

class StitchCancelled(StitchError):
    stage = "cancelled"

class ConfigError(StitchError, ValueError):
    stage = "config"
