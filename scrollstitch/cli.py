#!/usr/bin/env python3
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from .config import CropMask, IOConfig, StitchConfig
from .errors import ConfigError, StitchError
from .io_video import VideoFrameSource
from .pipeline import StitchPipeline
from .static_regions import StaticRegionDetector

class ScrollStitchCLI:
    def __init__(self, io: IOConfig, cfg: StitchConfig, crop_top: int | None = None,
                 crop_bottom: int | None = None, detect: bool = True):
        self.io = io
        self.cfg = cfg
        self.crop_top = crop_top
        self.crop_bottom = crop_bottom
        self.detect = detect

    def configure_logging(self):
        if self.io.verbose:
            logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
            logging.getLogger("scrollstitch").setLevel(logging.DEBUG)

    def resolve_crop(self, source) -> CropMask:
        """User values win; missing ones come from the detected bands."""
        top, bottom = self.crop_top, self.crop_bottom
        if self.detect and (top is None or bottom is None):
            region = StaticRegionDetector(self.cfg).detect(source)
            print(f"Detected header={region.top_height}px footer={region.bottom_height}px", file=sys.stderr)
            if top is None: top = region.top_height
            if bottom is None: bottom = region.bottom_height
        return CropMask(top=top or 0, bottom=bottom or 0)

    def run_detect(self):
        with VideoFrameSource(self.io.video) as src:
            region = StaticRegionDetector(self.cfg).detect(src)
        print(f"top={region.top_height} bottom={region.bottom_height}")

    def run_stitch(self):
        pipeline = StitchPipeline(self.cfg)
        with VideoFrameSource(self.io.video) as src:
            crop = self.resolve_crop(src)
            bar = tqdm(total=100, desc="Stitching", unit="%", disable=not self.io.progress)

            def on_progress(pct: float):
                bar.update(pct - bar.n)

            try:
                png = pipeline.run(src, crop, on_progress=on_progress)
            finally:
                bar.close()

        out = self.io.out_path
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(png)
        print(f"Wrote {out} ({pipeline.compositor.width}x{pipeline.compositor.height})", file=sys.stderr)
        return pipeline

def build_parser() -> argparse.ArgumentParser:
    d = StitchConfig()
    p = argparse.ArgumentParser(
        prog="scrollstitch",
        description="Rebuild one tall image from a screen recording of scrolling content."
    )
    # Inputs / outputs
    p.add_argument("video", help="Path to the screen recording.")
    p.add_argument("--out", type=Path, default=Path("stitched-scroll.png"), help="Output PNG path.")
    p.add_argument("--no-progress", action="store_true", help="Hide the progress bar.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log per-step offsets.")
    # Crop
    p.add_argument("--crop-top", type=int, default=None, help="Fixed header rows to ignore (default: detected).")
    p.add_argument("--crop-bottom", type=int, default=None, help="Fixed footer rows to ignore (default: detected).")
    p.add_argument("--no-detect", action="store_true", help="Do not auto-detect header/footer; missing crops are 0.")
    p.add_argument("--detect-only", action="store_true", help="Print detected header/footer heights and exit.")
    # Matching
    p.add_argument("--step", type=float, default=d.sample_interval, help="Seconds between sampled frames.")
    p.add_argument("--samples", type=int, default=d.detect_samples, help="Frames sampled for header/footer detection.")
    p.add_argument("--noise", type=float, default=d.noise_threshold,
                   help="Max per-row change for a row to count as static.")
    p.add_argument("--threshold", type=float, default=d.reject_threshold,
                   help="Reject matches whose best score exceeds this.")
    p.add_argument("--penalty", type=float, default=d.distance_penalty, help="Score penalty per pixel of offset.")
    p.add_argument("--max-scroll", type=float, default=d.max_scroll_fraction,
                   help="Largest scroll per step, as a fraction of frame height.")
    return p

def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.step <= 0:
        print("--step must be positive", file=sys.stderr)
        sys.exit(2)
    if (args.crop_top or 0) < 0 or (args.crop_bottom or 0) < 0:
        print("Crop values must be non-negative", file=sys.stderr)
        sys.exit(2)

    io = IOConfig(video=args.video, out_path=args.out, progress=not args.no_progress, verbose=args.verbose)
    cfg = StitchConfig(
        sample_interval=args.step,
        detect_samples=args.samples,
        noise_threshold=args.noise,
        reject_threshold=args.threshold,
        distance_penalty=args.penalty,
        max_scroll_fraction=args.max_scroll,
    )

    app = ScrollStitchCLI(io, cfg, crop_top=args.crop_top, crop_bottom=args.crop_bottom, detect=not args.no_detect)
    app.configure_logging()
    try:
        if args.detect_only:
            app.run_detect()
        else:
            app.run_stitch()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except StitchError as e:
        print(f"Error ({e.stage}): {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
