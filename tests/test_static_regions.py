import numpy as np
import pytest

from scrollstitch.config import StaticRegion, StitchConfig
from scrollstitch.io_video import ArrayFrameSource
from scrollstitch.static_regions import StaticRegionDetector, detect_static_regions


def test_constant_header_and_varying_bottom(canvas_factory, scroll_frames, band):
    canvas = canvas_factory(120, 800, seed=11)
    frames = scroll_frames(canvas, 240, 24, 20, header=band(50, 120))

    region = detect_static_regions(ArrayFrameSource(frames, fps=10))

    assert region.top_height >= 50
    assert region.bottom_height == 0


def test_header_and_footer(canvas_factory, scroll_frames, band):
    canvas = canvas_factory(120, 800, seed=12)
    frames = scroll_frames(canvas, 240, 24, 20, header=band(30, 120, seed=1), footer=band(18, 120, seed=2))

    region = StaticRegionDetector().detect(ArrayFrameSource(frames, fps=10))

    assert region.top_height >= 30
    assert region.bottom_height >= 18
    assert region.top_height + region.bottom_height < 240


def test_no_static_band(canvas_factory, scroll_frames):
    frames = scroll_frames(canvas_factory(100, 900, seed=4), 200, 30, 20)
    assert detect_static_regions(ArrayFrameSource(frames, fps=10)) == StaticRegion(0, 0)


def test_still_video_bands_split_at_midline():
    frame = np.full((101, 40, 3), 90, dtype=np.uint8)
    region = detect_static_regions(ArrayFrameSource([frame] * 10, fps=10))
    # Rows y < 50.5 count for the top, rows y > 50.5 for the bottom.
    assert region == StaticRegion(top_height=51, bottom_height=50)


def test_sample_times_cover_middle_80_percent():
    times = StaticRegionDetector().sample_times(10.0, 5)
    assert times == pytest.approx([1.0, 3.0, 5.0, 7.0, 9.0])


def test_single_sample_finds_nothing(canvas_factory):
    frames = [canvas_factory(40, 60, seed=i) for i in range(5)]
    assert detect_static_regions(ArrayFrameSource(frames), sample_count=1) == StaticRegion()


def test_noise_threshold_tolerates_small_flicker(canvas_factory):
    base = canvas_factory(60, 100, seed=8).astype(np.int16)
    frames = []
    for i in range(10):
        f = base.copy()
        f[:20] += (i // 2) % 2 * 4     # header flickers between samples by 12 (RGB summed)
        f[20:] = canvas_factory(60, 80, seed=100 + i)
        frames.append(np.clip(f, 0, 255).astype(np.uint8))

    lenient = detect_static_regions(ArrayFrameSource(frames, fps=10))
    strict = detect_static_regions(ArrayFrameSource(frames, fps=10), cfg=StitchConfig(noise_threshold=0))

    assert lenient.top_height >= 20
    assert strict.top_height < 20


def test_row_changes_is_worst_case_over_pairs():
    a = np.zeros((4, 8, 4), dtype=np.uint8)
    b = a.copy(); b[1] = 30          # pair (a, b) changes row 1
    c = b.copy(); c[2] = 90          # pair (b, c) changes row 2
    worst = StaticRegionDetector().row_changes([a, b, c])
    assert worst.tolist() == [0.0, 90.0, 270.0, 0.0]
