"""
Tests for the luminance histogram analyzer.
"""

import io

import pytest
from PIL import Image

from histogram import HistogramAnalyzer, compute_histogram, luminance_counts, main, normalize, smooth


def _jpeg(image):
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=100)
    return buf.getvalue()


def _gradient(width=256, height=10):
    img = Image.new("L", (width, height))
    img.putdata([x % 256 for _ in range(height) for x in range(width)])
    return img


# ── Smoothing / normalization ────────────────────────────────────────────────

def test_smooth_edges_divide_by_samples_used():
    values = [6, 3] + [0] * 252 + [3, 9]
    smoothed = smooth(values)
    assert smoothed[0] == pytest.approx(4.5)  # (6 + 3) / 2
    assert smoothed[1] == pytest.approx(3.0)  # (6 + 3 + 0) / 3
    assert smoothed[255] == pytest.approx(6.0)  # (3 + 9) / 2


def test_smooth_keeps_flat_signal_flat():
    assert smooth([7] * 256) == [7] * 256


def test_normalize_sums_to_hundred():
    assert sum(normalize(smooth([1000] + [0] * 255))) == pytest.approx(100.0)
    assert normalize([0, 0, 0]) == [0.0, 0.0, 0.0]


# ── Histogram ────────────────────────────────────────────────────────────────

def test_counts_cover_every_pixel():
    img = _gradient()
    counts = luminance_counts(img)
    assert len(counts) == 256
    assert sum(counts) == img.width * img.height
    assert counts[0] == counts[128] == counts[255] == 10


def test_percentages_sum_to_hundred_for_black_image():
    hist = compute_histogram(Image.new("L", (20, 20), 0))
    assert hist.total_pixels == 400
    assert sum(hist.percentages) == pytest.approx(100.0)
    assert hist.percentages[0] > hist.percentages[1] > 0


def test_percentages_are_share_of_smoothed_total():
    hist = compute_histogram(Image.new("L", (10, 10), 0))
    # smoothed: bin 0 = 50, bin 1 = 100 / 3
    assert hist.percentages[0] == pytest.approx(60.0)
    assert hist.percentages[1] == pytest.approx(40.0)
    assert hist.counts[0] / hist.total_pixels * 100 == pytest.approx(100.0)


def test_red_channel_is_sampled():
    hist = compute_histogram(Image.new("RGB", (5, 5), (10, 200, 200)))
    assert hist.counts[10] == 25


# ── Analyzer state ───────────────────────────────────────────────────────────

def test_analyzer_replaces_previous_chart():
    analyzer = HistogramAnalyzer()
    first = analyzer.analyze(_jpeg(Image.new("L", (32, 32), 40)))
    old_chart = analyzer.chart

    second = analyzer.analyze(_jpeg(_gradient()))

    assert analyzer.chart is not old_chart
    with pytest.raises(ValueError):
        old_chart.getpixel((0, 0))
    assert first.counts != second.counts
    assert sum(second.percentages) == pytest.approx(100.0)


def test_analyzer_reset_releases_state():
    analyzer = HistogramAnalyzer()
    analyzer.analyze(_jpeg(_gradient()))
    chart = analyzer.chart
    analyzer.reset()
    assert analyzer.chart is None
    assert analyzer.histogram is None
    with pytest.raises(ValueError):
        chart.getpixel((0, 0))
    with pytest.raises(ValueError):
        analyzer.chart_png()


def test_analyzer_rejects_empty_input():
    with pytest.raises(ValueError):
        HistogramAnalyzer().analyze(b"")


def test_chart_png():
    analyzer = HistogramAnalyzer(size=(300, 120))
    analyzer.analyze(_jpeg(_gradient()))
    chart = Image.open(io.BytesIO(analyzer.chart_png()))
    assert chart.format == "PNG"
    assert chart.size == (300, 120)


def test_main_writes_chart(tmp_path):
    source = tmp_path / "preview.jpg"
    source.write_bytes(_jpeg(_gradient()))
    target = tmp_path / "chart.png"
    assert main([str(source), str(target)]) == 0
    assert Image.open(target).format == "PNG"


def test_main_usage():
    assert main([]) == 2
