"""
Luminance histogram for a delivered preview.

Works on the JPEG bytes the preview endpoint returned, with no access to
server state. Delivered images are single channel, so the red channel of the
RGB rendering is the luminance and is the only one sampled.

Usage:
    python histogram.py preview.jpg chart.png
"""

import io
import logging
import sys
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from PIL import Image, ImageDraw

logger = logging.getLogger(__name__)

SMOOTHING_WINDOW = 3

CHART_SIZE = (512, 200)
LINE_COLOR = (22, 172, 122, 204)
FILL_COLOR = (22, 172, 122, 64)


@dataclass(frozen=True)
class Histogram:
    counts: Tuple[int, ...]
    smoothed: Tuple[float, ...]
    percentages: Tuple[float, ...]
    total_pixels: int


def luminance_counts(image) -> List[int]:
    """Count red-channel intensities into 256 bins."""
    rgb = image.convert("RGB")
    try:
        red = rgb.getchannel("R")
        try:
            return red.histogram()
        finally:
            red.close()
    finally:
        rgb.close()


def smooth(values: Sequence[float], window: int = SMOOTHING_WINDOW) -> List[float]:
    """Centered moving average.

    Windows that run past either end are truncated and divided by the number
    of samples they actually cover.
    """
    half = window // 2
    n = len(values)
    smoothed = []
    for i in range(n):
        lo, hi = max(0, i - half), min(n, i + half + 1)
        smoothed.append(sum(values[lo:hi]) / (hi - lo))
    return smoothed


def normalize(values: Sequence[float]) -> List[float]:
    """Scale values to percentages of their sum.

    Applied to smoothed bins this is the share of the smoothed total, not of
    ``Histogram.total_pixels``: truncated edge windows do not preserve mass,
    so dividing by the pixel count would not sum to 100. The two agree when
    bins 0 and 255 are empty; a 10x10 black image reads 60% at bin 0, not 50%.
    """
    total = sum(values)
    if total == 0:
        return [0.0] * len(values)
    return [v / total * 100 for v in values]


def compute_histogram(image) -> Histogram:
    counts = luminance_counts(image)
    smoothed = smooth(counts)
    return Histogram(
        counts=tuple(counts),
        smoothed=tuple(smoothed),
        percentages=tuple(normalize(smoothed)),
        total_pixels=image.width * image.height,
    )


def _curve_points(percentages, size):
    width, height = size
    peak = max(percentages) or 1.0
    step = (width - 1) / (len(percentages) - 1)
    return [
        (i * step, (height - 1) - p / peak * (height - 1))
        for i, p in enumerate(percentages)
    ]


def render_curve(histogram: Histogram, size=CHART_SIZE):
    """Draw the percentages as a filled distribution curve (RGBA image)."""
    chart = Image.new("RGBA", size, (255, 255, 255, 0))
    draw = ImageDraw.Draw(chart)
    points = _curve_points(histogram.percentages, size)
    baseline = size[1] - 1
    draw.polygon([(0, baseline)] + points + [(size[0] - 1, baseline)], fill=FILL_COLOR)
    draw.line(points, fill=LINE_COLOR, width=2)
    return chart


class HistogramAnalyzer:
    """Keeps the histogram and chart for the image currently on display.

    Each new image replaces the previous analysis; the previous chart is
    closed before a new one is drawn.
    """

    def __init__(self, size=CHART_SIZE):
        self.size = size
        self.histogram = None
        self.chart = None

    def analyze(self, image_bytes: bytes) -> Histogram:
        if not image_bytes:
            raise ValueError("cannot analyse an empty image")
        with Image.open(io.BytesIO(image_bytes)) as image:
            if image.width == 0 or image.height == 0:
                raise ValueError("cannot analyse an empty image")
            self.histogram = compute_histogram(image)
        self.render()
        return self.histogram

    def render(self):
        self._release_chart()
        if self.histogram is not None:
            self.chart = render_curve(self.histogram, self.size)
        return self.chart

    def chart_png(self) -> bytes:
        if self.chart is None:
            raise ValueError("no histogram has been rendered")
        buf = io.BytesIO()
        self.chart.save(buf, format="PNG")
        return buf.getvalue()

    def reset(self):
        self._release_chart()
        self.histogram = None

    def _release_chart(self):
        if self.chart is not None:
            self.chart.close()
            self.chart = None


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 2:
        print(__doc__.strip().splitlines()[-1].strip(), file=sys.stderr)
        return 2
    source, target = argv
    with open(source, "rb") as fh:
        data = fh.read()
    analyzer = HistogramAnalyzer()
    histogram = analyzer.analyze(data)
    with open(target, "wb") as fh:
        fh.write(analyzer.chart_png())
    analyzer.reset()
    logger.info("histogram of %s (%d px) written to %s", source, histogram.total_pixels, target)
    return 0


if __name__ == "__main__":
    from logging_config import configure_logging

    configure_logging()
    sys.exit(main())
