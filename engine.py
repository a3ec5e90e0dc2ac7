"""
Transform engine built on Pillow.

One call of ``render_variant`` decodes the upload, fixes its orientation,
shrinks it to the tier's bound, converts it to luminance, applies the variant's
affine remap and encodes the result as JPEG bytes. Every intermediate image is
owned by a TransformContext and closed before the call returns, whatever the
outcome.
"""

import io
import logging
from functools import lru_cache

import PIL
from PIL import Image, ImageOps

from errors import DecodeError, EncodeError

logger = logging.getLogger(__name__)

# Decoder failures Pillow raises for corrupt, truncated or unsupported data.
_DECODE_FAILURES = (OSError, SyntaxError, ValueError, Image.DecompressionBombError)


def configure_engine() -> None:
    """Stop Pillow's allocator from holding freed blocks between requests."""
    Image.core.set_blocks_max(0)
    logger.info(
        "Pillow %s allocator: blocks_max=%d block_size=%d max_image_pixels=%s",
        PIL.__version__,
        Image.core.get_blocks_max(),
        Image.core.get_block_size(),
        Image.MAX_IMAGE_PIXELS,
    )


# ── Geometry ──────────────────────────────────────────────────────────────────

def compute_scale(width: int, height: int, max_dimension: int) -> float:
    """Uniform downscale factor; never greater than 1.0."""
    return min(max_dimension / width, max_dimension / height, 1.0)


def scaled_size(width: int, height: int, max_dimension: int):
    scale = compute_scale(width, height, max_dimension)
    if scale >= 1.0:
        return width, height
    return max(1, round(width * scale)), max(1, round(height * scale))


# ── Intensity remap ───────────────────────────────────────────────────────────

@lru_cache(maxsize=None)
def lookup_table(gain: float, offset: float):
    """256-entry table for ``clamp(gain * v + offset, 0, 255)``."""
    return tuple(min(255, max(0, round(gain * v + offset))) for v in range(256))


# ── Resource scope ────────────────────────────────────────────────────────────

class TransformContext:
    """Owns every Image created during one transform and frees them on exit."""

    def __init__(self):
        self._images = []
        self.closed = False

    def track(self, image):
        self._images.append(image)
        return image

    def close(self):
        while self._images:
            self._images.pop().close()
        Image.core.clear_cache()
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


# ── Pipeline ──────────────────────────────────────────────────────────────────

def _decode(ctx, source):
    try:
        image = ctx.track(Image.open(source))
        image.load()
        image = ctx.track(ImageOps.exif_transpose(image))
        if image.mode not in ("L", "RGB"):
            image = ctx.track(image.convert("RGB"))
    except _DECODE_FAILURES as exc:
        raise DecodeError(f"{type(exc).__name__}: {exc}") from exc
    return image


def _encode(image, quality):
    # Pillow carries im.info through point()/convert() and the JPEG saver
    # re-emits entries such as "comment" from it.
    image.info.clear()
    buf = io.BytesIO()
    try:
        image.save(buf, format="JPEG", quality=quality)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"{type(exc).__name__}: {exc}") from exc
    return buf.getvalue()


def render_variant(source, variant, max_dimension: int, quality: int) -> bytes:
    """Run the full transform for one upload and return JPEG bytes.

    *source* is anything ``PIL.Image.open`` accepts (path or binary stream).
    Output depends only on the source bytes and the arguments.
    """
    if not 1 <= quality <= 100:
        raise ValueError(f"JPEG quality must be between 1 and 100, got {quality}")

    with TransformContext() as ctx:
        image = _decode(ctx, source)

        size = scaled_size(image.width, image.height, max_dimension)
        if size != image.size:
            image = ctx.track(image.resize(size, Image.LANCZOS))

        gray = image if image.mode == "L" else ctx.track(ImageOps.grayscale(image))
        remapped = ctx.track(gray.point(list(lookup_table(variant.gain, variant.offset))))

        data = _encode(remapped, quality)

    logger.debug(
        "rendered variant=%s size=%dx%d quality=%d bytes=%d",
        variant.identifier, size[0], size[1], quality, len(data),
    )
    return data
