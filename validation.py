"""
Upload validation.

Every check here runs before the image is decoded. Checks are ordered from
cheapest to most specific and stop at the first failure:

  1. an upload is present
  2. its declared MIME type is ``image/*``
  3. its size does not exceed MAX_UPLOAD_BYTES
  4. the requested variant exists
"""

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Optional

from config import MAX_UPLOAD_BYTES, PREVIEW, QualityTier, VariantConfig, get_variant
from errors import InvalidContentType, MissingUpload, PayloadTooLarge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadRequest:
    stream: Optional[BinaryIO]
    filename: str
    content_type: str
    size: int
    variant: str
    tier: QualityTier = PREVIEW


def _stream_size(stream) -> int:
    """Measure a seekable stream without reading it into memory."""
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def upload_from_request(files, form, tier: QualityTier = PREVIEW) -> UploadRequest:
    """Build an UploadRequest from Flask's ``request.files`` / ``request.form``."""
    variant = (form.get("variant") or "").strip()
    file = files.get("image")

    if file is None or not file.filename:
        return UploadRequest(None, "", "", 0, variant, tier)

    size = _stream_size(file.stream)
    upload = UploadRequest(
        stream=file.stream,
        filename=file.filename,
        content_type=file.mimetype or "",
        size=size,
        variant=variant,
        tier=tier,
    )
    logger.debug(
        "%s upload filename=%r content_type=%r size=%d variant=%r",
        tier.name, upload.filename, upload.content_type, upload.size, upload.variant,
    )
    return upload


def _is_image_type(content_type: str) -> bool:
    primary = content_type.split(";", 1)[0].strip().lower()
    return primary.startswith("image/")


def validate_upload(upload: UploadRequest, max_bytes: int = MAX_UPLOAD_BYTES) -> VariantConfig:
    """Run all checks in order and return the resolved variant."""
    if upload.stream is None:
        raise MissingUpload()

    if not _is_image_type(upload.content_type):
        raise InvalidContentType(upload.content_type)

    if upload.size > max_bytes:
        raise PayloadTooLarge(upload.size, max_bytes)

    return get_variant(upload.variant)
