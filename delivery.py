"""
Delivery adapter: turns engine output (or a failure) into an HTTP response.

Preview responses are consumed by the page's script, so failures come back
as JSON. Downloads are full page navigations, so failures are flashed and the
user is sent back to the upload page.
"""

import io
import logging
from datetime import datetime

from flask import flash, jsonify, redirect, send_file, url_for

from engine import render_variant
from errors import EngineError, ValidationError
from validation import upload_from_request, validate_upload

logger = logging.getLogger(__name__)

JPEG_MIMETYPE = "image/jpeg"


def download_filename(variant, now=None) -> str:
    """``bild_<variant>_<YYYYMMDD_HHMMSS>.jpg``; only the name carries a timestamp."""
    now = now or datetime.now()
    return f"bild_{variant.identifier}_{now:%Y%m%d_%H%M%S}.jpg"


def deliver(data: bytes, variant, tier, now=None):
    """Stream JPEG bytes inline (preview) or as an attachment (download)."""
    if tier.as_attachment:
        response = send_file(
            io.BytesIO(data),
            mimetype=JPEG_MIMETYPE,
            as_attachment=True,
            download_name=download_filename(variant, now),
        )
    else:
        response = send_file(io.BytesIO(data), mimetype=JPEG_MIMETYPE)
        response.headers["Content-Disposition"] = "inline"
    response.headers["Cache-Control"] = "no-store"
    return response


def preview_failure(error):
    return jsonify({"error": error.user_message}), error.status_code


def download_failure(error):
    flash(error.user_message, "alert")
    return redirect(url_for("index"))


def failure_response(tier, error):
    if tier.as_attachment:
        return download_failure(error)
    return preview_failure(error)


def process_upload(tier, files, form, now=None):
    """Validate, transform and deliver one upload for the given tier."""
    upload = upload_from_request(files, form, tier)
    try:
        variant = validate_upload(upload)
        data = render_variant(upload.stream, variant, upload.tier.max_dimension, upload.tier.quality)
    except ValidationError as exc:
        logger.info("%s rejected: %s", upload.tier.name, exc.user_message)
        return failure_response(upload.tier, exc)
    except EngineError as exc:
        logger.error(
            "%s processing failed for %r (%s, %d bytes): %s",
            upload.tier.name, upload.filename, upload.content_type, upload.size, exc.detail,
            exc_info=exc,
        )
        return failure_response(upload.tier, exc)

    logger.info("%s delivered variant=%s bytes=%d", upload.tier.name, variant.identifier, len(data))
    return deliver(data, variant, upload.tier, now)
