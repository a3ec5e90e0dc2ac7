"""
Error taxonomy for the upload → transform → delivery pipeline.

Validation errors are client-input problems and carry a message that is safe
to show as-is. Engine errors keep their diagnostic detail for the server log
and only expose a generic message to the user.
"""


class ProcessingError(Exception):
    """Base class for every failure the delivery layer knows how to report."""

    status_code = 400
    user_message = "Bildverarbeitung fehlgeschlagen"

    def __init__(self, user_message=None, detail=None):
        if user_message is not None:
            self.user_message = user_message
        self.detail = detail
        super().__init__(detail or self.user_message)


# ── Client input ──────────────────────────────────────────────────────────────

class ValidationError(ProcessingError):
    status_code = 422


class MissingUpload(ValidationError):
    user_message = "Bitte wähle ein Bild aus"


class InvalidContentType(ValidationError):
    def __init__(self, content_type):
        self.content_type = content_type
        super().__init__(
            f"Ungültiges Dateiformat: {content_type or 'unbekannt'}. "
            "Bitte lade ein Bild hoch."
        )


class PayloadTooLarge(ValidationError):
    status_code = 413

    def __init__(self, size=None, limit=10 * 1024 * 1024):
        self.size = size
        self.limit = limit
        limit_mb = limit // (1024 * 1024)
        if size is None:
            message = f"Datei zu groß. Maximum: {limit_mb} MB"
        else:
            message = f"Datei zu groß ({size / (1024 * 1024):.1f} MB). Maximum: {limit_mb} MB"
        super().__init__(message)


class InvalidVariant(ValidationError):
    def __init__(self, variant):
        self.variant = variant
        super().__init__(f"Unbekannte Variante: {variant or 'keine'}")


# ── Engine ────────────────────────────────────────────────────────────────────

class EngineError(ProcessingError):
    status_code = 422

    def __init__(self, detail=None):
        # Never forward the detail to the user.
        super().__init__(detail=detail)


class DecodeError(EngineError):
    pass


class EncodeError(EngineError):
    pass
