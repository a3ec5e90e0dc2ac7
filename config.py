"""
Process-wide constants and settings.

The variant and quality tables are part of the public contract and are built
once at import time as read-only structures. Only ambient concerns (log level,
secret key) come from the environment.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from errors import InvalidVariant

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB, checked before decode

# Room for multipart boundaries and the variant field on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


@dataclass(frozen=True)
class VariantConfig:
    """Affine luminance remap ``out = clamp(gain * in + offset, 0, 255)``."""

    identifier: str
    label: str
    gain: float
    offset: float


@dataclass(frozen=True)
class QualityTier:
    name: str
    max_dimension: int
    quality: int
    as_attachment: bool


VARIANTS = MappingProxyType({
    "high_contrast": VariantConfig("high_contrast", "Starker Kontrast", 1.4, -30.0),
    "flat_gray": VariantConfig("flat_gray", "Flaches Grau", 0.7, 40.0),
})

PREVIEW = QualityTier("preview", max_dimension=800, quality=60, as_attachment=False)
DOWNLOAD = QualityTier("download", max_dimension=2560, quality=100, as_attachment=True)

QUALITY_TIERS = MappingProxyType({tier.name: tier for tier in (PREVIEW, DOWNLOAD)})


def get_variant(identifier):
    """Return the VariantConfig for *identifier* or raise InvalidVariant."""
    try:
        return VARIANTS[identifier]
    except (KeyError, TypeError):
        raise InvalidVariant(identifier) from None


@dataclass(frozen=True)
class Settings:
    """Ambient application settings (never the transform tables)."""

    log_level: str = "INFO"
    secret_key: str = "dev-insecure-key"
    max_request_bytes: int = MAX_UPLOAD_BYTES + MULTIPART_OVERHEAD_BYTES


def _build_settings() -> Settings:
    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        secret_key=os.getenv("SECRET_KEY", "dev-insecure-key"),
    )


@lru_cache
def get_settings() -> Settings:
    """Return the settings instance, read from the environment once."""
    return _build_settings()
