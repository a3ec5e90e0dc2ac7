"""
Shared fixtures for the test modules.
"""

import io

import pytest
from PIL import Image

from app import app as flask_app


@pytest.fixture
def client():
    flask_app.config["TESTING"] = True
    with flask_app.test_client() as c:
        yield c


@pytest.fixture
def app():
    flask_app.config["TESTING"] = True
    return flask_app


def _make_image_bytes(width=100, height=100, color=(128, 64, 32), fmt="JPEG", **save_kwargs):
    """Return raw bytes of a simple RGB image."""
    img = Image.new("RGB", (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt, **save_kwargs)
    buf.seek(0)
    return buf.read()


@pytest.fixture
def make_image_bytes():
    return _make_image_bytes
