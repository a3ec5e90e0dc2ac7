"""
Black-and-white variants – Python/Flask backend using Pillow for image processing.

Endpoints:
  GET  /          – Upload page (redirect target for failed downloads).
  POST /preview   – Accept an image + variant, return a small JPEG inline.
  POST /download  – Accept an image + variant, return a full JPEG attachment.
  GET  /health    – Liveness check.

Clients that want both variants of one image send two requests; each request
decodes the upload on its own, so they may run in parallel.
"""

from flask import Flask, get_flashed_messages, jsonify, render_template_string, request
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from config import DOWNLOAD, MAX_UPLOAD_BYTES, PREVIEW, QUALITY_TIERS, VARIANTS, get_settings
from delivery import failure_response, process_upload
from engine import configure_engine
from errors import PayloadTooLarge
from logging_config import configure_logging

settings = get_settings()
configure_logging(settings)
configure_engine()

app = Flask(__name__)
CORS(app)

app.config["SECRET_KEY"] = settings.secret_key
# Transport cap for the whole multipart body; the file itself is checked
# against MAX_UPLOAD_BYTES by the validator.
app.config["MAX_CONTENT_LENGTH"] = settings.max_request_bytes

INDEX_TEMPLATE = """<!doctype html>
<title>Schwarz-Weiß</title>
{% for message in messages %}<p class="error-box">{{ message }}</p>{% endfor %}
{% for endpoint in ("preview", "download") %}
<form action="{{ url_for(endpoint) }}" method="post" enctype="multipart/form-data">
  <input type="file" name="image" accept="image/*">
  <select name="variant">
    {% for variant in variants %}<option value="{{ variant.identifier }}">{{ variant.label }}</option>{% endfor %}
  </select>
  <button type="submit">{{ endpoint }}</button>
</form>
{% endfor %}
"""


@app.route("/", methods=["GET"])
def index():
    return render_template_string(
        INDEX_TEMPLATE,
        messages=get_flashed_messages(category_filter=["alert"]),
        variants=list(VARIANTS.values()),
    )


@app.route("/preview", methods=["POST"])
def preview():
    """Low-resolution JPEG for display; failures come back as JSON."""
    return process_upload(PREVIEW, request.files, request.form)


@app.route("/download", methods=["POST"])
def download():
    """Full-resolution JPEG as attachment; failures redirect to the index."""
    return process_upload(DOWNLOAD, request.files, request.form)


@app.errorhandler(RequestEntityTooLarge)
def request_too_large(_exc):
    tier = QUALITY_TIERS.get(request.endpoint, PREVIEW)
    app.logger.info("%s rejected: request body over %d bytes", tier.name, settings.max_request_bytes)
    return failure_response(tier, PayloadTooLarge(limit=MAX_UPLOAD_BYTES))


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    app.run(debug=False, host="0.0.0.0", port=5000)
