"""
Upload service route handlers.

Provides routes for:
- The upload page (GET /)
- Image upload and alt text generation (POST /upload)

The active provider adapter and settings are read from the app config,
where `create_app()` placed them at startup.
"""

import base64
import logging
from typing import Tuple

from flask import Blueprint, Response, current_app, render_template, request

from alttext.ai_service.errors import AltTextError, DecodeError, ValidationError
from alttext.ai_service.media import ALLOWED_MEDIA_TYPES, is_allowed_media_type, sniff_media_type
from alttext.ai_service.providers import AltTextProvider
from alttext.gateway.config import Settings

upload_bp = Blueprint("upload", __name__, template_folder="templates")

MULTIPART_FORM_DATA = "multipart/form-data"
IMAGE_FIELD = "image"
TEXT_PLAIN = {"Content-Type": "text/plain; charset=utf-8"}


# --- REQUEST LOGGING ---
@upload_bp.before_request
def before_request() -> None:
    """
    Log every incoming request to the upload service.
    """
    logging.info(
        f"[Upload] Incoming {request.method} {request.path} "
        f"Content-Type={request.headers.get('Content-Type')}"
    )


@upload_bp.after_request
def after_request(response: Response) -> Response:
    """
    Log the response status code for every request.

    Args:
        response (Response): The Flask response object.

    Returns:
        Response: The passed-through response object.
    """
    logging.info(f"[Upload] Response {response.status}")
    return response


def _settings() -> Settings:
    return current_app.config["ALT_TEXT_SETTINGS"]


def _provider() -> AltTextProvider:
    return current_app.config["ALT_TEXT_PROVIDER"]


def _error(message: str, status: int) -> Tuple[str, int, dict]:
    return message, status, TEXT_PLAIN


def has_multipart_content_type(content_type: str) -> bool:
    """
    Accept 'multipart/form-data' exactly, or followed by parameters such as the boundary.
    """
    return content_type == MULTIPART_FORM_DATA or content_type[:len(MULTIPART_FORM_DATA)] == MULTIPART_FORM_DATA


def read_upload() -> bytes:
    """
    Pull the image bytes out of the current multipart request.

    Returns:
        bytes: The uploaded file content.

    Raises:
        ValidationError: Wrong content type, missing field, empty, oversized or unsupported file.
        OSError: The file stream could not be read.
    """
    content_type = request.headers.get("Content-Type", "")
    if not has_multipart_content_type(content_type):
        raise ValidationError("Failed to read image file: Content-Type isn't multipart/form-data")

    upload = request.files.get(IMAGE_FIELD)
    if upload is None:
        raise ValidationError("Failed to read image file")

    file_bytes = upload.read()
    logging.info(
        f"[Upload] Uploaded file details - Filename: {upload.filename}, "
        f"Size: {len(file_bytes)} bytes, Mimetype: {upload.mimetype}"
    )

    settings = _settings()
    if not file_bytes:
        raise ValidationError("Uploaded image is empty")
    if len(file_bytes) > settings.max_upload_bytes:
        raise ValidationError(f"Image exceeds the {settings.max_upload_mb:g}MB limit", status_code=413)

    media_type = sniff_media_type(file_bytes)
    if not is_allowed_media_type(media_type):
        allowed = ", ".join(t.split("/")[1].upper() for t in ALLOWED_MEDIA_TYPES)
        raise ValidationError(f"Unsupported image format ({media_type}). Allowed formats: {allowed}")

    return file_bytes


# --- PAGE ---
@upload_bp.route("/", methods=["GET"])
def home() -> str:
    """
    Serve the upload form.
    """
    settings = _settings()
    return render_template(
        "index.html",
        provider=_provider().name,
        max_upload_mb=settings.max_upload_mb,
        allowed_formats=[t.split("/")[1].upper() for t in ALLOWED_MEDIA_TYPES],
    )


# --- UPLOAD ---
@upload_bp.route("/upload", methods=["POST"])
def upload():
    """
    Generate alt text for an uploaded image.

    Expects multipart/form-data with:
    - image (file): PNG, JPEG, GIF or WEBP, up to the configured size limit.

    Returns:
        200: HTML fragment with the generated alt text.
        400: Wrong content type, missing/empty file, unsupported format, or undecodable image.
        413: Image too large.
        500: File read failure or provider failure (details are only logged).
    """
    try:
        file_bytes = read_upload()
    except ValidationError as e:
        logging.info(f"[Upload] Rejected upload: {e}")
        return _error(str(e), e.status_code)
    except OSError as e:
        logging.error(f"[Upload] Error reading image content: {e}")
        return _error("Failed to read image content", 500)

    encoded_image = base64.b64encode(file_bytes).decode("ascii")

    try:
        alt_text = _provider().generate(encoded_image)
    except DecodeError as e:
        logging.info(f"[Upload] Image could not be decoded: {e}")
        return _error(str(e), 400)
    except AltTextError as e:
        logging.error(f"[Upload] Error generating alt text: {type(e).__name__}: {e}")
        return _error("Failed to generate alt text", 500)

    logging.info(f"[Upload] Generated alt text: {alt_text}")
    return render_template("alt_text.html", alt_text=alt_text)
