import base64
import binascii
import io
import re

from PIL import Image as PILImage


ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}
ALLOWED_FORMATS = {"JPEG", "PNG", "WEBP"}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]+);base64,(?P<data>.+)$", re.DOTALL)


def validate_image(image_bytes):
    """Validate and sanitize an uploaded product photo.

    - Checks file size
    - Verifies it's a real JPEG/PNG/WEBP image via Pillow
    - Strips EXIF data by re-encoding
    - Converts to JPEG

    Returns:
        Sanitized JPEG bytes

    Raises:
        ValueError on invalid input
    """
    if not image_bytes:
        raise ValueError("Image is empty")
    if len(image_bytes) > MAX_FILE_SIZE:
        raise ValueError(f"Image too large: {len(image_bytes)} bytes (max {MAX_FILE_SIZE})")

    try:
        img = PILImage.open(io.BytesIO(image_bytes))
        img.verify()  # verify it's a real image
    except Exception:
        raise ValueError("Invalid image file")

    if img.format not in ALLOWED_FORMATS:
        raise ValueError(
            f"Unsupported format {img.format}. Please upload JPEG, PNG or WEBP"
        )

    # Re-open (verify() closes the file) and re-encode to strip EXIF
    img = PILImage.open(io.BytesIO(image_bytes))
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


def parse_data_uri(data_uri):
    """Split ``data:<mime>;base64,<payload>`` into (bytes, mime).

    Raises:
        ValueError if the string is not a base64 data URI
    """
    match = _DATA_URI_RE.match((data_uri or "").strip())
    if not match:
        raise ValueError("Invalid base64 data URI")
    try:
        payload = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("Invalid base64 data URI")
    return payload, match.group("mime")


def to_data_uri(image_bytes, mime_type):
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"
