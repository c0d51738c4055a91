"""Photoroom background removal.

https://www.photoroom.com/api/docs
"""
import logging

import httpx
from flask import current_app

from craftboost.config import require_settings
from craftboost.errors import CapabilityError

logger = logging.getLogger(__name__)

SEGMENT_URL = "https://sdk.photoroom.com/v1/segment"


def remove_background(image_bytes, mime_type="image/jpeg"):
    """Return the product cut out on a transparent background (PNG bytes).

    Raises:
        ConfigurationError if PHOTOROOM_API_KEY is not set
        CapabilityError on transport errors or any non-2xx response
    """
    require_settings(current_app.config, "PHOTOROOM_API_KEY")

    try:
        resp = httpx.post(
            SEGMENT_URL,
            headers={"x-api-key": current_app.config["PHOTOROOM_API_KEY"]},
            files={"image_file": ("product.png", image_bytes, mime_type)},
            timeout=current_app.config["AI_REQUEST_TIMEOUT"],
        )
    except httpx.HTTPError as e:
        raise CapabilityError(
            f"Photoroom request failed: {e}", provider="photoroom"
        ) from e

    if not resp.is_success:
        logger.error("Photoroom API error %d: %s", resp.status_code, resp.text[:500])
        raise CapabilityError(
            f"Photoroom API error ({resp.status_code}): {resp.text or 'Unknown error'}",
            provider="photoroom",
            status=resp.status_code,
        )
    if not resp.content:
        raise CapabilityError("Photoroom returned an empty image", provider="photoroom")
    return resp.content
