"""Stability AI scene generation around a cut-out product.

https://platform.stability.ai/docs/api-reference
"""
import logging

import httpx
from flask import current_app

from craftboost.config import require_settings
from craftboost.errors import CapabilityError

logger = logging.getLogger(__name__)

SCENE_URL = "https://api.stability.ai/v2beta/stable-image/edit/search-and-replace"


def generate_scene(image_bytes, prompt):
    """Render a lifestyle scene around the product.

    Args:
        image_bytes: transparent-background product image (PNG)
        prompt: text describing the scene

    Returns:
        PNG bytes of the composed image

    Raises:
        ConfigurationError if STABILITY_API_KEY is not set
        CapabilityError on transport errors or any non-2xx response
    """
    require_settings(current_app.config, "STABILITY_API_KEY")

    try:
        resp = httpx.post(
            SCENE_URL,
            headers={
                "Authorization": f"Bearer {current_app.config['STABILITY_API_KEY']}",
                "Accept": "image/*",
            },
            files={"image": ("product.png", image_bytes, "image/png")},
            data={"prompt": prompt, "output_format": "png"},
            timeout=current_app.config["AI_REQUEST_TIMEOUT"],
        )
    except httpx.HTTPError as e:
        raise CapabilityError(
            f"Stability AI request failed: {e}", provider="stability"
        ) from e

    if not resp.is_success:
        logger.error("Stability AI error %d: %s", resp.status_code, resp.text[:500])
        raise CapabilityError(
            f"Stability AI error ({resp.status_code}): {resp.text or 'Unknown error'}",
            provider="stability",
            status=resp.status_code,
        )
    if not resp.content:
        raise CapabilityError("Stability AI returned an empty image", provider="stability")
    return resp.content


def build_scene_prompt(product_title):
    """Scene prompt tailored to a generated product title.

    Not used by the pipeline, which always sends the fixed playroom prompt.
    """
    return (
        f'A beautiful, high-end product photography scene for a handcrafted artisanal toy: "{product_title}". '
        "The toy is placed on a rustic wooden surface with soft, warm studio lighting. "
        "Blurred cozy background with fairy lights, craft supplies, and warm earth tones. "
        "Professional lifestyle product photography, shallow depth of field, 4K quality."
    )
