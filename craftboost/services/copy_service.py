"""Marketing copy generation with Gemini.

The model is asked for a JSON object with a title, three captions and
hashtags. Whatever comes back is repaired by ``parse_copy`` so callers
always get exactly three captions and at least one hashtag.
"""
import io
import json
import logging
import re

import google.generativeai as genai
from PIL import Image as PILImage
from flask import current_app

from craftboost.config import require_settings
from craftboost.errors import CapabilityError, MalformedUpstreamData

logger = logging.getLogger(__name__)


COPY_PROMPT = """You are an expert marketing copywriter for artisanal, handcrafted toys and gifts.

Analyse this product image and return a JSON object with exactly these keys:

{
  "productTitle": "A short, catchy product name (max 8 words)",
  "captions": [
    "First caption: an engaging, SEO-optimised Instagram caption (~60 words). Highlight craftsmanship and uniqueness.",
    "Second caption: a playful, emotive caption (~50 words). Focus on gift-giving and joy.",
    "Third caption: a concise, hashtag-ready caption (~40 words). Emphasize handmade quality and artisan pride."
  ],
  "hashtags": ["array", "of", "10", "relevant", "hashtags", "without-the-hash-symbol"]
}

IMPORTANT:
- Return ONLY the raw JSON object, no markdown fences, no extra text.
- Generate exactly 3 distinct Instagram captions tailored for an artisanal toy maker.
- Hashtags should be lowercase, no spaces, no # prefix.
- Focus on artisan, handmade, craft, toy, and gift niches."""

DEFAULT_TITLE = "Handcrafted Artisan Toy"

DEFAULT_CAPTIONS = (
    "A beautifully handcrafted artisanal creation, made with love and extraordinary "
    "attention to detail. Perfect as a unique gift for any occasion.",
    "There's something magical about a toy made by hand: every detail tells a story "
    "of care and craftsmanship.",
    "Handmade. Heartfelt. Built to last a lifetime of play and imagination.",
)

DEFAULT_HASHTAGS = (
    "handmade",
    "artisan",
    "crafttoy",
    "handcrafted",
    "giftideas",
    "uniquetoys",
    "madewithlove",
    "artisantoy",
    "craftboost",
    "shopsmall",
)

CAPTION_COUNT = 3

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def configure():
    """Configure Gemini with API key."""
    require_settings(current_app.config, "GEMINI_API_KEY")
    genai.configure(api_key=current_app.config["GEMINI_API_KEY"])


def generate_copy(image_bytes, mime_type="image/jpeg"):
    """Generate a title, three captions and hashtags for a product photo.

    Returns:
        dict with ``title``, ``captions`` (3 strings) and ``hashtags``

    Raises:
        ConfigurationError if GEMINI_API_KEY is not set
        CapabilityError when the Gemini call itself fails. Malformed model
        output is not an error: default copy is substituted.
    """
    configure()

    try:
        image = PILImage.open(io.BytesIO(image_bytes))
        if image.mode != "RGB":
            image = image.convert("RGB")

        model = genai.GenerativeModel(current_app.config["GEMINI_MODEL"])
        response = model.generate_content(
            [image, COPY_PROMPT],
            generation_config=genai.GenerationConfig(
                temperature=0.7,
                top_p=0.9,
                max_output_tokens=512,
            ),
            request_options={"timeout": current_app.config["AI_REQUEST_TIMEOUT"]},
        )
    except Exception as e:
        logger.exception("Gemini copy generation failed")
        raise CapabilityError(f"Gemini API error: {e}", provider="gemini") from e

    return parse_copy(_response_text(response))


def _response_text(response):
    """Concatenate the text parts of the first candidate ('' if none)."""
    if not response.candidates:
        return ""
    parts = response.candidates[0].content.parts
    return "".join(getattr(part, "text", "") or "" for part in parts)


def parse_copy(text):
    """Turn raw model output into well-formed copy."""
    try:
        data = _load_object(text)
    except MalformedUpstreamData as e:
        logger.warning("Unusable copy from Gemini (%s); using defaults", e)
        return default_copy()

    return {
        "title": _title(data),
        "captions": _captions(data),
        "hashtags": normalize_hashtags(data.get("hashtags")) or list(DEFAULT_HASHTAGS),
    }


def default_copy():
    return {
        "title": DEFAULT_TITLE,
        "captions": list(DEFAULT_CAPTIONS),
        "hashtags": list(DEFAULT_HASHTAGS),
    }


def normalize_hashtags(values):
    """Lowercase tokens without '#' or whitespace, de-duplicated, in order.

    Accepts a list or a comma/space separated string.
    """
    if isinstance(values, str):
        values = re.split(r"[,\s]+", values)
    if not isinstance(values, (list, tuple)):
        return []

    tags = []
    for value in values:
        if not isinstance(value, str):
            continue
        tag = re.sub(r"\s+", "", value).lstrip("#").lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _load_object(text):
    cleaned = _FENCE_RE.sub("", text or "").strip()
    if not cleaned:
        raise MalformedUpstreamData("empty response")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedUpstreamData(f"not JSON: {e}")
    if not isinstance(data, dict):
        raise MalformedUpstreamData(f"expected an object, got {type(data).__name__}")
    return data


def _title(data):
    title = data.get("productTitle") or data.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()[:255]
    return DEFAULT_TITLE


def _captions(data):
    raw = data.get("captions")
    if isinstance(raw, str):
        raw = [raw]
    if not raw and isinstance(data.get("caption"), str):
        # older prompt asked for a single caption
        raw = [data["caption"]]
    if not isinstance(raw, list):
        raw = []

    captions = [c.strip() for c in raw if isinstance(c, str) and c.strip()]
    captions = captions[:CAPTION_COUNT]
    for default in DEFAULT_CAPTIONS:
        if len(captions) >= CAPTION_COUNT:
            break
        if default not in captions:
            captions.append(default)
    return captions
