"""Tests for copy generation and repair of model output."""
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from craftboost.errors import CapabilityError, ConfigurationError
from craftboost.services import copy_service
from craftboost.services.copy_service import (
    DEFAULT_CAPTIONS,
    DEFAULT_HASHTAGS,
    DEFAULT_TITLE,
    normalize_hashtags,
    parse_copy,
)


def test_parse_copy_with_code_fences():
    text = "```json\n" + json.dumps({
        "productTitle": "Hand-Carved Wooden Whale",
        "captions": ["One", "Two", "Three"],
        "hashtags": ["#WoodenToys", "handmade", "#handmade"],
    }) + "\n```"

    copy = parse_copy(text)

    assert copy["title"] == "Hand-Carved Wooden Whale"
    assert copy["captions"] == ["One", "Two", "Three"]
    assert copy["hashtags"] == ["woodentoys", "handmade"]


@pytest.mark.parametrize("text", ["", "Sorry, I can't help with that.", "[1, 2, 3]", '"just a string"'])
def test_unusable_output_falls_back_to_defaults(text):
    copy = parse_copy(text)

    assert copy["title"] == DEFAULT_TITLE
    assert copy["captions"] == list(DEFAULT_CAPTIONS)
    assert len(copy["captions"]) == 3
    assert all(copy["captions"])
    assert copy["hashtags"] == list(DEFAULT_HASHTAGS)


def test_missing_fields_get_defaults():
    copy = parse_copy(json.dumps({"productTitle": "Crochet Bunny"}))

    assert copy["title"] == "Crochet Bunny"
    assert copy["captions"] == list(DEFAULT_CAPTIONS)
    assert copy["hashtags"] == list(DEFAULT_HASHTAGS)


def test_single_legacy_caption_is_padded():
    copy = parse_copy(json.dumps({"caption": "A lovingly stitched bunny.", "hashtags": ["crochet"]}))

    assert copy["title"] == DEFAULT_TITLE
    assert len(copy["captions"]) == 3
    assert copy["captions"][0] == "A lovingly stitched bunny."
    assert copy["hashtags"] == ["crochet"]


def test_extra_captions_are_trimmed():
    copy = parse_copy(json.dumps({"captions": ["1", "2", "3", "4", " "]}))
    assert copy["captions"] == ["1", "2", "3"]


def test_blank_captions_are_dropped():
    copy = parse_copy(json.dumps({"captions": ["Real caption", "", None, "  "]}))
    assert copy["captions"][0] == "Real caption"
    assert len(copy["captions"]) == 3
    assert all(c.strip() for c in copy["captions"])


def test_normalize_hashtags():
    assert normalize_hashtags("#Wood, toys  #gift") == ["wood", "toys", "gift"]
    assert normalize_hashtags(["Made With Love", "#", 42, "made withlove"]) == ["madewithlove"]
    assert normalize_hashtags(None) == []


def _fake_response(text):
    part = SimpleNamespace(text=text)
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]))
    return SimpleNamespace(candidates=[candidate])


@pytest.fixture
def fake_model(monkeypatch):
    model = MagicMock()
    monkeypatch.setattr(copy_service.genai, "configure", MagicMock())
    monkeypatch.setattr(copy_service.genai, "GenerativeModel", MagicMock(return_value=model))
    return model


def test_generate_copy_parses_model_text(app, fake_model, image_factory):
    fake_model.generate_content.return_value = _fake_response(json.dumps({
        "productTitle": "Rainbow Stacker",
        "captions": ["a", "b", "c"],
        "hashtags": ["rainbow"],
    }))

    copy = copy_service.generate_copy(image_factory("JPEG"), "image/jpeg")

    assert copy == {"title": "Rainbow Stacker", "captions": ["a", "b", "c"], "hashtags": ["rainbow"]}
    copy_service.genai.configure.assert_called_once_with(api_key="test-gemini-key")


def test_generate_copy_without_candidates_uses_defaults(app, fake_model, image_factory):
    fake_model.generate_content.return_value = SimpleNamespace(candidates=[])

    copy = copy_service.generate_copy(image_factory("JPEG"))

    assert copy["captions"] == list(DEFAULT_CAPTIONS)


def test_generate_copy_wraps_api_errors(app, fake_model, image_factory):
    fake_model.generate_content.side_effect = RuntimeError("429 quota exceeded")

    with pytest.raises(CapabilityError) as exc:
        copy_service.generate_copy(image_factory("JPEG"))

    assert "quota exceeded" in str(exc.value)


def test_generate_copy_requires_api_key(app, fake_model, image_factory):
    app.config["GEMINI_API_KEY"] = ""

    with pytest.raises(ConfigurationError) as exc:
        copy_service.generate_copy(image_factory("JPEG"))

    assert "GEMINI_API_KEY" in str(exc.value)
    fake_model.generate_content.assert_not_called()
