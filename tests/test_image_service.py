"""Tests for upload validation and data URI helpers."""
import base64

import pytest

from craftboost.services.image_service import (
    MAX_FILE_SIZE,
    parse_data_uri,
    to_data_uri,
    validate_image,
)


def test_validate_image_reencodes_to_jpeg(image_factory):
    result = validate_image(image_factory("PNG"))
    assert result[:2] == b"\xff\xd8"  # JPEG magic


def test_validate_image_rejects_garbage():
    with pytest.raises(ValueError, match="Invalid image"):
        validate_image(b"definitely not an image")


def test_validate_image_rejects_empty():
    with pytest.raises(ValueError):
        validate_image(b"")


def test_validate_image_rejects_oversized():
    with pytest.raises(ValueError, match="too large"):
        validate_image(b"\x00" * (MAX_FILE_SIZE + 1))


def test_validate_image_rejects_unsupported_format(image_factory):
    with pytest.raises(ValueError, match="Unsupported format"):
        validate_image(image_factory("BMP"))


def test_data_uri_helpers():
    uri = to_data_uri(b"\x89PNG", "image/png")

    assert uri == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
    assert parse_data_uri(uri) == (b"\x89PNG", "image/png")


@pytest.mark.parametrize("value", [None, "", "image/png;base64,AAAA", "data:image/png;base64,@@@"])
def test_parse_data_uri_rejects_invalid(value):
    with pytest.raises(ValueError):
        parse_data_uri(value)
