import io
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from PIL import Image as PILImage

from craftboost import create_app
from craftboost.extensions import db as _db, get_post_store
from craftboost.services import copy_service, photoroom_service, stability_service


FAKE_COPY = {
    "title": "Wooden Rainbow Stacker",
    "captions": [
        "Stack the colours of the sky, one hand-sanded arch at a time.",
        "The gift that grows with them: open-ended play, made by hand.",
        "Solid maple. Non-toxic paint. Made to be loved for years.",
    ],
    "hashtags": ["woodentoys", "handmade", "rainbowstacker"],
}


@pytest.fixture
def app():
    """Create application for testing, with a fresh in-memory database."""
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def store(app):
    return get_post_store()


@pytest.fixture
def image_factory():
    """Build real image bytes in the given Pillow format."""

    def make(fmt="PNG", size=(32, 32), color=(180, 120, 60)):
        buffer = io.BytesIO()
        PILImage.new("RGB", size, color).save(buffer, format=fmt)
        return buffer.getvalue()

    return make


@pytest.fixture
def fake_ai(monkeypatch):
    """Replace the three AI capabilities with mocks."""
    fakes = SimpleNamespace(
        remove_background=MagicMock(return_value=b"cutout-png"),
        generate_copy=MagicMock(side_effect=lambda *a: dict(FAKE_COPY)),
        generate_scene=MagicMock(return_value=b"scene-png"),
    )
    monkeypatch.setattr(photoroom_service, "remove_background", fakes.remove_background)
    monkeypatch.setattr(copy_service, "generate_copy", fakes.generate_copy)
    monkeypatch.setattr(stability_service, "generate_scene", fakes.generate_scene)
    return fakes
