"""Tests for configuration loading and fail-fast checks."""
import pytest

from craftboost import create_app
from craftboost.config import CAPABILITY_SETTINGS, ProductionConfig, require_settings
from craftboost.errors import ConfigurationError


def test_require_settings_names_missing_keys():
    config = {"PHOTOROOM_API_KEY": "pk", "GEMINI_API_KEY": "", "STABILITY_API_KEY": None}

    with pytest.raises(ConfigurationError) as exc:
        require_settings(config, *CAPABILITY_SETTINGS)

    assert exc.value.missing == ["GEMINI_API_KEY", "STABILITY_API_KEY"]
    assert "GEMINI_API_KEY, STABILITY_API_KEY" in str(exc.value)


def test_require_settings_passes_when_present():
    require_settings({"A": "1", "B": "2"}, "A", "B")


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "dev-secret-change-me")

    with pytest.raises(ConfigurationError) as exc:
        create_app("production")

    assert exc.value.missing == ["SECRET_KEY"]


def test_production_requires_capability_keys(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "s3cret")
    monkeypatch.setattr(ProductionConfig, "PHOTOROOM_API_KEY", "pk")
    monkeypatch.setattr(ProductionConfig, "GEMINI_API_KEY", "")
    monkeypatch.setattr(ProductionConfig, "STABILITY_API_KEY", "")

    with pytest.raises(ConfigurationError) as exc:
        create_app("production")

    assert exc.value.missing == ["GEMINI_API_KEY", "STABILITY_API_KEY"]


def test_testing_config(app):
    assert app.config["TESTING"] is True
    assert app.config["SQLALCHEMY_DATABASE_URI"] == "sqlite:///:memory:"
