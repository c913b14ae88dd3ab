"""Tests for settings loading and engine construction from settings."""

import json

import pytest

from backend.app.api.routes_settings import DEFAULT_SETTINGS, load_settings, save_settings
from backend.app.services.progress.tracker import LifecycleEngine


def test_defaults_when_missing(settings_home):
    assert load_settings() == DEFAULT_SETTINGS


def test_saved_values_merge_over_defaults(settings_home):
    (settings_home / "settings.json").write_text(json.dumps({"page_size": 8}))

    settings = load_settings()

    assert settings["page_size"] == 8
    assert settings["tick_interval_ms"] == 200


def test_corrupt_file_falls_back_to_defaults(settings_home):
    (settings_home / "settings.json").write_text("{not json")
    assert load_settings() == DEFAULT_SETTINGS


def test_save_round_trip(settings_home):
    settings = load_settings()
    settings["progress_step"] = 25
    assert save_settings(settings)
    assert load_settings()["progress_step"] == 25


def test_engine_from_settings():
    settings = dict(DEFAULT_SETTINGS, tick_interval_ms=50, phase_min_ms=100, phase_jitter_ms=0)

    engine = LifecycleEngine.from_settings(settings)

    assert engine.tick_interval == pytest.approx(0.05)
    assert engine.progress_step == 10
    assert engine.phase_duration() == pytest.approx(0.1)
    assert engine.upload_window(2) == pytest.approx(3.0)


@pytest.mark.parametrize("saved", [
    {"page_size": 0},
    {"tick_interval_ms": "fast"},
    {"progress_step": 150},
    {"phase_min_ms": -1},
    {"log_level": "chatty"},
])
def test_invalid_values_fall_back_to_defaults(settings_home, saved):
    (settings_home / "settings.json").write_text(json.dumps(saved))
    assert load_settings() == DEFAULT_SETTINGS


def test_non_object_file_falls_back_to_defaults(settings_home):
    (settings_home / "settings.json").write_text(json.dumps([1, 2, 3]))
    assert load_settings() == DEFAULT_SETTINGS


def test_log_level_is_normalized(settings_home):
    (settings_home / "settings.json").write_text(json.dumps({"log_level": "debug"}))
    assert load_settings()["log_level"] == "DEBUG"


def test_app_starts_with_zero_page_size_on_disk(settings_home):
    from fastapi.testclient import TestClient
    from backend.main import app

    (settings_home / "settings.json").write_text(json.dumps({"page_size": 0}))

    with TestClient(app) as client:
        response = client.get("/view")
        assert response.status_code == 200
        assert response.json()["total_pages"] == 1
        assert client.get("/api/settings").json()["page_size"] == DEFAULT_SETTINGS["page_size"]
