import os
from pathlib import Path

import pytest

from dexpipe.infrastructure.config import settings
from dexpipe.infrastructure.config.settings import (
    PipelineSettings,
    get_config,
    load_configuration,
    load_pipeline_settings,
    set_config_for_testing,
)


@pytest.fixture
def fresh_config(monkeypatch, tmp_path):
    """Forgets previously loaded configuration and isolates the working directory."""
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", False)
    monkeypatch.chdir(tmp_path)
    for key in ("API_BASE_URL", "FETCH_BATCH_PAUSE", "FETCH_RELATED_CAP", "CACHE_DIR"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


def test_defaults(fresh_config):
    load_configuration(config_file=fresh_config / "missing.yaml")
    loaded = load_pipeline_settings()
    assert loaded == PipelineSettings(cache_dir=loaded.cache_dir)
    assert loaded.min_request_interval == 0.1
    assert loaded.max_retries == 0
    assert loaded.user_agent.startswith("dexpipe/")


def test_yaml_nested_and_flat_keys(fresh_config):
    config_file = fresh_config / "config.yaml"
    config_file.write_text(
        "api:\n"
        "  base_url: https://mirror.example/api/v2/\n"
        "fetch.related_cap: 20\n"
        f"cache:\n  dir: {fresh_config / 'cache'}\n"
    )
    load_configuration(config_file=config_file)

    loaded = load_pipeline_settings()
    assert loaded.base_url == "https://mirror.example/api/v2"
    assert loaded.related_cap == 20
    assert loaded.cache_dir == fresh_config / "cache"


def test_environment_overrides_yaml(fresh_config, monkeypatch):
    config_file = fresh_config / "config.yaml"
    config_file.write_text("fetch:\n  batch_pause: 0.5\n")
    load_configuration(config_file=config_file)
    monkeypatch.setenv("FETCH_BATCH_PAUSE", "0.25")

    assert get_config("fetch.batch_pause") == 0.25
    assert load_pipeline_settings().batch_pause_seconds == 0.25


def test_test_config_has_highest_priority(fresh_config, monkeypatch):
    monkeypatch.setenv("FETCH_RELATED_CAP", "10")
    set_config_for_testing({"fetch.related_cap": 3})
    assert get_config("fetch.related_cap") == 3


def test_dotenv_file_is_loaded(fresh_config):
    (fresh_config / ".env").write_text("FETCH_RELATED_CAP=7\n")
    try:
        load_configuration(config_file=fresh_config / "missing.yaml")
        assert get_config("fetch.related_cap") == 7
    finally:
        os.environ.pop("FETCH_RELATED_CAP", None)


def test_invalid_yaml_is_ignored(fresh_config):
    config_file = fresh_config / "config.yaml"
    config_file.write_text("api: [unclosed\n")
    load_configuration(config_file=config_file)
    assert get_config("api.base_url", "fallback") == "fallback"


@pytest.mark.parametrize("raw, expected", [("true", True), ("False", False), ("12", 12), ("0.5", 0.5), ("abc", "abc")])
def test_env_values_are_coerced(raw, expected):
    assert settings._coerce(raw) == expected
