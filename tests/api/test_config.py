"""
Tests for application settings.
"""

import pytest
from pydantic import ValidationError

from library_api.config import LibrarySettings


def test_defaults():
    settings = LibrarySettings(_env_file=None)
    assert settings.api_prefix == "/api"
    assert settings.storage_backend == "memory"
    assert settings.rate_limit_rules == "1000/5m,200/10s"
    assert settings.cache_max_age == 600


def test_values_are_normalized():
    settings = LibrarySettings(
        _env_file=None, storage_backend="MongoDB", log_level="debug", log_format="CONSOLE", api_prefix="v1/"
    )
    assert settings.storage_backend == "mongodb"
    assert settings.log_level == "DEBUG"
    assert settings.log_format == "console"
    assert settings.api_prefix == "/v1"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CACHE_MAX_AGE", "60")
    monkeypatch.setenv("SEED_DATA", "false")
    settings = LibrarySettings(_env_file=None)
    assert settings.cache_max_age == 60
    assert settings.seed_data is False


@pytest.mark.parametrize("field,value", [
    ("storage_backend", "sqlite"),
    ("log_level", "verbose"),
    ("log_format", "xml"),
])
def test_invalid_values(field, value):
    with pytest.raises(ValidationError):
        LibrarySettings(_env_file=None, **{field: value})
