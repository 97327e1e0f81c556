"""
Tests unitarios para la configuracion.
"""
import pytest

from lifelog_sync.core.config import Settings, validate_config
from lifelog_sync.shared.exceptions.sync import ConfigurationError


REQUIRED_ENV = {
    "LIMITLESS_API_KEY": "lim",
    "NOTION_API_KEY": "not",
    "NOTION_DATABASE_ID": "db",
    "OPENAI_API_KEY": "oai",
}


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Aisla los tests del entorno y de cualquier .env del cwd."""
    monkeypatch.chdir(tmp_path)
    for name in list(REQUIRED_ENV) + ["POLL_INTERVAL_MS"]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Tests para Settings."""

    def test_defaults(self, clean_env) -> None:
        config = Settings()

        assert config.POLL_INTERVAL_MS == 30000
        assert config.poll_interval_seconds == 30.0
        assert config.SCHEMA_CACHE_TTL_MS == 3600000
        assert config.NOTION_VERSION == "2022-06-28"
        assert config.STATE_FILE == ".last-seen-state.json"
        assert config.SCHEMA_CACHE_FILE == ".notion-schema-cache.json"

    def test_reads_poll_interval_from_env(self, clean_env) -> None:
        clean_env.setenv("POLL_INTERVAL_MS", "5000")

        assert Settings().poll_interval_seconds == 5.0

    def test_missing_required_lists_all(self, clean_env) -> None:
        clean_env.setenv("NOTION_API_KEY", "x")

        assert Settings().missing_required() == [
            "LIMITLESS_API_KEY",
            "NOTION_DATABASE_ID",
            "OPENAI_API_KEY",
        ]


class TestValidateConfig:
    """Tests para validate_config()."""

    def test_raises_configuration_error_when_missing(self, clean_env) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            validate_config(Settings())

        assert exc_info.value.error_code == "CONFIGURATION_ERROR"
        assert "LIMITLESS_API_KEY" in exc_info.value.missing

    def test_passes_when_all_present(self, clean_env) -> None:
        for name, value in REQUIRED_ENV.items():
            clean_env.setenv(name, value)

        validate_config(Settings())
