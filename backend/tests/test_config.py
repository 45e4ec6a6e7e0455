"""Tests for environment-driven configuration."""

import pytest

from docforge.core.config import DEFAULT_LISTENER_TIMEOUT, AppConfig, resolve_base_path

ENV_VARS = (
    "DATABASE_URL",
    "DOCFORGE_DB_PATH",
    "DOCFORGE_SCHEMA_PATH",
    "DOCFORGE_ENV",
    "DOCFORGE_API_PREFIX",
    "DOCFORGE_LISTENER_TIMEOUT",
    "DOCFORGE_ERROR_STATUS_CODES",
    "DOCFORGE_DEV_USER",
    "DOCFORGE_CORS_ORIGINS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestAppConfig:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = AppConfig.from_env()
        assert config.database_url == f"sqlite:///{tmp_path / 'data' / 'docforge.db'}"
        assert config.schema_path == tmp_path / "schemas"
        assert config.environment == "development"
        assert config.api_prefix == "/api"
        assert config.listener_timeout == DEFAULT_LISTENER_TIMEOUT
        assert config.error_status_codes is False
        assert config.dev_user is None
        assert config.cors_origins == []
        assert not config.is_production

    def test_base_path_defaults(self, tmp_path):
        config = AppConfig.from_env(tmp_path)
        assert config.database_url == f"sqlite:///{tmp_path / 'data' / 'docforge.db'}"
        assert config.schema_path == tmp_path / "schemas"

    def test_database_url_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///explicit.db")
        monkeypatch.setenv("DOCFORGE_DB_PATH", "/tmp/other.db")
        assert AppConfig.from_env(tmp_path).database_url == "sqlite:///explicit.db"

    def test_db_path(self, monkeypatch):
        monkeypatch.setenv("DOCFORGE_DB_PATH", "/tmp/docforge.db")
        assert AppConfig.from_env().database_url == "sqlite:////tmp/docforge.db"

    def test_environment_and_prefix(self, monkeypatch):
        monkeypatch.setenv("DOCFORGE_ENV", "Production")
        monkeypatch.setenv("DOCFORGE_API_PREFIX", "/v1/")
        config = AppConfig.from_env()
        assert config.is_production
        assert config.api_prefix == "/v1"

    def test_listener_timeout(self, monkeypatch):
        monkeypatch.setenv("DOCFORGE_LISTENER_TIMEOUT", "2.5")
        assert AppConfig.from_env().listener_timeout == 2.5

    def test_zero_timeout_disables(self, monkeypatch):
        monkeypatch.setenv("DOCFORGE_LISTENER_TIMEOUT", "0")
        assert AppConfig.from_env().listener_timeout is None

    def test_invalid_timeout(self, monkeypatch):
        monkeypatch.setenv("DOCFORGE_LISTENER_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="DOCFORGE_LISTENER_TIMEOUT"):
            AppConfig.from_env()

    def test_flags_and_lists(self, monkeypatch):
        monkeypatch.setenv("DOCFORGE_ERROR_STATUS_CODES", "true")
        monkeypatch.setenv("DOCFORGE_DEV_USER", "dev")
        monkeypatch.setenv("DOCFORGE_CORS_ORIGINS", "http://a.test, http://b.test,")
        config = AppConfig.from_env()
        assert config.error_status_codes is True
        assert config.dev_user == "dev"
        assert config.cors_origins == ["http://a.test", "http://b.test"]

    def test_default_database_is_never_in_memory(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        assert ":memory:" not in AppConfig.from_env().database_url


class TestResolveBasePath:
    def test_working_directory(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        assert resolve_base_path() == tmp_path

    def test_backend_directory_maps_to_project_root(self, monkeypatch, tmp_path):
        backend = tmp_path / "backend"
        backend.mkdir()
        monkeypatch.chdir(backend)
        assert resolve_base_path() == tmp_path
        assert AppConfig.from_env().database_url == (
            f"sqlite:///{tmp_path / 'data' / 'docforge.db'}"
        )
