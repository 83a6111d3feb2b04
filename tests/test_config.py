import os
import sys
import logging
import pytest
import yaml

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import ENV_KEYS, load_settings, resolve_secret
from settings_schema import AppSettings, validate_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("ENCRYPT_SETTINGS", raising=False)


def test_defaults(tmp_path):
    settings = load_settings(str(tmp_path / "missing.yaml"))
    assert settings.port == 5000
    assert settings.db_path == "fittrack.db"
    assert settings.cors_origins == ["*"]
    assert settings.token_ttl_seconds == 7 * 24 * 3600
    assert settings.jwt_secret is None


def test_yaml_then_environment(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump({"port": 6000, "jwt_secret": "from-yaml", "log_level": "debug"})
    )
    settings = load_settings(str(path))
    assert settings.port == 6000
    assert settings.jwt_secret == "from-yaml"
    assert settings.log_level == "DEBUG"

    monkeypatch.setenv("PORT", "7000")
    monkeypatch.setenv("JWT_SECRET", "from-env")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///data/fit.db")
    settings = load_settings(str(path))
    assert settings.port == 7000
    assert settings.jwt_secret == "from-env"
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.db_path == "data/fit.db"


def test_invalid_values_rejected(tmp_path, monkeypatch):
    with pytest.raises(ValueError):
        validate_settings({"database_url": "postgresql://localhost/fit"})
    with pytest.raises(ValueError):
        validate_settings({"token_ttl_seconds": 0})
    monkeypatch.setenv("PORT", "not-a-port")
    with pytest.raises(ValueError):
        load_settings(str(tmp_path / "missing.yaml"))


def test_resolve_secret(caplog):
    assert resolve_secret(AppSettings(jwt_secret="configured")) == "configured"
    with caplog.at_level(logging.WARNING, logger="fittrack.config"):
        first = resolve_secret(AppSettings())
        second = resolve_secret(AppSettings())
    assert first and first != second
    assert "No JWT secret configured" in caplog.text
