import logging
import os
import secrets

import keyring
import yaml
from dotenv import load_dotenv

from settings_schema import AppSettings, validate_settings

APP_VERSION = "1.0.0"

log = logging.getLogger("fittrack.config")

ENV_KEYS = {
    "HOST": "host",
    "PORT": "port",
    "DATABASE_URL": "database_url",
    "JWT_SECRET": "jwt_secret",
    "TOKEN_TTL_SECONDS": "token_ttl_seconds",
    "CORS_ORIGINS": "cors_origins",
    "LOG_LEVEL": "log_level",
    "API_URL": "api_url",
}


class YamlConfig:
    """YAML settings file.

    With ``ENCRYPT_SETTINGS=1`` the signing secret is kept in the OS keyring
    and the file only records a placeholder for it.
    """

    SECRET_KEY = "jwt_secret"
    SERVICE = "fittrack"
    PLACEHOLDER = "<keyring>"

    def __init__(self, path: str = "settings.yaml") -> None:
        self.path = path
        self.encrypt = os.environ.get("ENCRYPT_SETTINGS") == "1"

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if data.get(self.SECRET_KEY) == self.PLACEHOLDER:
            secret = keyring.get_password(self.SERVICE, self.SECRET_KEY) if self.encrypt else None
            if secret is None:
                log.warning("Signing secret in %s is not available from the keyring", self.path)
                data.pop(self.SECRET_KEY)
            else:
                data[self.SECRET_KEY] = secret
        return data

    def save(self, data: dict) -> None:
        out = dict(data)
        if self.encrypt and out.get(self.SECRET_KEY):
            keyring.set_password(self.SERVICE, self.SECRET_KEY, str(out[self.SECRET_KEY]))
            out[self.SECRET_KEY] = self.PLACEHOLDER
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(out, f)


def load_settings(yaml_path: str = "settings.yaml") -> AppSettings:
    """Return settings merged from defaults, ``yaml_path`` and the environment.

    Environment variables win over the YAML file. A ``.env`` file in the
    working directory is loaded first. Raises ``ValueError`` when the merged
    values do not validate.
    """
    load_dotenv()
    data = YamlConfig(yaml_path).load()
    for env_key, key in ENV_KEYS.items():
        value = os.environ.get(env_key)
        if value not in (None, ""):
            data[key] = value
    return validate_settings(data)


def resolve_secret(settings: AppSettings) -> str:
    if settings.jwt_secret:
        return settings.jwt_secret
    log.warning(
        "No JWT secret configured; using a random secret, tokens will not survive a restart"
    )
    return secrets.token_urlsafe(32)
