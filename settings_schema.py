from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator


class AppSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=5000, ge=1, le=65535)
    database_url: str = "sqlite:///fittrack.db"
    jwt_secret: Optional[str] = None
    token_ttl_seconds: int = Field(default=7 * 24 * 3600, gt=0)
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    api_url: str = "http://localhost:5000"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("database_url")
    @classmethod
    def _sqlite_only(cls, value: str) -> str:
        if "://" in value and not value.startswith("sqlite:///"):
            raise ValueError("only sqlite:/// database URLs are supported")
        return value

    @property
    def db_path(self) -> str:
        """Filesystem path of the SQLite database."""
        if self.database_url.startswith("sqlite:///"):
            return self.database_url[len("sqlite:///"):]
        return self.database_url


def validate_settings(data: dict) -> AppSettings:
    try:
        return AppSettings(**data)
    except ValidationError as e:
        raise ValueError(str(e))
