"""Process-wide settings, loaded once from the environment and ``.env``."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backoffice.core.constants import DEFAULT_INSECURE_SECRET, MIN_SECRET_KEY_LENGTH


_SECRET_HINT = "Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"


class Settings(BaseSettings):
    """Back-office configuration.

    ``permission_mode`` selects the authorization backend: ``database``
    resolves permissions from role assignments, ``allow_all`` grants every
    check and is the default until roles have been seeded.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "School Backoffice"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    secret_key: str = DEFAULT_INSECURE_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = Field(default=24, ge=1)
    refresh_token_expire_days: int = Field(default=7, ge=1)

    permission_mode: Literal["database", "allow_all"] = "allow_all"

    database_url: str = "sqlite+aiosqlite:///./backoffice.db"
    database_echo: bool = False
    database_auto_create: bool = True

    cors_origins: list[str] = []
    api_docs_base_url: str = "https://api.example.com"

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if v != DEFAULT_INSECURE_SECRET and len(v) < MIN_SECRET_KEY_LENGTH:
            raise ValueError(
                f"SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters. {_SECRET_HINT}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def refuse_placeholder_secret_in_production(self) -> "Settings":
        if self.environment == "production" and self.secret_key == DEFAULT_INSECURE_SECRET:
            raise ValueError(f"SECRET_KEY must be set to a secure value in production. {_SECRET_HINT}")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
