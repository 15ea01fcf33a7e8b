from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic (sqlite file next to the repo).
    - Every value can be overridden with an `APP_` prefixed env var.
    - `jwt_secret` MUST be overridden outside of local development.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    db_url: str | None = None
    security_config_path: str | None = None
    log_level: str = "INFO"

    jwt_secret: str = "change-me-local-development-secret"
    jwt_algorithm: str = "HS256"
    jwt_access_expiration_minutes: int = 30
    jwt_refresh_expiration_days: int = 30

    # Optional bootstrap admin, created on startup when both are set.
    admin_email: str | None = None
    admin_password: str | None = None

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "portfolio.db"
        return f"sqlite:///{db_path}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "security_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
