"""usermgmt configuration system using Pydantic Settings."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "CHANGE_ME_IN_PRODUCTION"


class UserMgmtConfig(BaseSettings):
    """Main configuration class. Loads from .env file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "usermgmt"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 5000

    # Database
    database_url: str = "sqlite+aiosqlite:///./usermgmt.db"

    # Auth
    secret_key: str = DEFAULT_SECRET_KEY
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 60
    bcrypt_rounds: int = 10

    # HTTP
    cors_origins: str = "*"

    # Logging
    log_dir: str = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        allowed = {"HS256", "HS384", "HS512"}
        if v not in allowed:
            raise ValueError(f"jwt_algorithm must be one of {allowed}")
        return v

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if not 4 <= v <= 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")
        return v

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def get_config() -> UserMgmtConfig:
    """Factory function to create config instance."""
    return UserMgmtConfig()
