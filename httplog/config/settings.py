from typing import Optional
from urllib.parse import parse_qsl, quote_plus, urlencode, urlsplit, urlunsplit

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ASYNC_POSTGRES_SCHEME = "postgresql+asyncpg://"
_PLAIN_POSTGRES_SCHEMES = ("postgres://", "postgresql://")


def _libpq_sslmode_to_asyncpg(dsn: str) -> str:
    """Rename libpq's ``sslmode`` query parameter to asyncpg's ``ssl``."""

    parts = urlsplit(dsn)
    query = [
        ("ssl" if key == "sslmode" else key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query)))


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    dsn: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DB_URL", "POSTGRES_DSN"),
        description="Full connection string; overrides the individual fields.",
    )
    host: str = "localhost"
    port: int = 5432
    username: str = "user"
    password: SecretStr = Field(default=SecretStr("password"))
    database: str = "httplog"

    # Pool limits
    pool_size: int = Field(default=10, ge=1)
    max_overflow: int = Field(default=0, ge=0)
    pool_recycle_seconds: int = Field(default=30 * 60, ge=1)
    pool_idle_timeout_seconds: int = Field(default=5 * 60, ge=1)
    connect_timeout_seconds: float = Field(default=3.0, gt=0)
    operation_timeout_seconds: Optional[float] = Field(default=None, gt=0)

    @field_validator("dsn")
    @classmethod
    def normalise_dsn(cls, value: Optional[str]) -> Optional[str]:
        """Route plain PostgreSQL DSNs through the asyncpg driver."""

        if not value:
            return None
        for scheme in _PLAIN_POSTGRES_SCHEMES:
            if value.startswith(scheme):
                value = _ASYNC_POSTGRES_SCHEME + value[len(scheme):]
                break
        if value.startswith(_ASYNC_POSTGRES_SCHEME):
            value = _libpq_sslmode_to_asyncpg(value)
        return value

    @property
    def url(self) -> str:
        """Get database URL"""
        if self.dsn:
            return self.dsn
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            _ASYNC_POSTGRES_SCHEME
            + f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "HTTP Log Service"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080
    log_file: str = "logs/app.log"

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
