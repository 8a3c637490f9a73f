from functools import lru_cache
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from pydantic import AnyUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _ensure_sqlalchemy_postgres_scheme(value: str) -> str:
    if not value.lower().startswith("postgres"):
        return value

    parsed = urlparse(value)
    scheme = parsed.scheme.lower()

    if scheme == "postgres":
        scheme = "postgresql"

    # The ledger runs on an async engine, so plain postgres URLs need an async driver.
    if scheme == "postgresql":
        scheme = "postgresql+psycopg"

    if scheme not in {"postgresql+psycopg", "postgresql+asyncpg"}:
        scheme = "postgresql+psycopg"

    query_params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query_params.setdefault("sslmode", "require")
    new_query = urlencode(query_params, doseq=True)

    normalized = urlunparse(
        parsed._replace(
            scheme=scheme,
            query=new_query,
        )
    )
    return normalized


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    database_url: AnyUrl | str = Field(
        default="sqlite+aiosqlite:///../data/ledger.db",
        description="SQLAlchemy async database URL",
    )
    supabase_db_url: AnyUrl | str | None = Field(
        default=None,
        description="Supabase pooled Postgres connection string for production runs",
    )
    log_level: str = Field(default="INFO", description="Minimum level emitted by loguru")
    log_json: bool | None = Field(
        default=None,
        description="Emit JSON log lines; defaults to on in production and off elsewhere",
    )
    jwt_secret: str = Field(
        default="dev-secret-change-in-production",
        description="Shared secret used to verify session bearer tokens",
    )
    jwt_issuer: str = Field(
        default="chiliz-football-api",
        description="Expected `iss` claim of session tokens",
    )
    jwt_algorithm: str = Field(default="HS256", description="Session token signing algorithm")
    api_football_base_url: AnyUrl = Field(
        default="https://v3.football.api-sports.io",
        description="Base URL for API-Football",
    )
    api_football_key: str | None = Field(
        default=None,
        description="API-Football key used to fetch match results during settlement",
    )
    api_football_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout for API-Football requests",
        gt=0,
    )
    default_page_size: int = Field(
        default=50,
        description="Default number of predictions returned per page",
        ge=1,
    )
    max_page_size: int = Field(
        default=100,
        description="Upper bound for the `limit` query parameter",
        ge=1,
    )
    settlement_batch_size: int = Field(
        default=25,
        description="Number of matches whose results are fetched concurrently during settlement",
        ge=1,
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized == "WARN":
            normalized = "WARNING"
        valid = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in valid:
            raise ValueError(f"log_level must be one of {', '.join(sorted(valid))}")
        return normalized

    @field_validator("database_url", "supabase_db_url", mode="before")
    @classmethod
    def _normalize_postgres_urls(cls, value: Any) -> Any:
        if value is None or not isinstance(value, str):
            return value

        if value.startswith("postgresql+psycopg://") or value.startswith(
            "postgresql+asyncpg://"
        ):
            return value

        normalized = value
        if normalized.startswith("postgres://"):
            normalized = "postgresql://" + normalized[len("postgres://") :]

        return normalized

    @field_validator("supabase_db_url")
    @classmethod
    def _require_postgres_scheme(cls, value: Any) -> Any:
        if value is None:
            return value
        url_str = str(value)
        scheme = url_str.split(":", 1)[0].lower()
        valid_schemes = {
            "postgres",
            "postgresql",
            "postgresql+psycopg",
            "postgresql+asyncpg",
        }
        if scheme not in valid_schemes:
            raise ValueError(
                "SUPABASE_DB_URL must be a PostgreSQL connection string (e.g. postgresql://...)."
            )
        return value

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def resolved_database_url(self) -> str:
        if self.is_production:
            if not self.supabase_db_url:
                raise ValueError(
                    "SUPABASE_DB_URL must be set when ENVIRONMENT=production"
                )
            return _ensure_sqlalchemy_postgres_scheme(str(self.supabase_db_url))
        return _ensure_sqlalchemy_postgres_scheme(str(self.database_url))

    @property
    def resolved_log_json(self) -> bool:
        if self.log_json is None:
            return self.is_production
        return self.log_json


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
