"""
Application configuration using Pydantic Settings.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    # Application
    ENVIRONMENT: str = Field(default="development", description="Environment name")
    DEBUG: bool = Field(default=False, description="Debug mode")

    # Server
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, description="Server port")

    # Database (hosted PostgreSQL with row-level security)
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection string; catalog queries are unavailable without it",
    )
    DB_POOL_SIZE: int = Field(default=10, description="Connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=20, description="Connections allowed above the pool size")
    DB_STATEMENT_TIMEOUT_MS: int = Field(default=30000, description="Statement timeout (milliseconds)")
    DB_IDENTITY_SETTING: str = Field(
        default="request.access_token",
        description="Transaction-local setting that carries the caller's access token to RLS policies",
    )

    # Identity
    SESSION_COOKIE_NAME: str = Field(default="__session", description="Session cookie holding the access token")

    # CORS
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Allowed CORS origins (comma-separated)",
    )

    # Catalog
    DEFAULT_PAGE_SIZE: int = Field(default=12, description="Default page size and load-more increment")
    MAX_PAGE_SIZE: int = Field(default=100, description="Maximum page size")
    FEATURED_LIMIT: int = Field(default=6, description="Number of featured products on the landing page")
    CATALOG_CLIENT_TIMEOUT: float = Field(default=10.0, description="Catalog HTTP client timeout (seconds)")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format (json or text)")

    @field_validator("CORS_ORIGINS")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins into list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("DATABASE_URL")
    @classmethod
    def blank_database_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty DATABASE_URL as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v_upper

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def database_configured(self) -> bool:
        """Check whether a database connection string is available."""
        return bool(self.DATABASE_URL)


# Global settings instance
settings = Settings()
