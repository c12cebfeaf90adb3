"""
Configuration management for the PetWell staff directory.

Uses Pydantic Settings for type-safe configuration with
environment variable support.
"""

from functools import lru_cache
from typing import Annotated, Any, List, Optional

from pydantic import Field, PostgresDsn, RedisDsn, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "PetWell Staff Directory"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = Field(default="development", pattern="^(development|staging|production)$")

    # API
    api_prefix: str = "/api/v1"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    cors_origins: Annotated[List[str], NoDecode] = ["http://localhost:3000"]

    # Security
    secret_key: str = Field(..., min_length=32)
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=120, gt=0)
    protected_prefixes: Annotated[List[str], NoDecode] = ["/employees", "/users"]

    # Token revocation
    revocation_backend: str = Field(default="memory", pattern="^(memory|redis)$")
    revocation_ttl_seconds: Optional[int] = Field(default=None, gt=0)
    revocation_max_entries: int = Field(default=10000, gt=0)
    redis_url: Optional[RedisDsn] = None

    # Credential store
    principal_store: str = Field(default="memory", pattern="^(memory|postgres)$")
    database_url: Optional[PostgresDsn] = None
    database_pool_size: int = 10

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_capacity: int = Field(default=10, gt=0)
    rate_limit_refill_per_minute: float = Field(default=10.0, gt=0)

    # Monitoring
    enable_metrics: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"

    @field_validator("cors_origins", "protected_prefixes", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: Any) -> List[str]:
        """Parse a list from a comma-separated string or list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @model_validator(mode="after")
    def check_backends(self) -> "Settings":
        """Require connection URLs for the external backends that are enabled."""
        if self.revocation_backend == "redis" and self.redis_url is None:
            raise ValueError("redis_url is required when revocation_backend is 'redis'")
        if self.principal_store == "postgres" and self.database_url is None:
            raise ValueError("database_url is required when principal_store is 'postgres'")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def access_token_ttl_seconds(self) -> int:
        """Token validity window in seconds."""
        return self.access_token_expire_minutes * 60

    @property
    def effective_revocation_ttl(self) -> int:
        """Revocation entries live exactly as long as the tokens they revoke, unless overridden."""
        return self.revocation_ttl_seconds or self.access_token_ttl_seconds

    @property
    def protected_paths(self) -> List[str]:
        """Protected prefixes resolved under the API prefix."""
        return [f"{self.api_prefix}{prefix}" for prefix in self.protected_prefixes]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
