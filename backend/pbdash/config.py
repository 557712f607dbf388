"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict

# Project root: pb-dash/
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./pbdash.db",
        description="Database connection URL"
    )

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === Internal API ===
    internal_api_key: Optional[str] = Field(
        default=None,
        description="Shared secret for /internal endpoints (X-API-Key header)"
    )

    # === Concept2 Logbook ===
    concept2_client_id: Optional[str] = Field(default=None)
    concept2_client_secret: Optional[str] = Field(default=None)
    concept2_environment: str = Field(
        default="dev",
        description="Logbook environment: 'dev' (log-dev) or 'prod' (log)"
    )
    concept2_redirect_uri: str = Field(
        default="http://localhost:8000/api/v1/concept2/callback"
    )
    concept2_scope: str = Field(default="user:read,results:read")
    concept2_http_timeout_s: float = Field(default=30.0)
    concept2_max_pages: int = Field(
        default=500,
        description="Hard ceiling on pages fetched in one sync run"
    )

    # === Sync ===
    sync_write_batch_size: int = Field(default=500, ge=1)
    sync_fetch_timeout_s: float = Field(
        default=120.0,
        description="Wall-clock budget for the pagination loop"
    )
    pipeline_timeout_s: float = Field(
        default=300.0,
        description="Wall-clock budget for sync + extraction + rescoping"
    )
    lease_ttl_s: int = Field(
        default=600,
        description="Lifetime of a single-flight operation lease"
    )

    @property
    def concept2_base_url(self) -> str:
        if self.concept2_environment == "prod":
            return "https://log.concept2.com"
        return "https://log-dev.concept2.com"

    @property
    def concept2_api_url(self) -> str:
        return f"{self.concept2_base_url}/api"

    @property
    def concept2_oauth_url(self) -> str:
        return f"{self.concept2_base_url}/oauth"

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('concept2_environment')
    @classmethod
    def check_environment(cls, v: str) -> str:
        v = v.lower()
        if v not in ("dev", "prod"):
            raise ValueError("concept2_environment must be 'dev' or 'prod'")
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
