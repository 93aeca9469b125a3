"""Application settings and configuration management."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://mywaifulist.moe/api/v1"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API Keys
    mywaifulist_api_key: str = Field(default="", description="MyWaifuList API key")

    # API Endpoints
    mywaifulist_api_url: str = Field(
        default=DEFAULT_API_URL,
        description="MyWaifuList API base URL"
    )

    # Request Settings
    mywaifulist_timeout_ms: int = Field(
        default=5000,
        gt=0,
        description="Per-request timeout in milliseconds"
    )
    mywaifulist_user_agent: Optional[str] = Field(
        default=None,
        description="User-Agent sent with every request"
    )

    # Application Settings
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env.lower() == "development"

    def validate_api_keys(self) -> list[str]:
        """Validate required API keys are present."""
        missing = []
        if not self.mywaifulist_api_key.strip():
            missing.append("MYWAIFULIST_API_KEY")
        return missing


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
