"""Configuration management for the Gemini Proxy."""

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ForwarderConfig:
    """Upstream settings handed to the forwarder at startup."""
    upstream_base_url: str
    upstream_path: str = "/generate_ai_response"
    timeout_ms: int = 60000
    max_connections: int = 100
    max_keepalive_connections: int = 20

    @property
    def upstream_url(self) -> str:
        return self.upstream_base_url.rstrip("/") + "/" + self.upstream_path.lstrip("/")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


class Settings(BaseSettings):
    """Application settings loaded from the environment (and an optional .env file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server configuration
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=3000, ge=1, le=65535, description="Server port")
    DEBUG: bool = Field(default=False, description="Debug mode")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Logging format: json or text")

    # Upstream AI service
    FASTAPI_URL: str = Field(default="http://localhost:8000", description="Upstream base URL")
    UPSTREAM_PATH: str = Field(default="/generate_ai_response", description="Upstream endpoint path")
    AI_REQUEST_TIMEOUT: int = Field(default=60000, ge=1, description="Upstream timeout in milliseconds")

    # Connection pool
    MAX_CONNECTIONS: int = Field(default=100, ge=1, description="Maximum upstream connections")
    MAX_KEEPALIVE_CONNECTIONS: int = Field(default=20, ge=0, description="Maximum idle keep-alive connections")

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format"""
        valid_formats = ['json', 'text']
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of {valid_formats}")
        return v.lower()

    @field_validator('FASTAPI_URL')
    @classmethod
    def validate_upstream_url(cls, v):
        """Require an absolute http(s) URL for the upstream"""
        if not v.startswith(("http://", "https://")):
            raise ValueError("FASTAPI_URL must start with http:// or https://")
        return v.rstrip("/")

    def get_forwarder_config(self) -> ForwarderConfig:
        """Create the forwarder configuration from settings"""
        return ForwarderConfig(
            upstream_base_url=self.FASTAPI_URL,
            upstream_path=self.UPSTREAM_PATH,
            timeout_ms=self.AI_REQUEST_TIMEOUT,
            max_connections=self.MAX_CONNECTIONS,
            max_keepalive_connections=self.MAX_KEEPALIVE_CONNECTIONS,
        )


@lru_cache
def get_settings() -> Settings:
    """Get application settings, built once per process"""
    return Settings()
