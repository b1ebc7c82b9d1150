"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
Values are layered: .env file, then environment variables, then command-line
overrides applied by the CLI after loading.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """Chat-completions endpoint configuration."""

    api_key: str = Field(
        default="",
        description="Bearer credential for the completion endpoint (e.g. a GitHub token). Required.",
    )
    endpoint: str = Field(
        default="https://models.inference.ai.azure.com",
        description="Base URL of the OpenAI-compatible endpoint; requests go to {endpoint}/chat/completions",
    )
    model: str = Field(default="gpt-4o-mini", description="Model name, e.g. 'gpt-4o-mini'")
    max_tokens: int = Field(default=1000, gt=0, description="Maximum tokens in response")
    temperature: float = Field(default=0.7, ge=0.0, le=1.0, description="Sampling temperature")
    user_agent: str = Field(
        default="Weatherman/1.0", description="Client identifier sent with every request"
    )

    model_config = SettingsConfigDict(env_prefix="LLM_", validate_assignment=True)

    @field_validator("endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class ToolSettings(BaseSettings):
    """Weather tool server configuration."""

    server_url: str = Field(
        default="",
        description="WebSocket URL of the weather tool server, e.g. ws://localhost:8080/mcp. Required.",
    )
    forecast_days: int = Field(default=3, ge=1, description="Days requested from get_weather_forecast")
    open_timeout: float | None = Field(
        default=10.0, description="Seconds to wait for the connection handshake (None waits forever)"
    )
    max_message_size: int | None = Field(
        default=2**20, description="Largest accepted reply message in bytes (None disables the limit)"
    )

    model_config = SettingsConfigDict(env_prefix="TOOL_", validate_assignment=True)

    @field_validator("server_url")
    @classmethod
    def _require_websocket_scheme(cls, value: str) -> str:
        # Empty is left for missing_required() to report
        if value and not value.startswith(("ws://", "wss://")):
            raise ValueError(f"server_url must start with ws:// or wss://, got {value!r}")
        return value


class Settings(BaseSettings):
    """Main application settings."""

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Sub-configurations
    llm: LLMSettings = Field(default_factory=LLMSettings)
    tool: ToolSettings = Field(default_factory=ToolSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    def missing_required(self) -> list[str]:
        """
        List required settings that are not set.

        Returns:
            Environment variable names of the missing settings, empty if
            the configuration is complete.
        """
        missing = []
        if not self.llm.api_key:
            missing.append("LLM__API_KEY")
        if not self.tool.server_url:
            missing.append("TOOL__SERVER_URL")
        return missing


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
