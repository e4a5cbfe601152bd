"""Configuration models for Beacon."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class AIConfig(BaseModel):
    """External assignment generator configuration."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    enabled: bool = Field(default=False, description="Try AI-generated assignments first")
    model: Optional[str] = Field(
        default=None,
        description="Model override (falls back to OPENAI_MODEL_TASK_ASSIGNMENT / OPENAI_MODEL)",
    )
    api_key_env: str = Field(default="OPENAI_API_KEY", description="API key env var name")
    max_retries: int = Field(default=3, ge=0, description="Max retries per request")
    base_backoff_ms: int = Field(default=400, ge=0, description="Initial backoff delay")
    max_backoff_ms: int = Field(default=12_000, ge=0, description="Backoff delay cap")
    max_server_delay_ms: int = Field(
        default=60_000, ge=0, description="Cap on server-suggested retry delays"
    )
    timeout_sec: float = Field(default=30.0, gt=0, description="Attempt window for the AI step")
    prompt_dir: Optional[Path] = Field(
        default=None, description="Directory holding prompt markdown overrides"
    )
    require_balanced_output: bool = Field(
        default=True,
        description="Reject AI proposals that skew member load",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: LogLevel = Field(default="INFO", description="Log level")
    log_dir: Optional[Path] = Field(default=None, description="Log directory")
    rotation_mb: int = Field(default=10, ge=1, description="Log rotation size (MB)")
    retention_days: int = Field(
        default=7, description="Log retention days (<=0 keeps every file)"
    )

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value


class BeaconConfig(BaseModel):
    """Main configuration model."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    ai: AIConfig = Field(default_factory=AIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
