"""Data models for reconciler configuration."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from taint_reconciler.exceptions import ConfigurationError

REGISTERED_LABEL_KEY = "karpenter.sh/registered"
UNREGISTERED_TAINT_KEY = "karpenter.sh/unregistered"


class BackoffConfig(BaseModel):
    """Retry policy for conflicting node updates."""

    steps: int = 5
    duration_seconds: float = 0.01
    factor: float = 2.0
    jitter: float = 0.1
    cap_seconds: float = 1.0

    @field_validator("steps")
    @classmethod
    def validate_steps(cls, v: int) -> int:
        """At least one attempt must be made."""
        if v < 1:
            raise ValueError(f"steps must be at least 1, got {v}")
        return v

    @field_validator("factor")
    @classmethod
    def validate_factor(cls, v: float) -> float:
        if v < 1.0:
            raise ValueError(f"factor must be >= 1.0, got {v}")
        return v

    @field_validator("duration_seconds", "jitter", "cap_seconds")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"value cannot be negative, got {v}")
        return v


class ReconcilerConfig(BaseModel):
    """Reconciler configuration."""

    registered_label_key: str = REGISTERED_LABEL_KEY
    unregistered_taint_key: str = UNREGISTERED_TAINT_KEY
    stabilization_window_seconds: float = 60.0
    interval_seconds: float = 60.0
    request_timeout_seconds: float = 30.0
    backoff: BackoffConfig = Field(default_factory=BackoffConfig)

    @field_validator("registered_label_key", "unregistered_taint_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Validate label and taint keys are not empty."""
        if not v:
            raise ValueError("key cannot be empty")
        return v

    @field_validator("interval_seconds", "request_timeout_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"value must be positive, got {v}")
        return v

    @field_validator("stabilization_window_seconds")
    @classmethod
    def validate_window(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"stabilization window cannot be negative, got {v}")
        return v

    def save(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)

    @classmethod
    def load(cls, path: str | Path) -> "ReconcilerConfig":
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: If the file is missing, unparsable or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                "Pass --config with the path to a YAML file, or omit it to use defaults.",
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse configuration file: {path}", str(e)) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid configuration file: {path}", "Top level must be a mapping."
            )

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {path}", str(e)) from e
