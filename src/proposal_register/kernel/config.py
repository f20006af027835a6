"""
Register configuration

Operational settings for the register process: where the event log lives,
how logs are rendered, which ports the metrics and health servers bind.
Values come from keyword arguments, then PROPOSAL_REGISTER_* environment
variables, then defaults.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from proposal_register.kernel.logging import is_production

ENV_PREFIX = "PROPOSAL_REGISTER_"


class RegisterConfig(BaseModel):
    """Process-level settings for a proposal register deployment"""

    db_path: Path = Field(
        default=Path(".proposals.db"),
        description="SQLite file holding the event log",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    json_logs: bool = Field(
        default_factory=is_production,
        description="Render logs as JSON lines (defaults on in production)",
    )

    metrics_port: int = Field(default=9090, ge=1, le=65535)

    health_port: int = Field(default=8080, ge=1, le=65535)

    activity_feed_size: int = Field(
        default=50,
        ge=1,
        description="Number of recent notifications kept for the activity feed",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls, **overrides: object) -> "RegisterConfig":
        """
        Build configuration from the environment

        Explicit keyword overrides win over environment variables; None
        overrides are ignored so CLI options can be passed straight through.
        """
        values: dict[str, object] = {}
        env_names = {
            "db_path": "DB",
            "log_level": "LOG_LEVEL",
            "json_logs": "JSON_LOGS",
            "metrics_port": "METRICS_PORT",
            "health_port": "HEALTH_PORT",
            "activity_feed_size": "FEED_SIZE",
        }
        for field_name, suffix in env_names.items():
            raw = os.getenv(ENV_PREFIX + suffix)
            if raw is not None and raw != "":
                values[field_name] = raw

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
