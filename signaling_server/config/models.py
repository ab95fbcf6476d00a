"""
Pydantic-based configuration models for the signaling server.

Each section reads its own environment prefix; AppConfig composes them and
also reads a local ``.env`` file when present.
"""

import json
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_ALLOWED_ORIGINS = [
    "https://dropsilk.xyz",
    "https://www.dropsilk.xyz",
    "https://dropsilk.vercel.app",
    "http://192.168.1.10:3000",
]


def _parse_env_list(candidate: Any) -> list[str]:
    """Parse a value from the environment as JSON list or CSV."""
    if candidate is None:
        return []
    if isinstance(candidate, list | tuple | set):
        return [str(item).strip() for item in candidate if str(item).strip()]
    s = str(candidate).strip()
    if not s:
        return []
    try:
        loaded = json.loads(s)
        if isinstance(loaded, list):
            return [str(item).strip() for item in loaded if str(item).strip()]
    except json.JSONDecodeError:
        pass
    return [item.strip() for item in s.split(",") if item.strip()]


class ServerConfig(BaseSettings):
    """Server network configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")  # nosec B104
    port: int = Field(default=8080, description="Server port")
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("server_environment", "node_env"),
        description="Deployment environment (development, production, test)",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            logger.error("Invalid server port", port=v, valid_range="1-65535")
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate deployment environment."""
        valid_environments = ["development", "production", "test"]
        v_lower = v.lower()
        if v_lower not in valid_environments:
            logger.error("Invalid environment", environment=v, valid_environments=valid_environments)
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v_lower

    model_config = {"env_prefix": "SERVER_", "case_sensitive": False, "extra": "ignore", "populate_by_name": True}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="human", description="Log format")
    log_base: str = Field(default="logs", description="Base log directory")
    file_logging: bool = Field(default=False, description="Write rotating log files under log_base")
    rotation_max_size: str = Field(default="100MB", description="Log rotation max size")
    rotation_backup_count: int = Field(default=5, description="Number of backup log files")
    disable_logging: bool = Field(default=False, description="Disable all logging")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "human"]
        if v not in valid_formats:
            raise ValueError(f"Log format must be one of {valid_formats}, got '{v}'")
        return v

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Return the nested dict shape consumed by setup_enhanced_logging()."""
        return {
            "level": self.level,
            "format": self.format,
            "log_base": self.log_base,
            "file_logging": self.file_logging,
            "rotation": {
                "max_size": self.rotation_max_size,
                "backup_count": self.rotation_backup_count,
            },
            "disable_logging": self.disable_logging,
        }


class SignalingConfig(BaseSettings):
    """Limits and timers for the flight signaling core."""

    max_message_bytes: int = Field(default=1024 * 1024, description="Largest accepted inbound frame (1 MiB)")
    liveness_interval_seconds: float = Field(default=30.0, description="Seconds between liveness pings")
    shutdown_timeout_seconds: float = Field(default=10.0, description="Bound on graceful shutdown before forced exit")
    max_name_length: int = Field(default=50, description="Maximum display name length")
    flight_code_length: int = Field(default=6, description="Length of generated flight codes")
    flight_code_attempts: int = Field(default=10, description="Collision retries when generating a flight code")
    max_pending_frames: int = Field(default=256, description="Outbound frames queued per client before it is terminated")

    @field_validator(
        "max_message_bytes",
        "max_name_length",
        "flight_code_length",
        "flight_code_attempts",
        "max_pending_frames",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate limits are positive."""
        if v < 1:
            raise ValueError("Signaling limits must be at least 1")
        return v

    @field_validator("liveness_interval_seconds", "shutdown_timeout_seconds")
    @classmethod
    def validate_positive_interval(cls, v: float) -> float:
        """Validate timers are positive."""
        if v <= 0:
            raise ValueError("Signaling timers must be greater than zero")
        return v

    model_config = {"env_prefix": "SIGNALING_", "case_sensitive": False, "extra": "ignore"}


class OriginConfig(BaseSettings):
    """Origin policy for WebSocket upgrade requests."""

    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS),
        validation_alias=AliasChoices("origin_allowed_origins", "allowed_origins"),
        description="Origins accepted in every mode",
    )
    strict: bool | None = Field(
        default=None,
        description="Force strict (True) or permissive (False) mode; None derives it from the environment",
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v: Any) -> list[str]:
        """Accept a JSON list or a comma-separated string."""
        parsed = _parse_env_list(v)
        return parsed or list(DEFAULT_ALLOWED_ORIGINS)

    model_config = {"env_prefix": "ORIGIN_", "case_sensitive": False, "extra": "ignore", "populate_by_name": True}


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    Access via the get_config() function.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    signaling: SignalingConfig = Field(default_factory=SignalingConfig)
    origin: OriginConfig = Field(default_factory=OriginConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.server.environment == "production"

    @property
    def origin_strict_mode(self) -> bool:
        """Strict origin checking unless explicitly configured otherwise, outside production."""
        if self.origin.strict is not None:
            return self.origin.strict
        return self.is_production

    def to_legacy_dict(self) -> dict:
        """Convert to the dict format consumed by the logging setup."""
        return {
            "host": self.server.host,
            "port": self.server.port,
            "environment": self.server.environment,
            "logging": self.logging.to_legacy_dict(),
            "signaling": self.signaling.model_dump(),
            "origin": {
                "allowed_origins": list(self.origin.allowed_origins),
                "strict": self.origin_strict_mode,
            },
        }
