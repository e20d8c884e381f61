"""Configuration management using Pydantic settings.

Two-layer configuration system:
1. Environment: Loads raw values from environment variables (UPPER_CASE)
2. Settings: Clean application settings with lowercase fields and derived values
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rds_exporter.exceptions import ConfigurationError

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DEFAULT_REGION = "us-east-1"
_DEFAULT_PORT = 9761
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Environment(BaseSettings):
    """Raw environment variable loading."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── AWS ────────────────────────────────────────────────────────────

    AWS_REGION: str = Field(default=_DEFAULT_REGION)
    AWS_ACCESS_KEY_ID: str = Field(default="")
    AWS_SECRET_ACCESS_KEY: str = Field(default="")
    AWS_SESSION_TOKEN: str = Field(default="")
    AWS_CONNECT_TIMEOUT: int = Field(default=60)
    AWS_READ_TIMEOUT: int = Field(default=60)

    # ── Exporter ───────────────────────────────────────────────────────

    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=_DEFAULT_PORT)
    WAITRESS_THREADS: int = Field(default=4)
    METRICS_UPDATE_INTERVAL: int = Field(default=300)
    GRACEFUL_SHUTDOWN_TIMEOUT: int = Field(default=30)
    LOG_LEVEL: str = Field(default="INFO")


class Settings(BaseModel):
    """Application settings with lowercase fields and derived values."""

    model_config = ConfigDict(from_attributes=True)

    # ── AWS ────────────────────────────────────────────────────────────

    aws_region: str = _DEFAULT_REGION
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_session_token: str = ""
    aws_connect_timeout: int = 60
    aws_read_timeout: int = 60

    # ── Exporter ───────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    port: int = _DEFAULT_PORT
    waitress_threads: int = 4
    metrics_update_interval: int = 300
    graceful_shutdown_timeout: int = 30
    log_level: str = "INFO"

    @property
    def has_static_credentials(self) -> bool:
        """Static keys are used only when both halves are present."""
        return bool(self.aws_access_key_id and self.aws_secret_access_key)

    def validate_config(self) -> None:
        errors: list[str] = []

        if self.metrics_update_interval <= 0:
            errors.append("METRICS_UPDATE_INTERVAL must be a positive number of seconds")

        if not 0 < self.port < 65536:
            errors.append(f"PORT must be between 1 and 65535, got {self.port}")

        if self.waitress_threads < 1:
            errors.append("WAITRESS_THREADS must be at least 1")

        if self.aws_connect_timeout <= 0 or self.aws_read_timeout <= 0:
            errors.append("AWS_CONNECT_TIMEOUT and AWS_READ_TIMEOUT must be positive")

        if self.log_level not in _LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            )

    @classmethod
    def load(cls, env: "Environment | None" = None) -> "Settings":
        if env is None:
            env = Environment()

        # An exported but empty AWS_REGION falls back to the default
        aws_region = env.AWS_REGION or _DEFAULT_REGION

        # The session token only accompanies static keys
        if env.AWS_ACCESS_KEY_ID and env.AWS_SECRET_ACCESS_KEY:
            aws_session_token = env.AWS_SESSION_TOKEN
        else:
            aws_session_token = ""

        return cls(
            # AWS
            aws_region=aws_region,
            aws_access_key_id=env.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=env.AWS_SECRET_ACCESS_KEY,
            aws_session_token=aws_session_token,
            aws_connect_timeout=env.AWS_CONNECT_TIMEOUT,
            aws_read_timeout=env.AWS_READ_TIMEOUT,

            # Exporter
            host=env.HOST,
            port=env.PORT,
            waitress_threads=env.WAITRESS_THREADS,
            metrics_update_interval=env.METRICS_UPDATE_INTERVAL,
            graceful_shutdown_timeout=env.GRACEFUL_SHUTDOWN_TIMEOUT,
            log_level=env.LOG_LEVEL.upper(),
        )
