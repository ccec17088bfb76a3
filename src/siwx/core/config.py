"""Configuration using Pydantic BaseSettings."""

import logging
import sys

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from siwx.models.message import DEFAULT_NONCE_ENTROPY_BITS

# 48 bits over a 62-character alphabet is 9 characters, above the 8 minimum
MIN_NONCE_ENTROPY_BITS = 48


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    nonce_entropy_bits: int = Field(
        default=DEFAULT_NONCE_ENTROPY_BITS, alias="SIWX_NONCE_ENTROPY_BITS"
    )

    # JSON-RPC endpoint used for ERC-1271 contract signature checks
    rpc_url: str = Field(default="", alias="SIWX_RPC_URL")

    @model_validator(mode="after")
    def validate_config(self) -> "Settings":
        """Fail fast on settings that would produce weak nonces or no logs."""
        problems = []
        if self.nonce_entropy_bits < MIN_NONCE_ENTROPY_BITS:
            problems.append(
                f"SIWX_NONCE_ENTROPY_BITS must be at least {MIN_NONCE_ENTROPY_BITS}, "
                f"got {self.nonce_entropy_bits}"
            )
        if logging.getLevelName(self.log_level.upper()) not in (
            logging.DEBUG,
            logging.INFO,
            logging.WARNING,
            logging.ERROR,
            logging.CRITICAL,
        ):
            problems.append(f"LOG_LEVEL must be a standard level name, got {self.log_level!r}")
        if problems:
            raise ValueError("Invalid configuration:\n" + "\n".join(f"  - {p}" for p in problems))
        return self


def configure_logging(settings: Settings) -> None:
    """Configure structlog based on application environment.

    - Production: JSON output for log aggregation
    - Development: Console output for human readability
    """
    processors: list = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.app_env == "production":
        # JSON output for production (log aggregation)
        processors += [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
