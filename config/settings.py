"""
Centralized configuration using pydantic-settings.

How it works:
- Reads environment variables automatically (e.g., USPS_QUANTUM_MSEC env var → Settings.USPS_QUANTUM_MSEC)
- Falls back to defaults defined here if env vars are not set
- Can also read from a .env file in the working directory

The quantum has two sources with a fixed precedence:

    -q on the command line  >  USPS_QUANTUM_MSEC  >  error

resolve_quantum() applies that rule. It runs before any process is
launched, so a bad configuration never leaves children behind.
"""

from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from scheduler.errors import ConfigurationError


class Settings(BaseSettings):
    # ── Scheduler ───────────────────────────────────────────────
    USPS_QUANTUM_MSEC: Optional[int] = None  # fallback quantum when -q is not given

    # ── Status API ──────────────────────────────────────────────
    STATUS_HOST: str = "127.0.0.1"
    STATUS_PORT: Optional[int] = None  # None → no status server

    # ── App ─────────────────────────────────────────────────────
    LOG_LEVEL: str = "WARNING"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def load_settings() -> Settings:
    """Build Settings from the environment, reporting bad values as ConfigurationError."""
    try:
        return Settings()
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        raise ConfigurationError(f"Invalid configuration value(s): {fields}") from e


def resolve_quantum(override: Optional[int], fallback: Optional[int]) -> int:
    """
    Pick the effective quantum in milliseconds.

    An explicit override always wins, even when a fallback is present.
    The chosen value must be a positive integer.
    """
    quantum = override if override is not None else fallback
    if quantum is None:
        raise ConfigurationError(
            "No quantum given: pass -q or set USPS_QUANTUM_MSEC"
        )
    if quantum <= 0:
        raise ConfigurationError(f"Quantum must be positive, got {quantum}")
    return quantum
