"""Environment-driven defaults and logging setup for built clients."""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _optional_millis(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer number of milliseconds.") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative.")
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    """Fallback timeouts used when a client's configuration does not set them."""

    connect_timeout_ms: int | None = None
    read_timeout_ms: int | None = None
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Python-dotenv is used so developers can rely on a local .env file without
        exporting variables globally.
        """
        load_dotenv()

        log_level = os.getenv("LOG_LEVEL", "").strip().upper() or "INFO"
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"LOG_LEVEL {log_level!r} is not a known logging level.")

        return cls(
            connect_timeout_ms=_optional_millis("RESTCLIENT_CONNECT_TIMEOUT_MS"),
            read_timeout_ms=_optional_millis("RESTCLIENT_READ_TIMEOUT_MS"),
            log_level=log_level,
        )


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format=LOG_FORMAT,
    )
