"""
Framework Configuration.

Centralized timeout configuration with environment variable support
and sensible defaults for dialog handling and condition polling.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_int(env_var: str, default: int) -> int:
    """Read int from env, fallback to default on missing/invalid."""
    try:
        val = os.getenv(env_var)
        if val:
            return int(val)
    except ValueError:
        pass
    return default


def _default_close_dialog_timeout() -> int:
    return _get_int("TIMEOUT_CLOSE_DIALOG", _get_int("TIMEOUT_OPEN_PAGE", 30))


@dataclass
class TimeoutConfig:
    """Timeouts (in seconds unless stated otherwise) used by waits and dialogs."""

    # Timeouts
    default_timeout: int = field(default_factory=lambda: _get_int("TIMEOUT", 60))
    short_timeout: int = field(default_factory=lambda: _get_int("TIMEOUT_SHORT", 10))
    open_page_timeout: int = field(default_factory=lambda: _get_int("TIMEOUT_OPEN_PAGE", 30))
    close_dialog_timeout: int = field(default_factory=_default_close_dialog_timeout)

    # Polling
    pause_ms: int = field(default_factory=lambda: _get_int("WAIT_PAUSE_MS", 100))

    # Dialogs
    purge_alerts: bool = field(
        default_factory=lambda: os.getenv("PURGE_ALERTS", "false").lower() == "true"
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))


def setup_logging(cfg: Optional[TimeoutConfig] = None) -> None:
    """Configure root logging from the given (or global) configuration."""
    cfg = cfg or config
    handlers = [logging.StreamHandler()]
    if cfg.log_file:
        handlers.append(logging.FileHandler(cfg.log_file))
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
    )


config = TimeoutConfig()
