"""Logging for schedtop.

The terminal belongs to the UI while schedtop runs, so structured events are
written as JSON Lines to a rotating file through structlog. Messages meant
for the user before or after the UI runs are printed with Rich.
"""

from __future__ import annotations

import logging
import logging.handlers
from typing import TYPE_CHECKING

import structlog
from rich.console import Console

if TYPE_CHECKING:
    from schedtop.config import Config

_console = Console(stderr=True, highlight=False)


def error(msg: str) -> None:
    """Print an error for the user on stderr."""
    _console.print(f"[bold red]✗[/] {msg}")


def configure(config: Config) -> None:
    """Configure structlog to write JSON Lines to the rotating log file.

    Args:
        config: Application config with log path and rotation settings
    """
    config.state_dir.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, config.logging.level.upper())

    file_handler = logging.handlers.RotatingFileHandler(
        config.log_path,
        maxBytes=config.logging.max_bytes,
        backupCount=config.logging.backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=[
                structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
                structlog.processors.add_log_level,
                structlog.processors.format_exc_info,
            ],
        )
    )

    stdlib_root = logging.getLogger()
    stdlib_root.setLevel(level)
    stdlib_root.handlers.clear()
    stdlib_root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
