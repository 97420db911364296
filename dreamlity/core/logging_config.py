"""Loguru setup for the API and the story pipeline CLI.

Console lines carry the story being worked on (``[story_id=... hero=...]``)
whenever those fields were bound with ``get_logger`` or ``logger.bind``. The
optional file sink writes one JSON object per line so a single story's log can
be pulled out by its ``story_id``.
"""

import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

CONTEXT_KEYS = ("story_id", "hero", "chunk")

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>{extra[context]} | "
    "<level>{message}</level>\n{exception}"
)


def story_context(extra: dict[str, Any]) -> str:
    """Render the bound story fields as `` [story_id=... hero=...]``, or ``""``."""
    fields = [f"{key}={extra[key]}" for key in CONTEXT_KEYS if extra.get(key) not in (None, "")]
    return f" [{' '.join(fields)}]" if fields else ""


def console_format(record: dict[str, Any]) -> str:
    extra = record["extra"]
    extra.setdefault("name", record["name"])
    extra["context"] = story_context(extra)
    return CONSOLE_FORMAT


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Replace loguru's default handler with the Dreamlity sinks.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of a JSON-lines log file
        rotation: Log rotation size
        retention: Log retention period
    """
    logger.remove()
    logger.add(sys.stderr, format=console_format, level=log_level, colorize=True)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=log_level,
            serialize=True,
            rotation=rotation,
            retention=retention,
            compression="zip",
        )


def get_logger(name: str, **context: Any) -> Any:
    """
    Get a logger bound to a module name and story context.

    Args:
        name: Logger name (typically __name__)
        **context: Story fields shown on console lines (story_id, hero, chunk)

    Returns:
        Logger instance with bound context
    """
    return logger.bind(name=name, **context)
