"""Process-wide logging configuration."""

import logging
from pathlib import Path
from typing import Optional

from config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure root logging once for the process.

    Args:
        log_level: Level name; defaults to Settings.log_level
        log_file: Optional file to mirror console output into
    """
    level_name = (log_level or get_settings().log_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # SQL echo is controlled by the engine, keep the pool quiet otherwise
    if level > logging.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
