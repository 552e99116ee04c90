"""Logger utilities for SANCF.

``setup_logging`` configures the ``sancf`` logger and ``get_logger`` returns
it. Components take a child logger (``get_logger().getChild("Registrar")``)
instead of creating loggers directly so that output is formatted the same
way everywhere. The dispatcher logs through loguru; ``configure_loguru``
points that output at the same stream and level.
"""

import logging
import sys
from typing import Optional, TextIO

from loguru import logger as _loguru

_LOGGER: Optional[logging.Logger] = None

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGURU_FORMAT = "{time:YYYY-MM-DD HH:mm:ss,SSS} - sancf.{name} - {level} - {message}"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure and return the SANCF logger."""
    global _LOGGER
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout)
    logging.getLogger().setLevel(level)
    logger = logging.getLogger("sancf")
    logger.setLevel(level)
    _LOGGER = logger
    return logger


def configure_loguru(level: int = logging.INFO, stream: Optional[TextIO] = None) -> int:
    """Replace loguru's default sink; returns the new handler id."""
    _loguru.remove()
    return _loguru.add(stream or sys.stdout, level=level, format=LOGURU_FORMAT)


def level_from_name(name: str) -> int:
    """Map a level name such as ``"debug"`` to its numeric value."""
    return getattr(logging, str(name).upper(), logging.INFO)


def get_logger() -> logging.Logger:
    """Return the configured logger instance."""
    return _LOGGER or setup_logging()
