"""
Logging helpers shared by the apps.
"""
import json
import logging
from typing import Any

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def log_data(logger: logging.Logger, data: Any, level: str = "debug", label: str = "Data") -> None:
    """Log a structure as indented JSON. Serialization is skipped when the level is filtered out."""
    levelno = _LEVELS.get(level.lower(), logging.DEBUG)
    if not logger.isEnabledFor(levelno):
        return
    logger.log(levelno, "%s:\n%s", label, json.dumps(data, indent=2, ensure_ascii=False, default=str))
