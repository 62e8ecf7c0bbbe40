# -*- coding: utf-8 -*-
from __future__ import annotations
import logging, logging.handlers
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "book_inventory.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

# server loggers that do not propagate to root on their own
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")


def _has_our_handler(lg: logging.Logger) -> bool:
    return any(getattr(h, "baseFilename", "").endswith(LOG_FILE_NAME) for h in lg.handlers)


def _level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings) -> Optional[Path]:
    """
    Apply LOG_LEVEL and, with LOG_TO_FILE, attach one rotating file under
    INVENTORY_DATA_ROOT/logs/book_inventory.log. Safe to call repeatedly.
    """
    level = _level(settings.LOG_LEVEL)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not settings.LOG_TO_FILE:
        return None

    log_path = Path(settings.INVENTORY_DATA_ROOT).expanduser() / "logs" / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    file_handler.setLevel(level)

    for lg in (root_logger, *(logging.getLogger(n) for n in SERVER_LOGGERS)):
        lg.setLevel(level)
        if not _has_our_handler(lg):
            lg.addHandler(file_handler)

    return log_path
