"""Process-wide logging setup.

Everything goes to stderr and ``<LOG_DIR>/app.log``. Ledger events
(movements, rejected rollbacks, reconciliation) are also written to
``<LOG_DIR>/ledger.log`` so they can be audited on their own.
"""
from __future__ import annotations

import logging
import logging.handlers
import os
import time

from app.core.config import settings

LOG_FORMAT = "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _rotating_file(path: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    os.makedirs(settings.LOG_DIR, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    formatter.converter = time.gmtime

    console = logging.StreamHandler()
    console.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [_rotating_file(os.path.join(settings.LOG_DIR, "app.log"), formatter), console]

    ledger = logging.getLogger("app.ledger")
    ledger.setLevel(level)
    ledger.handlers = [_rotating_file(os.path.join(settings.LOG_DIR, "ledger.log"), formatter)]
    ledger.propagate = True

    logging.getLogger("app.security").setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)


__all__ = ["setup_logging"]
