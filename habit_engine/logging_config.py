from __future__ import annotations

import logging
from logging import Logger
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# APScheduler logs every job run at INFO
NOISY_LOGGERS = ("apscheduler.executors.default", "apscheduler.scheduler")


def setup_logging(level_name: Optional[str] = None) -> Logger:
    """
    Configures the root logger once for the engine and its scheduler.

    `level_name` overrides LOG_LEVEL from settings; unknown names fall back to INFO.
    """
    level = getattr(logging, (level_name or settings.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return logging.getLogger("habit_engine")
