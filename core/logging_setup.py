from __future__ import annotations
import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from typing import Optional, Union

from utils.logger import JsonFormatter

DEFAULT_LOG_PATH = Path.home() / "tabkeeper_logs"


def configure_logging(name: str = "tabkeeper", level: Union[int, str] = logging.INFO, log_dir: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger  # already configured

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    # console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s - %(message)s"))

    # rotating file handler, structured
    log_path = Path(log_dir) if log_dir else DEFAULT_LOG_PATH
    log_path.mkdir(parents=True, exist_ok=True)
    fh = RotatingFileHandler(log_path / f"{name}.log", maxBytes=2_000_000, backupCount=3)
    fh.setLevel(level)
    fh.setFormatter(JsonFormatter())

    logger.addHandler(ch)
    logger.addHandler(fh)
    logger.propagate = False
    logger.debug("Logger configured")
    return logger
