from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s | %(message)s"

# Chatty client libraries used by the text generators.
QUIET_LOGGERS = ("urllib3", "google", "grpc")


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv("APP_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(log_file: Path | None = None, level: str | None = None) -> None:
    """
    Configure the root logger once per process.

    Later calls only attach a file handler for `log_file` (one per path), so
    each pipeline run can log into its own project file.
    """
    log_level = _resolve_level(level)
    root_logger = logging.getLogger()
    if root_logger.handlers:
        if level:
            root_logger.setLevel(log_level)
        if log_file:
            _ensure_file_handler(root_logger, log_file, log_level)
        return

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    logging.basicConfig(level=log_level, format=LOG_FORMAT, handlers=handlers)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def _ensure_file_handler(logger: logging.Logger, log_file: Path, level: int) -> None:
    target = str(log_file.resolve())
    if any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == target
        for handler in logger.handlers
    ):
        return
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
