# core/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

# Libraries that log every request at INFO; they only surface warnings.
QUIET_LOGGERS = ("httpx", "httpcore")

_configured = False


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


def _file_handler(path: str) -> RotatingFileHandler:
    log_dir = os.path.dirname(path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(os.getenv("LOG_MAX_BYTES", str(1024 * 1024))),
        backupCount=int(os.getenv("LOG_BACKUPS", "2")),
    )


def setup_logging():
    """
    Configure the root logger once from LOG_* variables. Records go to
    stderr because stdout carries the progress line; a rotating file is
    opt-in with LOG_TO_FILE=true.
    """
    global _configured
    if _configured:
        return

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        handlers = []
        if _env_flag("LOG_TO_STDERR", True):
            handlers.append(logging.StreamHandler(sys.stderr))
        if _env_flag("LOG_TO_FILE", False):
            log_file = os.getenv("LOG_FILE", ".cache/components.log")
            try:
                handlers.append(_file_handler(log_file))
            except OSError as e:
                root.warning("Failed to open log file %s: %s", log_file, e)
        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
