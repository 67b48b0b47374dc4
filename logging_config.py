"""
Logging for the catalog service.

Handlers are attached to the root logger the first time `setup_logging` runs;
later calls (tests, reloads under uvicorn) keep the existing configuration.
"""
import logging
import os
import threading
from datetime import datetime

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False
_configure_lock = threading.Lock()


def _resolve_level(level):
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _log_file_handler(log_dir):
    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return logging.FileHandler(os.path.join(log_dir, f"catalog_{stamp}.log"))


def setup_logging(log_level="INFO", log_dir=None):
    """
    Route service logs to stderr, and to a timestamped file under
    ``log_dir`` when one is given.

    Returns:
        logging.Logger: the root logger
    """
    global _configured

    root = logging.getLogger()
    with _configure_lock:
        if _configured:
            return root

        level = _resolve_level(log_level)
        handlers = [logging.StreamHandler()]
        if log_dir:
            handlers.append(_log_file_handler(log_dir))

        root.handlers.clear()
        root.setLevel(level)
        formatter = logging.Formatter(LOG_FORMAT)
        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            root.addHandler(handler)

        _configured = True

    if log_dir:
        root.info(f"Writing logs to {handlers[-1].baseFilename}")
    return root


def get_logger(name):
    return logging.getLogger(name)
