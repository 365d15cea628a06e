# app/utils/logging.py
import logging
import sys

from app.utils.settings import LOG_LEVEL

_root = logging.getLogger("app")
_root.setLevel(LOG_LEVEL)

if not _root.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    _root.addHandler(handler)

_root.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger w przestrzeni nazw 'app' (np. get_logger(__name__))."""
    if not name:
        return _root
    if name == "app" or name.startswith("app."):
        return logging.getLogger(name)
    return logging.getLogger(f"app.{name}")
