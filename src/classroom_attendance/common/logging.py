import logging
import sys

from ..core.constants import TOKEN_LOG_PREFIX

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if any(getattr(h, "_classroom_attendance", False) for h in root.handlers):
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._classroom_attendance = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level.upper())


def get_logger(name: str):
    return logging.getLogger(name)


def token_hint(token: str) -> str:
    """Short prefix safe to put in logs."""
    return f"{token[:TOKEN_LOG_PREFIX]}..." if token else "<empty>"
