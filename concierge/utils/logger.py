"""Logging setup"""

import logging
import sys

from concierge.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "apscheduler", "qdrant_client")


def setup_logging(level: str = None) -> None:
    """
    Configure the root logger once for the whole process
    
    Args:
        level: Explicit level name, defaults to settings.LOG_LEVEL
    """
    resolved_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    root = logging.getLogger()
    
    # Avoid duplicate handlers on reload
    if not any(getattr(h, "_concierge", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        handler._concierge = True
        root.addHandler(handler)
    
    root.setLevel(resolved_level)
    
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
