import logging
import sys

from adlens.core.config import settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(level: str = None):
    """Attach a single stdout handler to the root logger"""
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    # uvicorn --reload and scripts may call this more than once
    if any(getattr(h, "_adlens", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._adlens = True
    root.addHandler(handler)
