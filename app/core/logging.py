import logging
import os
from typing import Optional

_NOISY_LOGGERS = ("multipart", "httpx")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging defaults for the application.

    ``LOG_LEVEL`` applies unless a level is passed explicitly. Third-party
    loggers that echo request internals are held at WARNING unless DEBUG is on.
    """
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if resolved != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
