"""Logging configuration for the application."""

import logging
import sys

from app.core.config import get_settings
from app.shared.context import RequestContextFilter

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[req=%(request_id)s principal=%(principal_id)s] %(message)s"
)


def setup_logging() -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO.
    Output goes to stdout, tagged with the request ID and principal.
    """
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    logging.basicConfig(level=log_level, format=LOG_FORMAT, handlers=[handler])
    # httpx logs full request URLs (including the SOQL query) at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
