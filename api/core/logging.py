"""
Process-wide logging setup.

Modules keep using `logging.getLogger(__name__)`. The entry point calls
`configure_logging()` once; uvicorn is started with `log_config=None` so its
loggers end up on the same root handler.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"

_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
