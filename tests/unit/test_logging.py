from __future__ import annotations

import logging

from core.logging import LOG_FORMAT, configure_logging


def test_configure_logging_sets_root_level_and_format() -> None:
    root = logging.getLogger()
    previous_level = root.level
    try:
        configure_logging("WARNING")

        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert root.handlers[0].formatter._fmt == LOG_FORMAT
    finally:
        configure_logging(logging.getLevelName(previous_level))


def test_server_loggers_propagate_to_root() -> None:
    access = logging.getLogger("uvicorn.access")
    access.addHandler(logging.NullHandler())
    access.propagate = False

    configure_logging("INFO")

    assert access.handlers == []
    assert access.propagate is True
