"""Logging setup for processes embedding the term requester."""

from __future__ import annotations

import logging

from .env import optional_env_var

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# chatty third-party loggers that only matter when debugging transport issues
_QUIET_LOGGERS = ("httpx", "httpcore", "hishel", "alembic.runtime.migration")


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Configure the root logger.

    ``level`` defaults to ``TERMREQUESTER_LOG_LEVEL`` and then to INFO. Library
    loggers listed in ``_QUIET_LOGGERS`` are held at WARNING unless DEBUG is
    requested.
    """

    resolved = level if level is not None else optional_env_var("TERMREQUESTER_LOG_LEVEL", "INFO")
    if isinstance(resolved, str):
        resolved = logging.getLevelNamesMapping().get(resolved.upper(), logging.INFO)

    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    if resolved > logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
