from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Minimal logging configuration for this repo.

    Notes:
    - Stdlib logging only; uvicorn already installs handlers.
    - This sets the level for the `portfolio_api` package logger tree.
    - Set `APP_LOG_LEVEL=DEBUG` to see individual rule evaluations.
    """

    normalized = level.upper()
    logging.getLogger("portfolio_api").setLevel(normalized)
    # Child loggers under portfolio_api.* inherit this level.
    logging.getLogger("portfolio_api").propagate = True
