"""
Structured JSON logging for the CNV trainer.

One JSON object per line on stdout. Call sites always pass a ``step``
field in ``extra`` so a training session can be followed through
load → answer → feedback → summary.
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "cnv_trainer"

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai")


def setup_logging(log_level: str = "INFO", *, app_version: str | None = None) -> logging.Logger:
    """Attach a JSON stdout handler to the 'cnv_trainer' logger.

    Safe to call more than once (hot-reload, repeated app factories):
    the handler is only installed the first time.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        app_version: Stamped on every record as ``app_version`` when given.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if logger.handlers:
        return logger

    static_fields = {"service": LOGGER_NAME}
    if app_version:
        static_fields["app_version"] = app_version

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
            static_fields=static_fields,
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
    )
    logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
