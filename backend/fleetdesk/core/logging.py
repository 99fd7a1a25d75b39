"""Logging setup: JSON lines in production, plain text elsewhere.

Both modes stamp each record with the current request id so the log lines of
one upload (decode, per-row failures, batch progress, summary) can be grouped.
"""
import logging
import sys

from pythonjsonlogger import jsonlogger

from fleetdesk.core.config import settings
from fleetdesk.middleware.request_id import RequestIdFilter

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(request_id)s %(message)s"

# Libraries that are chatty at INFO.
QUIET_LOGGERS = ("sqlalchemy.engine", "passlib", "multipart")


def setup_logging() -> None:
    handler = logging.StreamHandler(sys.stdout)
    if settings.APP_ENV == "production":
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                LOG_FORMAT,
                rename_fields={"asctime": "timestamp", "levelname": "level"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())

    logging.root.handlers = [handler]
    logging.root.setLevel(settings.LOG_LEVEL.upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
