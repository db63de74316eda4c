import logging
import os
import sys

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "meeting-transcriber"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

_handler: logging.Handler | None = None


def setup_logging() -> logging.Logger:
    """
    Returns the root logger, installing the JSON handler on first use.

    Every record is written to stdout as one JSON object carrying the
    timestamp, level, logger name, message, the Datadog trace and span ids,
    and a static ``service`` field. Uvicorn's loggers share the handler so
    access logs and request logs look the same. The level comes from
    ``LOG_LEVEL`` (default ``INFO``).
    """
    global _handler

    root_logger = logging.getLogger()
    if _handler is not None:
        return root_logger

    level = os.getenv("LOG_LEVEL", "INFO").upper()

    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(
        jsonlogger.JsonFormatter(_LOG_FORMAT, static_fields={"service": SERVICE_NAME})
    )

    root_logger.setLevel(level)
    root_logger.handlers = [_handler]

    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.setLevel(level)
        server_logger.handlers = [_handler]
        server_logger.propagate = False

    return root_logger
