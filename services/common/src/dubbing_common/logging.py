import logging
import os
import sys

from pythonjsonlogger import jsonlogger

_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "httpx")


def setup_logging(level: str | None = None) -> logging.Logger:
    """
    Configures structured JSON logging and returns the root logger.

    Every record is emitted to stdout as one JSON object carrying timestamp,
    level, logger name, message, the Datadog trace_id/span_id and any
    ``extra`` fields passed by the caller. Uvicorn and httpx loggers are
    re-routed through the same handler so request logs share the format.

    Args:
        level: Log level name. Falls back to the LOG_LEVEL environment
            variable, then INFO.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
    )
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level_name)
    root_logger.handlers = [
        handler
        for handler in root_logger.handlers
        if not isinstance(handler.formatter, jsonlogger.JsonFormatter)
    ]
    root_logger.addHandler(stream_handler)

    for logger_name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(logger_name)
        server_logger.setLevel(level_name)
        server_logger.handlers = [stream_handler]
        server_logger.propagate = False

    return root_logger
