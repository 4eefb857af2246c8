import logging
import sys
from pythonjsonlogger import jsonlogger
from .config import get_settings

SERVICE_NAME = "fashion-relay"

# uvicorn's own loggers share the relay handler so every line on stdout is JSON
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _json_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            rename_fields={"levelname": "level", "asctime": "time"},
            static_fields={"service": SERVICE_NAME},
            json_ensure_ascii=False,
        )
    )
    return handler


def setup_logger(name: str = "fashion_relay", level: str = None) -> logging.Logger:
    """
    Configure structured JSON logging for the relay.

    The level comes from the LOG_LEVEL setting (environment or .env, default INFO).
    Handlers are only attached on the first call.
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or get_settings().LOG_LEVEL).upper())

    if logger.handlers:
        return logger

    handler = _json_handler()
    logger.addHandler(handler)
    logger.propagate = False

    for uvicorn_name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(uvicorn_name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    return logger

logger = setup_logger()
