"""Route structlog and stdlib (uvicorn, httpx) logging through one renderer."""

from __future__ import annotations

import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

import structlog

from magnetio.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Chatty client libraries: only shown when DEBUG is requested.
_QUIET_LOGGERS = ("httpx", "httpcore")

# stdlib name of the request middleware logger in interfaces/app.py
ACCESS_LOGGER = "magnetio.interfaces.app"


def _strip_color_message(
    _: Any, __: Any, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict.pop("color_message", None)
    return event_dict


def _stamp_foreign_record(
    _: Any, __: Any, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Use the stdlib record's creation time as the event timestamp (UTC)."""
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


def _renderer(log_format: str | None) -> structlog.typing.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _stream_handler(stream: str) -> dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "stream": f"ext://sys.{stream}",
        "formatter": "structlog",
    }


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """dictConfig for stdlib loggers, usable as uvicorn's ``log_config``.

    Access lines from the app's request middleware go to stdout, everything
    else to stderr. uvicorn's own access logger stays at WARNING: it prints
    the raw request path, which embeds the user's debrid keys.
    """
    level = config.log_level
    quiet_level = "DEBUG" if level == "DEBUG" else "WARNING"

    def _own(handler: str, own_level: str = level) -> dict[str, Any]:
        return {"handlers": [handler], "level": own_level, "propagate": False}

    loggers: dict[str, Any] = {
        "uvicorn": _own("stderr"),
        "uvicorn.error": {"level": level},
        "uvicorn.access": _own("stdout", "WARNING"),
        ACCESS_LOGGER: _own("stdout"),
    }
    loggers.update({name: {"level": quiet_level} for name in _QUIET_LOGGERS})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": [
                    _strip_color_message,
                    structlog.contextvars.merge_contextvars,
                    _stamp_foreign_record,
                    structlog.stdlib.add_logger_name,
                    structlog.stdlib.add_log_level,
                ],
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _renderer(config.log_format),
                ],
            }
        },
        "handlers": {
            "stderr": _stream_handler("stderr"),
            "stdout": _stream_handler("stdout"),
        },
        "loggers": loggers,
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """Configure structlog and apply the stdlib dictConfig.

    Returns the dictConfig so the CLI can hand it to ``uvicorn.run``.
    """
    structlog.configure(
        processors=[
            _strip_color_message,
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    log_config = build_logging_config(config)
    logging.config.dictConfig(log_config)
    log.info("logging_configured", level=config.log_level, format=config.log_format)
    return log_config
