from __future__ import annotations

import logging
from logging.config import dictConfig

from app.core.config import Settings

PLAIN_FORMAT = "%(levelname)s %(asctime)s %(name)s %(message)s"
JSON_FORMAT = (
    '{"level":"%(levelname)s","time":"%(asctime)s","logger":"%(name)s","message":"%(message)s"}'
)

# Per-request chatter from the HTTP client library.
NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(settings: Settings) -> None:
    log_level = settings.log_level.upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": JSON_FORMAT if settings.log_json else PLAIN_FORMAT,
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                }
            },
            "root": {
                "level": log_level,
                "handlers": ["default"],
            },
            "loggers": {
                name: {"level": "WARNING"} for name in NOISY_LOGGERS
            },
        }
    )

    logging.getLogger("uvicorn.error").setLevel(log_level)
