import logging
import logging.config

from app.config import settings

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once per process.

    Uses a key=value line format so records stay greppable in container logs.
    """
    global _configured
    if _configured:
        return
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "kv": {
                    "format": (
                        "ts=%(asctime)s level=%(levelname)s "
                        "logger=%(name)s msg=%(message)s"
                    ),
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "kv",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": (level or settings.log_level).upper(),
            },
            "loggers": {
                "uvicorn.access": {"level": "WARNING"},
                "botocore": {"level": "WARNING"},
            },
        }
    )
    _configured = True
