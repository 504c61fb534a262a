import sys
from logging.config import dictConfig
from typing import Any

from avboq.core.config import settings

# Loggers owned by this package; their level follows settings.log_level
PACKAGE_LOGGERS = ("avboq", "avboq.api", "avboq.services")

# The SDK logs every HTTP request at INFO
QUIET_LOGGERS = ("google_genai", "httpx")


def build_logging_config(level: str) -> dict[str, Any]:
    """Returns a uvicorn-compatible dictConfig with the package loggers at ``level``."""
    loggers: dict[str, Any] = {
        "root": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
    }
    for name in PACKAGE_LOGGERS:
        loggers[name] = {"handlers": ["avboq"], "level": level, "propagate": False}
    for name in QUIET_LOGGERS:
        loggers[name] = {"handlers": ["default"], "level": "WARNING", "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s [%(name)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s [%(name)s] "%(request_line)s" %(status_code)s',
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stderr,
                "level": "INFO",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": sys.stdout,
                "level": "INFO",
            },
            # Handler level stays open, the logger level does the filtering
            "avboq": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stdout,
                "level": "DEBUG",
            },
        },
        "loggers": loggers,
    }


def setup_logging(level: str | None = None) -> None:
    """Configures application-wide logging using dictConfig.

    Args:
        level: Level for the package loggers. Defaults to ``settings.log_level``.
    """
    dictConfig(build_logging_config(level or settings.log_level))
