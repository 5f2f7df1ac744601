import logging
import os
from logging import config as logging_config

NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "aiobotocore", "s3transfer")


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name: DEBUG cyan, INFO green, WARNING yellow, ERROR red."""

    COLOR_MAP = {
        "DEBUG": "\x1b[36m",
        "INFO": "\x1b[32m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "CRITICAL": "\x1b[41m",
    }
    RESET = "\x1b[0m"

    def format(self, record: logging.LogRecord) -> str:
        original_levelname = record.levelname
        color = self.COLOR_MAP.get(original_levelname, "")
        record.levelname = f"{color}{original_levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


def configure_logging(level: str | None = None) -> None:
    """Send colored logs to stdout for the app and uvicorn.

    The level comes from the argument, then ``LOG_LEVEL``, then INFO.
    """
    level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()

    default_fmt = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
    access_fmt = "%(asctime)s %(levelname)-5s %(message)s"

    cfg = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"()": "photoshare.logging_config.ColoredFormatter", "format": default_fmt, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "access": {"()": "photoshare.logging_config.ColoredFormatter", "format": access_fmt, "datefmt": "%Y-%m-%d %H:%M:%S"},
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "default", "stream": "ext://sys.stdout"},
            "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": "ext://sys.stdout"},
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": level, "propagate": False},
        },
        "root": {"handlers": ["default"], "level": level},
    }

    logging_config.dictConfig(cfg)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging", "ColoredFormatter"]
