import logging
import re
from logging.config import dictConfig

from formapi.config import DevConfig, config

EMAIL_RE = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@")


def obfuscated(email: str) -> str:
    return EMAIL_RE.sub(r"\1***@", email)


class EmailObfuscationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if "email" in record.__dict__:
            record.email = obfuscated(str(record.email))
        if isinstance(record.msg, str):
            record.msg = obfuscated(record.msg)
        return True


def configure_logging() -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "email_obfuscation": {
                    "()": EmailObfuscationFilter,
                },
            },
            "formatters": {
                "console": {
                    "class": "logging.Formatter",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "format": "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d - %(message)s",
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": "DEBUG",
                    "formatter": "console",
                    "filters": ["email_obfuscation"],
                },
            },
            "loggers": {
                "uvicorn": {"handlers": ["default"], "level": "INFO"},
                "databases": {"handlers": ["default"], "level": "WARNING"},
                "formapi": {
                    "handlers": ["default"],
                    "level": "DEBUG" if isinstance(config, DevConfig) else config.LOG_LEVEL,
                    "propagate": False,
                },
            },
        }
    )
