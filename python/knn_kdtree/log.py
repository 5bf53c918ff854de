"""Logging setup shared by the command line tools."""

import logging
import logging.config

LOGGER_NAME = "knn_kdtree"

LOGGING_CONFIG: dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        LOGGER_NAME: {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Applies LOGGING_CONFIG with the package logger set to level."""

    config = {**LOGGING_CONFIG, "loggers": {LOGGER_NAME: {**LOGGING_CONFIG["loggers"][LOGGER_NAME]}}}
    config["loggers"][LOGGER_NAME]["level"] = level.upper()
    logging.config.dictConfig(config)
    return logging.getLogger(LOGGER_NAME)
