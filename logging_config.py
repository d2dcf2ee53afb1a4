"""Logging for the catalog: one console handler, plus a log file when configured."""

import logging
import logging.config

_configured = False


def build_logging_config(level, logfile=None):
    """Returns a dictConfig mapping for the catalog's handlers."""
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "catalog",
        },
    }
    if logfile:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "catalog",
            "filename": logfile,
            "encoding": "utf-8",
        }
    return {
        "version": 1,
        # Keep loggers created at import time (werkzeug, sqlalchemy) alive
        "disable_existing_loggers": False,
        "formatters": {
            "catalog": {
                "format": "%(asctime)s %(levelname)-8s %(name)s | %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
            },
        },
        "handlers": handlers,
        "root": {"level": level.upper(), "handlers": list(handlers)},
    }


def setup_logging(level="INFO", logfile=None):
    """Applies the logging config on the first call of the process only."""
    global _configured
    if _configured:
        return
    if not isinstance(logging.getLevelName(level.upper()), int):
        level = "INFO"
    logging.config.dictConfig(build_logging_config(level, logfile))
    _configured = True
