import logging.config
import os

from campus.core.config.settings import get_settings

ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_COUNT = 5

def _rotating(filename: str, level: str = "NOTSET") -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "filename": filename,
        "maxBytes": ROTATE_BYTES,
        "backupCount": ROTATE_COUNT,
        "level": level,
    }

def setup_logging():
    """Console output plus JSON files; anything at ERROR or above also lands in error.log"""
    settings = get_settings()
    os.makedirs(settings.LOG_DIR, exist_ok=True)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": "ext://sys.stdout",
            },
            "file": _rotating(os.path.join(settings.LOG_DIR, "campus.log")),
            "errors": _rotating(os.path.join(settings.LOG_DIR, "error.log"), "ERROR"),
        },
        "root": {
            "handlers": ["console", "file", "errors"],
            "level": settings.LOG_LEVEL,
        },
    })
    return logging.getLogger("campus")
