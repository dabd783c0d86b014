import logging
import logging.config
from pathlib import Path

from ctrlaltvibe.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

ALL_HANDLERS = ["console", "file", "error_file"]


def _rotating(path: Path, level: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "default",
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUPS,
    }


def _logger(level: str, handlers=ALL_HANDLERS) -> dict:
    return {"level": level, "handlers": list(handlers), "propagate": False}


def build_logging_config(log_dir: str) -> dict:
    log_path = Path(log_dir)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "file": _rotating(log_path / "app.log", "INFO"),
            "error_file": _rotating(log_path / "error.log", "ERROR"),
        },
        "root": {"level": "INFO", "handlers": ALL_HANDLERS},
        "loggers": {
            "ctrlaltvibe": _logger("INFO"),
            # Per-key HIT/MISS lines are DEBUG; invalidations surface at INFO
            "ctrlaltvibe.core.cache": _logger("INFO", ["console", "file"]),
            "ctrlaltvibe.core.decorators": _logger("INFO", ["console", "file"]),
            "ctrlaltvibe.core.performance": _logger("WARNING"),
            "ctrlaltvibe.realtime": _logger("INFO"),
            "ctrlaltvibe.middleware": _logger("INFO"),
            "apscheduler": _logger("WARNING", ["console", "file"]),
            "uvicorn.access": _logger("WARNING", ["console"]),
        },
    }


def configure_logging(log_dir: str = None):
    log_dir = log_dir or settings.LOG_DIR
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir))
