import logging
import os
from logging.handlers import RotatingFileHandler
from mapsy.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def format_fields(fields: dict | None) -> str:
    """Renders extra context as `key=value` pairs, sorted for stable output."""
    if not fields:
        return ""
    return " ".join(f"{key}={fields[key]}" for key in sorted(fields))


def build_handlers(log_path: str | None, level: int) -> list[logging.Handler]:
    """Console handler always; a rotating file handler when a path is given."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        os.makedirs(os.path.dirname(log_path), exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_path, backupCount=5, maxBytes=1024 * 1024 * 10, encoding="utf-8"
        ))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


class LoggerConfig:
    """
    Named application logger with console and rotating file output.
    Leaving the directory empty keeps logging on the console only.
    """

    def __init__(self, level: int = logging.INFO, logger_name: str = "MAPSY-BE",
                 log_directory: str = "logs", log_file: str = "app.log"):
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(level)

        log_path = os.path.join(os.path.abspath(log_directory), log_file) if log_directory else None
        # Reloads (uvicorn --reload, test imports) reuse the configured logger
        if not self.logger.handlers:
            try:
                handlers = build_handlers(log_path, level)
            except OSError as e:
                # Read-only filesystems still get console output
                print(f"Failed to open log file {log_path}: {str(e)}")
                handlers = build_handlers(None, level)
            for handler in handlers:
                self.logger.addHandler(handler)

    def log(self, level: int, message: str, extra: dict | None = None):
        fields = format_fields(extra)
        self.logger.log(level, f"{message} | {fields}" if fields else message)


logs = LoggerConfig(
    level=settings.LOGGER,
    logger_name="MAPSY-BE",
    log_directory=settings.LOG_DIRECTORY,
    log_file=settings.LOG_FILE
)
