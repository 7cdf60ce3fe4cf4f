"""Process-wide logging bootstrap.

Log lines go to stderr and to ``<ROOT_DIR>/logs/app.log``. Stdout stays
free for command output such as the context printed by the CLI runner.
"""

from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger


LOGGER_NAME = "context_bridge"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ANSI_RESET = "\033[0m"
ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
}


def log_level_from_env() -> int:
    return logging.DEBUG if os.getenv("LOG_LEVEL", "info").lower() == "debug" else logging.INFO


def level_marker(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "⛔ "
    if levelno == logging.WARNING:
        return "⚠️ "
    return ""


class ZonedFormatter(logging.Formatter):
    """Stamps records in a pytz zone and marks warnings and errors."""

    def __init__(self, tz_name: str, fmt: str = LOG_FORMAT, datefmt: str = LOG_DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, self.tz)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # malformed third-party record, keep the raw template
            message = str(record.msg)

        # both handlers format the same record
        marked = logging.makeLogRecord(record.__dict__)
        marked.msg = level_marker(record.levelno) + message
        marked.args = ()
        return super().format(marked)


class ConsoleFormatter(ZonedFormatter):
    """Colours a line when its record carries a known ``color`` name."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = ANSI_COLORS.get(getattr(record, "color", None) or "")
        return f"{ansi}{line}{ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Logger wrapper whose level methods take an optional ``color=`` name.

    The colour travels as the record's ``color`` extra. Only the console
    handler renders it, the log file stays plain.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _emit(self, level: str, msg, args: tuple, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        getattr(self._logger, level)(msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._emit("debug", msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._emit("info", msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._emit("warning", msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._emit("error", msg, args, color, kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def build_logging_config(log_file: str, tz_name: str, level: int, stream: str = "ext://sys.stderr") -> dict:
    """dictConfig payload with a coloured console handler on ``stream`` and a plain file handler."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"()": ZonedFormatter, "tz_name": tz_name},
            "console": {"()": ConsoleFormatter, "tz_name": tz_name},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": level,
                "stream": stream,
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "plain",
                "level": level,
                "filename": log_file,
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    }


def setup_logging() -> ColorLogger:
    log_dir = os.path.join(os.getenv("ROOT_DIR") or os.getcwd(), "logs")
    os.makedirs(log_dir, exist_ok=True)
    level = log_level_from_env()

    logging.config.dictConfig(build_logging_config(
        log_file=os.path.join(log_dir, "app.log"),
        tz_name=os.getenv("TIMEZONE", "Europe/Berlin"),
        level=level,
    ))

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)

    return ColorLogger(logging.getLogger(LOGGER_NAME))
