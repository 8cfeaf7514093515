"""Application logging: timezone-aware timestamps, coloured console, plain file, no secrets.

Every record passes through ApiKeyRedactionFilter, so a plaintext API key that
ends up in a message (an exception text, a request URL) is written as its
lookup prefix only.
"""

import logging
import logging.config
import os
import re
from datetime import datetime
from logging import Logger

from pytz import timezone

APP_LOGGER_NAME = "coaching_bridge"

# sk_<env>_<48 hex>; keep "sk_<env>_" plus 8 characters
API_KEY_PATTERN = re.compile(r"\b(sk_[a-z0-9]+_[0-9a-f]{8})[0-9a-f]{40}\b")

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
}
_LEVEL_PREFIX: dict[int, str] = {
    logging.WARNING: "⚠️ ",
    logging.ERROR: "⛔ ",
    logging.CRITICAL: "⛔ ",
}


def redact_api_keys(text: str) -> str:
    return API_KEY_PATTERN.sub(r"\1…", text)


class ApiKeyRedactionFilter(logging.Filter):
    """Rewrites records so plaintext API keys never reach a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_api_keys(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


class TimezoneFormatter(logging.Formatter):
    """Formats timestamps in the configured TIMEZONE and prefixes warnings and errors."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record) -> str:
        # records are shared between handlers
        record = logging.makeLogRecord(record.__dict__)
        record.msg = _LEVEL_PREFIX.get(record.levelno, "") + record.getMessage()
        record.args = ()
        return super().format(record)


class ColoredFormatter(TimezoneFormatter):
    """Console formatter. Colours a line only when the record carries a color attribute."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _COLOR_MAP.get(getattr(record, "color", None) or "", "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi else line


class ColorLogger:
    """Wraps a Logger and adds an optional color= keyword to the log methods.

    Usage::

        logger.info("Coaching AI bridge ready.", color="green")
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    @staticmethod
    def _with_color(kwargs: dict, color: str | None) -> dict:
        if color is None:
            return kwargs
        return {**kwargs, "extra": {**(kwargs.get("extra") or {}), "color": color}}

    def log(self, level: int, msg, *args, color: str | None = None, **kwargs):
        self._logger.log(level, msg, *args, **self._with_color(kwargs, color))

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.DEBUG, msg, *args, color=color, **kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.INFO, msg, *args, color=color, **kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.WARNING, msg, *args, color=color, **kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.ERROR, msg, *args, color=color, **kwargs)

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.CRITICAL, msg, *args, color=color, **kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.exception(msg, *args, **self._with_color(kwargs, color))

    def __getattr__(self, name):
        return getattr(self._logger, name)


def setup_logging() -> ColorLogger:
    """Configure the root logger from LOG_LEVEL, TIMEZONE and ROOT_DIR.

    Logs go to stdout and to $ROOT_DIR/logs/app.log. httpx request lines are
    only shown at debug level since they repeat every provider call.
    """
    debug_mode = os.getenv("LOG_LEVEL", "info").lower() == "debug"
    level = logging.DEBUG if debug_mode else logging.INFO
    tz_name = os.getenv("TIMEZONE", "Europe/London")
    log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
    os.makedirs(log_dir, exist_ok=True)

    line_format = "%(asctime)s - %(levelname)s - %(message)s"
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact": {"()": ApiKeyRedactionFilter},
        },
        "formatters": {
            "standard": {"()": TimezoneFormatter, "format": line_format, "datefmt": "%Y-%m-%d %H:%M:%S", "tz_name": tz_name},
            "colored": {"()": ColoredFormatter, "format": line_format, "datefmt": "%Y-%m-%d %H:%M:%S", "tz_name": tz_name},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "filters": ["redact"],
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "standard",
                "filters": ["redact"],
                "level": level,
                "filename": os.path.join(log_dir, "app.log"),
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    })

    logging.getLogger("httpx").setLevel(logging.DEBUG if debug_mode else logging.WARNING)
    return ColorLogger(logging.getLogger(APP_LOGGER_NAME))
