"""Application logger.

Lines carry the id set by RequestIdMiddleware, so the parse, style, export
and compile messages of one editor action can be grouped. ``LOG_FORMAT=json``
emits one JSON object per line for log collectors; anything else gives
coloured console output for local runs.
"""

import logging
import sys
import json
from datetime import datetime, timezone

from resumie.config import load_settings
from resumie.middleware import request_id_var

SERVICE_NAME = "resumie"


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "request_id": request_id_var.get("-"),
            "message": record.getMessage(),
            "source": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL] logger [request id]: message``, level in colour."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        rid = request_id_var.get("-")
        line = f"{color}{timestamp} [{record.levelname:8s}]{self.RESET} {record.name} [{rid}]: {record.getMessage()}"
        if record.exc_info and record.exc_info[0] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format.strip().lower() == "json":
        return JSONFormatter()
    return ConsoleFormatter()


def setup_logger(name: str = SERVICE_NAME) -> logging.Logger:
    """Configure ``name`` from LOG_LEVEL / LOG_FORMAT; repeat calls reuse the handler."""
    settings = load_settings()
    _logger = logging.getLogger(name)
    _logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    if _logger.handlers:
        return _logger

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(build_formatter(settings.log_format))
    _logger.addHandler(console)

    return _logger


logger = setup_logger()
