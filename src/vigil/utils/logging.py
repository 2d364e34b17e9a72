"""Logging for the engine and the CLI.

Three output modes:
- Human mode: [LEVEL] message (colored if TTY)
- Verbose mode: [LEVEL][HH:MM:SS] logger: message
- CI/JSON mode: {"level":"...","ts":"...","logger":"...","msg":"..."}

Modules log through ``get_logger(__name__)`` (or plain ``logging.getLogger``);
everything lives under the ``vigil`` namespace so one call to
``setup_logging`` configures it.
Reports go to stdout, logs to stderr.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

ROOT_LOGGER = "vigil"

_RESET = "\033[0m"

_LEVEL_COLORS = {
    logging.DEBUG: "\033[90m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[31m",
}


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


def _is_tty(stream: TextIO) -> bool:
    return hasattr(stream, "isatty") and stream.isatty()


class _LevelTagFormatter(logging.Formatter):
    """Base for the line formatters: renders the ``[LEVEL]`` tag."""

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def level_tag(self, record: logging.LogRecord) -> str:
        tag = f"[{record.levelname}]"
        if not self.use_colors:
            return tag
        return f"{_LEVEL_COLORS.get(record.levelno, _RESET)}{tag}{_RESET}"


class HumanFormatter(_LevelTagFormatter):
    """Format: [LEVEL] message"""

    def format(self, record: logging.LogRecord) -> str:
        return f"{self.level_tag(record)} {record.getMessage()}"


class VerboseFormatter(_LevelTagFormatter):
    """Format: [LEVEL][HH:MM:SS] logger: message, plus tracebacks."""

    def format(self, record: logging.LogRecord) -> str:
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{self.level_tag(record)}[{clock}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Structured fields passed to ``VigilLogger.structured`` become top-level
    keys; an exception, if any, is rendered under ``exc``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(getattr(record, "extra_data", {}))
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class VigilLogger(logging.Logger):
    """Logger with structured logging support."""

    def structured(self, level: int, msg: str, **fields: Any) -> None:
        """Log a message carrying machine-readable fields.

        The fields show up as top-level keys in JSON mode and are ignored by
        the human formatters.

        Args:
            level: Log level
            msg: Log message
            **fields: Additional data for JSON output
        """
        self.log(level, msg, extra={"extra_data": fields}, stacklevel=2)


logging.setLoggerClass(VigilLogger)


def get_logger(name: str = ROOT_LOGGER) -> VigilLogger:
    """Get a Vigil logger instance.

    Args:
        name: Logger name (should live under the ``vigil`` namespace)
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Install a single handler on the ``vigil`` logger.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stderr)
    """
    target = stream or sys.stderr

    if mode is LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    elif mode is LogMode.VERBOSE:
        formatter = VerboseFormatter(use_colors=_is_tty(target))
    else:
        formatter = HumanFormatter(use_colors=_is_tty(target))

    handler = logging.StreamHandler(target)
    handler.setFormatter(formatter)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def configure_from_cli(
    verbose: bool = False,
    quiet: bool = False,
    ci: bool = False,
) -> None:
    """Configure logging from the global CLI flags.

    ``--ci`` picks JSON output, ``--verbose`` timestamps and DEBUG level,
    ``--quiet`` raises the level to WARNING whatever the mode.
    """
    mode = LogMode.JSON if ci else LogMode.VERBOSE if verbose else LogMode.HUMAN
    level = logging.WARNING if quiet else logging.DEBUG if verbose else logging.INFO
    setup_logging(mode=mode, level=level)
