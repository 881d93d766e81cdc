"""Log formatters for nirscal logging.

Console output is kept short and readable for scientists; file output carries
timestamps and logger names for later inspection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass


@dataclass(frozen=True)
class Symbols:
    """Status symbols prefixed to console messages. Defaults are ASCII."""

    starting: str = ">"
    success: str = "[OK]"
    warning: str = "[!]"
    error: str = "[X]"

    def for_record(self, record: logging.LogRecord) -> str:
        """Pick the symbol for a log record.

        Args:
            record: Record being formatted.

        Returns:
            Symbol string, empty for plain info/debug records.
        """
        status = getattr(record, "status", None)
        if status == "starting":
            return self.starting
        if status == "success":
            return self.success
        if record.levelno >= logging.ERROR:
            return self.error
        if record.levelno >= logging.WARNING:
            return self.warning
        return ""


_UNICODE_SYMBOLS = Symbols(starting="\u25b6", success="\u2713", warning="\u26a0", error="\u2717")
_ASCII_SYMBOLS = Symbols()


def get_symbols(use_unicode: bool = True) -> Symbols:
    """Return the unicode symbol set, or the ASCII one for terminals without unicode."""
    return _UNICODE_SYMBOLS if use_unicode else _ASCII_SYMBOLS


def format_duration(seconds: float) -> str:
    """Format a duration for display.

    Args:
        seconds: Duration in seconds.

    Returns:
        "0.5s", "2m 5.4s" or "1h 0m 0s" depending on magnitude.
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        minutes = int(seconds // 60)
        return f"{minutes}m {seconds - minutes * 60:.1f}s"
    hours = int(seconds // 3600)
    minutes = int((seconds - hours * 3600) // 60)
    secs = int(seconds - hours * 3600 - minutes * 60)
    return f"{hours}h {minutes}m {secs}s"


def format_number(value: float, precision: int = 4) -> str:
    """Format a metric value, switching to scientific notation for extremes."""
    if value != 0 and (abs(value) < 10 ** (-precision) or abs(value) >= 1e6):
        return f"{value:.{precision}e}"
    return f"{value:.{precision}f}"


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter with status symbols."""

    def __init__(self, use_unicode: bool = True, show_level: bool = False) -> None:
        super().__init__()
        self.symbols = get_symbols(use_unicode)
        self.show_level = show_level

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        symbol = self.symbols.for_record(record)
        parts = []
        if self.show_level:
            parts.append(f"{record.levelname:<7}")
        if symbol:
            parts.append(symbol)
        parts.append(message)
        text = " ".join(parts)
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


class FileFormatter(logging.Formatter):
    """Detailed formatter for log files."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
