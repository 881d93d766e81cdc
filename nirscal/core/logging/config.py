"""Logging configuration for nirscal.

All nirscal loggers live under the ``nirscal`` namespace. Until
:func:`configure_logging` is called the namespace only carries a
``NullHandler`` so the library stays silent inside host applications.
"""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass
from pathlib import Path

from .formatters import ConsoleFormatter, FileFormatter

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

ROOT_LOGGER_NAME = "nirscal"

_VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
    3: TRACE,
}


class NirscalLogger(logging.Logger):
    """Logger with status helpers used by the calibration engine."""

    def _log_status(self, status: str, msg: object, args: tuple, kwargs: dict) -> None:
        if not self.isEnabledFor(logging.INFO):
            return
        extra = dict(kwargs.pop("extra", None) or {})
        extra["status"] = status
        self._log(logging.INFO, msg, args, extra=extra, **kwargs)

    def starting(self, msg: object, *args, **kwargs) -> None:
        """Log the start of an operation at INFO level."""
        self._log_status("starting", msg, args, kwargs)

    def success(self, msg: object, *args, **kwargs) -> None:
        """Log the successful end of an operation at INFO level."""
        self._log_status("success", msg, args, kwargs)

    def trace(self, msg: object, *args, **kwargs) -> None:
        """Log at TRACE level (below DEBUG)."""
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)


@dataclass
class LoggingConfig:
    """Active logging configuration.

    Attributes:
        verbose: Verbosity level (0=warnings, 1=info, 2=debug, 3=trace).
        use_unicode: Whether console symbols may use unicode.
        log_file: Optional path of a log file receiving detailed records.
        show_level: Prefix console lines with the level name.
    """

    verbose: int = 1
    use_unicode: bool = True
    log_file: Path | None = None
    show_level: bool = False


_lock = threading.Lock()
_config: LoggingConfig | None = None
_handlers: list[logging.Handler] = []

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> NirscalLogger:
    """Get a nirscal logger.

    Args:
        name: Logger name, usually ``__name__`` of the calling module.

    Returns:
        A :class:`NirscalLogger` instance.
    """
    with _lock:
        previous_class = logging.getLoggerClass()
        logging.setLoggerClass(NirscalLogger)
        try:
            logger = logging.getLogger(name)
        finally:
            logging.setLoggerClass(previous_class)
        if not isinstance(logger, NirscalLogger):
            # Created before nirscal was imported; upgrade in place.
            logger.__class__ = NirscalLogger
    return logger


def configure_logging(
    verbose: int = 1,
    log_file: str | Path | None = None,
    use_unicode: bool = True,
    show_level: bool = False,
) -> LoggingConfig:
    """Configure console (and optional file) output for nirscal.

    Calling it again replaces the previous configuration.

    Args:
        verbose: Verbosity level (0=warnings, 1=info, 2=debug, 3=trace).
        log_file: Optional file receiving records with timestamps.
        use_unicode: Whether console symbols may use unicode.
        show_level: Prefix console lines with the level name.

    Returns:
        The active :class:`LoggingConfig`.
    """
    global _config

    reset_logging()
    level = _VERBOSITY_LEVELS.get(max(0, min(verbose, 3)), logging.INFO)
    root = logging.getLogger(ROOT_LOGGER_NAME)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ConsoleFormatter(use_unicode=use_unicode, show_level=show_level))
    console.setLevel(level)
    new_handlers: list[logging.Handler] = [console]

    path = None
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(FileFormatter())
        file_handler.setLevel(min(level, logging.DEBUG))
        new_handlers.append(file_handler)

    with _lock:
        for handler in new_handlers:
            root.addHandler(handler)
            _handlers.append(handler)
        root.setLevel(min(h.level for h in new_handlers))
        root.propagate = False
        _config = LoggingConfig(
            verbose=verbose,
            use_unicode=use_unicode,
            log_file=path,
            show_level=show_level,
        )
    return _config


def reset_logging() -> None:
    """Remove handlers installed by :func:`configure_logging`."""
    global _config

    root = logging.getLogger(ROOT_LOGGER_NAME)
    with _lock:
        for handler in _handlers:
            root.removeHandler(handler)
            handler.close()
        _handlers.clear()
        root.setLevel(logging.NOTSET)
        root.propagate = True
        _config = None


def get_config() -> LoggingConfig | None:
    """Return the active logging configuration, or None if not configured."""
    return _config


def is_configured() -> bool:
    """Whether :func:`configure_logging` has been called."""
    return _config is not None
