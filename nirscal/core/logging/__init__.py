"""Logging system for nirscal.

This module provides the logging infrastructure used across the engine.
Library modules only emit records; nothing is printed until the application
calls :func:`configure_logging`.

Usage:
    >>> from nirscal.core.logging import get_logger, configure_logging
    >>>
    >>> # Configure at application startup
    >>> configure_logging(verbose=1)
    >>>
    >>> # Get logger in each module
    >>> logger = get_logger(__name__)
    >>> logger.starting("Training PLS model")
    >>> logger.success("Calibration complete")
"""

from .config import (
    TRACE,
    NirscalLogger,
    configure_logging,
    get_config,
    get_logger,
    is_configured,
    reset_logging,
)
from .formatters import (
    ConsoleFormatter,
    FileFormatter,
    Symbols,
    format_duration,
    format_number,
    get_symbols,
)

__all__ = [
    # Main API
    "get_logger",
    "configure_logging",
    # Configuration
    "get_config",
    "is_configured",
    "reset_logging",
    "TRACE",
    "NirscalLogger",
    # Formatters
    "Symbols",
    "get_symbols",
    "ConsoleFormatter",
    "FileFormatter",
    "format_duration",
    "format_number",
]
