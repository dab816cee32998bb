import logging
import sys
from typing import Dict, Optional

from cloudrun_perf.const import LOG_FORMAT, LOG_DATE_FORMAT
from .config import Config


class LoggingManager:
    """Manager for logging setup and logger retrieval."""

    _handler: Optional[logging.Handler] = None

    @classmethod
    def setup_logging(cls, level: str = "INFO", library_log_levels: Optional[Dict[str, str]] = None) -> None:
        """Send log records to stderr so the report on stdout can be piped on its own.

        Calling it again replaces the handler installed by the previous call.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL); unknown names fall back to INFO
            library_log_levels: Per-library overrides; read from Config when omitted
        """
        numeric_level = getattr(logging, level.upper(), logging.INFO)

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        handler.setLevel(numeric_level)

        root_logger = logging.getLogger()
        if cls._handler is not None:
            root_logger.removeHandler(cls._handler)
        root_logger.setLevel(numeric_level)
        root_logger.addHandler(handler)
        cls._handler = handler

        # Noisy libraries
        if library_log_levels is None:
            library_log_levels = Config().library_log_levels
        for logger_name, lib_level in library_log_levels.items():
            logging.getLogger(logger_name).setLevel(getattr(logging, lib_level.upper(), logging.WARNING))

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger instance.

        Args:
            name: Logger name, typically __name__

        Returns:
            Configured logger instance
        """
        return logging.getLogger(name)
