"""
Centralized logging module for Tableau API Client.
Provides structured logging with file rotation and console output.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional


LOGGER_NAME = 'tableau-api-client'


class Logger:
    """
    Process-wide logger for the tableau-client CLI.

    The CLI configures it once from the logging section of the YAML config;
    the dispatcher and API client then log request lines, response statuses
    and masked auth tokens through it. Library callers that never initialize
    it get the plain 'tableau-api-client' logger instead.
    """

    _instance: Optional['Logger'] = None
    _logger: Optional[logging.Logger] = None

    def __init__(self, log_file: Path, log_level: str = 'INFO',
                 max_size_mb: int = 10, backup_count: int = 5):
        """
        Attach a rotating file handler and a stderr console handler.

        log_level gates both handlers. At DEBUG the dispatcher also logs
        pretty-printed tsResponse bodies. Console lines go to stderr so
        command output on stdout is never mixed with log lines.

        Args:
            log_file: Path to log file, created with its parent directories
            log_level: Console and logger level (DEBUG, INFO, WARNING, ERROR)
            max_size_mb: Maximum log file size in MB before rotation
            backup_count: Number of backup files to keep
        """
        if Logger._instance is not None and Logger._logger is not None:
            return

        Logger._instance = self

        Logger._logger = logging.getLogger(LOGGER_NAME)
        Logger._logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        Logger._logger.handlers.clear()

        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        log_file.parent.mkdir(parents=True, exist_ok=True)

        # File handler with rotation
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        Logger._logger.addHandler(file_handler)

        # Console goes to stderr so command output on stdout stays clean
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        console_handler.setFormatter(console_formatter)
        Logger._logger.addHandler(console_handler)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get the logger instance.

        When the application has not called initialize() (library use),
        the plain named logger is returned so the host application's
        logging configuration applies.
        """
        if cls._instance is None or cls._logger is None:
            return logging.getLogger(LOGGER_NAME)
        return cls._logger

    @classmethod
    def initialize(cls, log_file: Path, log_level: str = 'INFO',
                  max_size_mb: int = 10, backup_count: int = 5):
        """
        Initialize the logger (convenience method).

        Args:
            log_file: Path to log file
            log_level: Logging level
            max_size_mb: Maximum log file size in MB
            backup_count: Number of backup files to keep

        Returns:
            Logger instance
        """
        if cls._instance is not None:
            return cls._instance

        instance = cls(log_file, log_level, max_size_mb, backup_count)
        cls._instance = instance
        return instance

    @classmethod
    def reset(cls):
        """Drop the configured handlers so initialize() can run again."""
        if cls._logger is not None:
            for handler in list(cls._logger.handlers):
                handler.close()
            cls._logger.handlers.clear()
        cls._instance = None
        cls._logger = None


def get_logger() -> logging.Logger:
    """
    Convenience function to get the logger.

    Returns:
        Configured logger instance
    """
    return Logger.get_logger()
