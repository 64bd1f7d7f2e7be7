"""
Logging configuration for water temperature estimation.

The engine logs under the 'water_temperature' logger: one line per public
operation at INFO, the per-term breakdown at DEBUG.
"""

import logging
import os
import time
from pathlib import Path
from typing import Any, Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = "water_temperature",
    log_file: Optional[str] = None,
    log_level: str = "INFO"
) -> logging.Logger:
    """
    Set up the engine logger.

    Console output follows `log_level`. The optional file handler always
    records DEBUG so a run can be replayed term by term.

    Args:
        name: Logger name
        log_file: Path to log file. If None, uses WATER_TEMP_LOG_FILE env var;
                  when neither is set only console logging is configured
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    if log_file is None:
        log_file = os.getenv("WATER_TEMP_LOG_FILE")

    level = getattr(logging, str(log_level).upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(level)

    logger.propagate = False
    return logger


class LoggerContext:
    """
    Context manager timing one engine operation.

    Extra keyword fields (water type, location key, ...) are appended to the
    start and end lines. Exceptions are never swallowed; the caller that
    handles them is responsible for reporting the failure.
    """

    def __init__(self, logger: logging.Logger, operation: str, **fields: Any):
        """
        Initialize logger context.

        Args:
            logger: Logger instance
            operation: Name of the operation being logged
            **fields: Key/value pairs describing the operation
        """
        self.logger = logger
        self.operation = operation
        self.fields = fields
        self.start_time: Optional[float] = None

    @property
    def label(self) -> str:
        if not self.fields:
            return self.operation
        details = " ".join(f"{key}={value}" for key, value in self.fields.items())
        return f"{self.operation} [{details}]"

    @property
    def elapsed_ms(self) -> float:
        if self.start_time is None:
            return 0.0
        return (time.perf_counter() - self.start_time) * 1000.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.label}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.logger.debug(f"Aborted {self.label} after {self.elapsed_ms:.1f}ms: {exc_val}")
            return False

        self.logger.debug(f"Completed {self.label} in {self.elapsed_ms:.1f}ms")
        return False
