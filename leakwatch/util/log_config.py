"""
Logging configuration for the soak harness.

Provides centralized logging setup with clean, concise terminal output.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

_overrides = {"level": None, "log_file": None}


def configure_logging(level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    """
    Set the level and optional log file used by every logger created with
    setup_logger(), and re-apply them to loggers that already exist.

    Args:
        level: Logging level for console output
        log_file: Optional file path for detailed log output
    """
    _overrides["level"] = level
    _overrides["log_file"] = log_file
    for name, existing in list(logging.Logger.manager.loggerDict.items()):
        if name.startswith("leakwatch") and isinstance(existing, logging.Logger):
            setup_logger(name, level=level, log_file=log_file)


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.
    
    Args:
        name: Logger name (typically __name__)
        level: Logging level (default: INFO)
        log_file: Optional file path for log output
        
    Returns:
        Configured logger instance
    """
    if _overrides["level"] is not None:
        level = _overrides["level"]
    log_file = log_file or _overrides["log_file"]

    logger = logging.getLogger(name)
    logger.setLevel(min(level, logging.DEBUG) if log_file else level)
    
    # Remove existing handlers to avoid duplicates; closing releases log files
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    
    # Console handler with clean formatting
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    
    # Clean format: [LEVEL] message
    console_formatter = logging.Formatter(
        fmt='[%(levelname)s] %(message)s'
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)
    
    # Optional file handler with more detailed format
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        
        file_formatter = logging.Formatter(
            fmt='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)
    
    # Prevent propagation to root logger
    logger.propagate = False
    
    return logger
