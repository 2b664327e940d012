"""Logging configuration for design-kb with log rotation.

All components log under the ``design_kb`` namespace. The MCP server talks
over stdio, so console output must stay off in that mode: anything written to
stdout corrupts the protocol stream.

Log Rotation Policy:
- Max file size: 10 MB per log file
- Backup count: 5 (keeps design-kb.log, design-kb.log.1, ..., design-kb.log.5)
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_DIR = "~/.design-kb/logs"
DEFAULT_LOG_FILE = "design-kb.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB per file
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

ROOT_LOGGER_NAME = "design_kb"

_configured = False


def configure_logging(
    log_dir: str | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    log_level: int | str = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    console_output: bool = True,
) -> logging.Logger:
    """Configure design-kb logging with automatic log rotation.

    Args:
        log_dir: Directory for log files (default: $DESIGN_KB_LOG_DIR, else ~/.design-kb/logs)
        log_file: Log file name (default: design-kb.log)
        max_bytes: Maximum size per log file before rotation (default: 10 MB)
        backup_count: Number of backup files to keep (default: 5)
        log_level: Logging level, as a number or a name like "DEBUG"
        log_format: Log message format
        console_output: Whether to also log to stderr (default: True)

    Returns:
        The root design_kb logger instance.
    """
    global _configured

    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper())

    log_dir = log_dir or os.environ.get("DESIGN_KB_LOG_DIR") or DEFAULT_LOG_DIR
    log_path = Path(os.path.expanduser(log_dir))
    log_path.mkdir(parents=True, exist_ok=True)
    full_log_path = log_path / log_file

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicates on reconfiguration
    root_logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    file_handler = RotatingFileHandler(
        full_log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if console_output:
        # StreamHandler defaults to stderr, which is safe next to stdio transports
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    root_logger.propagate = False

    _configured = True

    root_logger.info(
        f"Logging configured: file={full_log_path}, "
        f"max_size={max_bytes // (1024*1024)}MB, "
        f"backups={backup_count}"
    )

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a design-kb component.

    Args:
        name: Component name (e.g., 'repository', 'server', 'web_server')

    Returns:
        A logger instance under the design_kb namespace.
    """
    if not _configured:
        configure_logging(console_output=False)

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
