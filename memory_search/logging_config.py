"""Logging configuration with console and rotating file handlers"""
import glob
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

KEEP_SESSION_LOGS = 5
MAX_LOG_BYTES = 10 * 1024 * 1024


def setup_logging(
    log_file: Optional[str] = "logs/memory-search.log",
    console_level: Union[int, str] = logging.INFO,
    file_level: Union[int, str] = logging.DEBUG,
) -> Optional[Path]:
    """
    Configure logging with two destinations:
    - Console: Brief logs (INFO by default), on stderr so stdout stays clean
    - File: Detailed logs (DEBUG by default) with rotation

    Rotation policy:
    - New log file per session (timestamp-based naming)
    - Keep the last 5 session files (older ones deleted on startup)
    - Auto-rotate when a file reaches 10MB

    Args:
        log_file: Base path of the log file; None disables file logging
        console_level: Console logging level (name or number)
        file_level: File logging level (name or number)

    Returns:
        Path of this session's log file, or None without file logging
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything, filter in handlers

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root_logger.addHandler(console_handler)

    if log_file is None:
        logging.info(f"Logging configured: console={logging.getLevelName(console_handler.level)}")
        return None

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Cleanup old session logs, leaving room for this one
    log_pattern = str(log_path.parent / f"{log_path.stem}_*.log")
    existing_logs = sorted(glob.glob(log_pattern), reverse=True)  # Newest first
    for old_log in existing_logs[KEEP_SESSION_LOGS - 1:]:
        try:
            Path(old_log).unlink()
        except OSError as e:
            logging.getLogger(__name__).debug(f"Could not delete old log {old_log}: {e}")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"

    file_handler = RotatingFileHandler(
        session_log,
        mode='a',
        maxBytes=MAX_LOG_BYTES,
        backupCount=10,
        encoding='utf-8'
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(file_handler)

    logging.info(
        f"Logging configured: console={logging.getLevelName(console_handler.level)}, "
        f"file={session_log} ({logging.getLevelName(file_handler.level)})"
    )
    return session_log
