"""Logging configuration with console and rotating file handlers"""
import glob
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_RETENTION = 5


def setup_logging(
    log_file: Optional[str] = "logs/faq-matcher.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Optional[Path]:
    """
    Configure logging for matcher scripts and embedding services.

    - Console: Brief logs (INFO by default)
    - File: Detailed logs (DEBUG by default), one timestamped file per run,
      rotated at 10MB, last 5 runs kept

    The library itself never calls this; it only logs through
    logging.getLogger(__name__).

    Args:
        log_file: Base path to log file, None for console only
        console_level: Console logging level
        file_level: File logging level

    Returns:
        Path of this run's log file (None when file logging is disabled)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root_logger.addHandler(console_handler)

    # Third-party clients are chatty at DEBUG
    for noisy in ("urllib3", "httpx", "httpcore", "google_genai", "sentence_transformers"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    if log_file is None:
        logging.info(f"Logging configured: console={logging.getLevelName(console_level)}")
        return None

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Keep the newest LOG_RETENTION - 1 files; this run adds one more
    existing_logs = sorted(glob.glob(str(log_path.parent / f"{log_path.stem}_*.log")), reverse=True)
    for old_log in existing_logs[LOG_RETENTION - 1:]:
        try:
            Path(old_log).unlink()
        except OSError:
            logging.debug(f"Could not delete old log file {old_log}")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"

    file_handler = RotatingFileHandler(
        session_log,
        mode='a',
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=LOG_RETENTION,
        encoding='utf-8'
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(file_handler)

    logging.info(
        f"Logging configured: console={logging.getLevelName(console_level)}, "
        f"file={session_log} ({logging.getLevelName(file_level)})"
    )
    return session_log
