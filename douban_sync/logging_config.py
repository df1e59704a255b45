"""Logging setup for douban-sync runs."""
import logging
import logging.handlers
from datetime import datetime, timedelta
from pathlib import Path

FILE_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
CONSOLE_FORMAT = "[%(asctime)s] %(message)s"

# Chatty third-party loggers kept at WARNING in the run log
QUIET_LOGGERS = ("urllib3", "charset_normalizer")


def setup_logging(log_dir: Path, retention_days: int = 30, verbose: bool = False) -> logging.Logger:
    """Log DEBUG to a dated file in log_dir and INFO (DEBUG if verbose) to the console.

    Dated files older than retention_days are removed first.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    cleanup_old_logs(log_dir, retention_days)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_dir / f"{datetime.now():%Y-%m-%d}.log",
        when="midnight",
        backupCount=retention_days,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def cleanup_old_logs(log_dir: Path, retention_days: int) -> int:
    """Delete YYYY-MM-DD.log files older than retention_days; return how many."""
    if not log_dir.exists():
        return 0

    cutoff = datetime.now() - timedelta(days=retention_days)
    removed = 0
    for log_file in log_dir.glob("*.log"):
        try:
            if datetime.strptime(log_file.stem, "%Y-%m-%d") < cutoff:
                log_file.unlink()
                removed += 1
        except (ValueError, OSError):
            # not a dated log, or already gone
            continue
    return removed
