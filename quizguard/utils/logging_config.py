"""
Logging setup for the quizguard service

Console output plus, when enabled, three rotating files under the log
directory:
- <service>_<date>.log      everything
- <service>_errors.log      ERROR and above
- <service>_audit.log       [PROCTOR] monitoring events only
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from datetime import datetime
from typing import List, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
AUDIT_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

PROCTOR_PREFIX = "[PROCTOR]"


class ProctorEventFilter(logging.Filter):
    """Pass only structured monitoring events."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.getMessage().startswith(PROCTOR_PREFIX)


def _rotating(path: Path, max_mb: int, backups: int, level: int, formatter: logging.Formatter):
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backups,
        encoding="utf-8"
    )
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def setup_logging(
    service_name: str = "quizguard",
    level: str = "INFO",
    log_to_file: bool = False,
    log_to_console: bool = True,
    log_dir: Optional[str] = None
) -> logging.Logger:
    """
    Configure the root logger for the service.

    Args:
        service_name: Used as the log file prefix and the startup logger name
        level: Root level (DEBUG shows suppressed duplicate violations)
        log_to_file: Write the rotating main, error and audit files
        log_to_console: Write to stdout
        log_dir: Directory for log files (created if missing)

    Returns:
        The service logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Replace, never stack, handlers on repeated setup
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(console_handler)

    log_files: List[Path] = []
    if log_to_file:
        directory = Path(log_dir or "logs")
        directory.mkdir(parents=True, exist_ok=True)

        today = datetime.now().strftime("%Y-%m-%d")
        main_file = directory / f"{service_name}_{today}.log"
        error_file = directory / f"{service_name}_errors.log"
        audit_file = directory / f"{service_name}_audit.log"

        root_logger.addHandler(_rotating(main_file, 10, 5, logging.DEBUG, formatter))
        root_logger.addHandler(_rotating(error_file, 5, 3, logging.ERROR, formatter))

        audit_handler = _rotating(
            audit_file, 10, 10, logging.DEBUG, logging.Formatter(AUDIT_FORMAT, DATE_FORMAT)
        )
        audit_handler.addFilter(ProctorEventFilter())
        root_logger.addHandler(audit_handler)

        log_files = [main_file, error_file, audit_file]

    logger = logging.getLogger(service_name)
    logger.info(f"=== {service_name.upper()} STARTED ===")
    logger.info(f"Log level: {level}")
    for path in log_files:
        logger.info(f"Log file: {path}")

    return logger
