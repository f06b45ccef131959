# Logging setup for the ESC/POS emulator
# Rotating log file for everything; the console shows decoded receipts as they print

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Union

# Default log directory (project root / logs)
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_FILE = LOG_DIR / "escpos_emulator.log"
LOG_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
LOG_BACKUP_COUNT = 5

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# requests' connection pool logs every webhook connection at INFO/DEBUG
QUIET_LOGGERS = ('urllib3',)

# Pass as extra= to have a record shown bare on the console
RECEIPT_VIEW = {'receipt_view': True}


def resolve_level(level: Union[int, str]) -> int:
    """Turn 'info' / 'DEBUG' / 20 into a logging level; unknown names are a config error"""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


class ReceiptConsoleFormatter(logging.Formatter):
    """
    Console formatter that prints receipt views without the log prefix,
    so multi-line receipts line up the way they came off the printer.
    """

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, 'receipt_view', False):
            return record.getMessage()
        return super().format(record)


def setup_logging(
    log_path: Optional[Path] = None,
    max_bytes: int = LOG_MAX_BYTES,
    backup_count: int = LOG_BACKUP_COUNT,
    console: bool = True,
    level: Union[int, str] = logging.INFO,
) -> Path:
    """
    Configure logging with file rotation and optional console output.

    Returns the path of the log file.
    """
    level = resolve_level(level)
    log_path = Path(log_path or LOG_FILE)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    # Avoid duplicate handlers when called multiple times
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ReceiptConsoleFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return log_path


def setup_logging_from_config(config: Dict[str, Any]) -> Path:
    """setup_logging() driven by the log_* keys of config.json"""
    return setup_logging(
        log_path=config.get('log_file') or None,
        max_bytes=config.get('log_max_bytes', LOG_MAX_BYTES),
        backup_count=config.get('log_backup_count', LOG_BACKUP_COUNT),
        level=config.get('log_level', logging.INFO),
    )
