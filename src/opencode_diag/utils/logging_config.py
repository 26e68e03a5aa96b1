"""
OpenCode Diagnostics Logging Configuration

Provides centralized logging setup for consistent log formatting
across the engine, the probes and the CLI.

Usage from an entry point:
    from opencode_diag.utils.logging_config import setup_logging
    setup_logging(level=logging.DEBUG, log_file="~/.config/opencode-diag/diag.log")
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional

# Thread-safe initialization
_initialized = False
_lock = threading.Lock()

SIMPLE_FORMAT = "%(levelname)s: %(message)s"
DEBUG_FORMAT = "%(asctime)s | %(name)s:%(lineno)d | %(levelname)s | %(message)s"

LEVEL_COLORS = {
    'DEBUG': '\033[36m',     # Cyan
    'INFO': '\033[32m',      # Green
    'WARNING': '\033[33m',   # Yellow
    'ERROR': '\033[31m',     # Red
    'CRITICAL': '\033[35m',  # Magenta
}
RESET = '\033[0m'

NOISY_LIBRARIES = ['urllib3', 'requests', 'charset_normalizer', 'asyncio']


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to log levels for terminal output."""

    def __init__(self, fmt=None, datefmt=None, use_colors=True, stream=None):
        super().__init__(fmt, datefmt)
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record):
        if not self.use_colors or record.levelname not in LEVEL_COLORS:
            return super().format(record)
        # Color a copy so other handlers see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{LEVEL_COLORS[record.levelname]}{record.levelname}{RESET}"
        return super().format(record)


def parse_level(value, default: int = logging.INFO) -> int:
    """Accept a level name ("debug") or number; fall back to default."""
    if isinstance(value, int):
        return value
    if not value:
        return default
    level = logging.getLevelName(str(value).strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(
    level: int = logging.WARNING,
    log_file: Optional[str] = None,
    log_format: str = SIMPLE_FORMAT,
    use_colors: bool = True,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
    suppress_libs: bool = True,
    force: bool = False,
) -> None:
    """
    Configure the root logger.

    Console output goes to stderr so that report text on stdout stays
    clean for piping. Calling again is a no-op unless force is set.

    Args:
        level: Logging level
        log_file: Optional file path for a rotating log
        log_format: Console format string
        use_colors: Enable colored level names in a terminal
        max_bytes: Max log file size before rotation
        backup_count: Number of rotated files to keep
        suppress_libs: Quiet noisy third-party loggers
        force: Reconfigure even if already initialized
    """
    global _initialized

    with _lock:
        if _initialized and not force:
            return

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        if use_colors:
            console_handler.setFormatter(ColoredFormatter(log_format, stream=sys.stderr))
        else:
            console_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            # File always gets full detail
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(DEBUG_FORMAT))
            root_logger.addHandler(file_handler)
            root_logger.setLevel(min(level, logging.DEBUG))

        if suppress_libs:
            for lib_name in NOISY_LIBRARIES:
                logging.getLogger(lib_name).setLevel(logging.WARNING)

        _initialized = True

