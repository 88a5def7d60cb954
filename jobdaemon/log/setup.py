import os
import sys
import time
import logging
from pathlib import Path
from typing import Optional, TextIO

BOLD = "\033[1m"
RED = "\033[31m"
RESET = "\033[0m"

FILE_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'


class ConsoleFormatter(logging.Formatter):
    """
    Formats records for the controlling terminal: a bold timestamp prefix,
    with error-level messages printed in red.
    """

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record):
        message = super().format(record)
        stamp = "[" + time.strftime("%d.%m.%Y %H:%M:%S", time.localtime(record.created)) + "] "
        if not self.use_color:
            return stamp + message
        if record.levelno >= logging.ERROR:
            message = f"{RED}{message}{RESET}"
        return f"{BOLD}{stamp}{RESET}{message}"


def _supports_color(stream: TextIO) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(
    name: str,
    log_dir: Optional[Path] = None,
    console_level: int = logging.INFO,
    daemonized: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configures the root logger for a daemon.
    This sets up a file target and, unless the daemon has detached from its
    terminal, a console handler that echoes every record with a timestamp.
    Previously configured handlers are cleared to prevent duplication.

    :param name: The daemon name, used for the log file name.
    :param log_dir: Directory for the log file. No file target when None.
    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param daemonized: If True, no terminal output is produced at all.
    :param stream: Stream for the console handler, defaults to sys.stdout.
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    if root_logger.hasHandlers():
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

    # --- File Handler ---
    if log_dir is not None:
        try:
            Path(log_dir).mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(Path(log_dir) / f"{name}.log", encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"ERROR: Failed to open log file in '{log_dir}': {e}", file=sys.stderr)

    # --- Console Handler ---
    if not daemonized:
        stream = stream or sys.stdout
        console_handler = logging.StreamHandler(stream)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(ConsoleFormatter(use_color=_supports_color(stream)))
        root_logger.addHandler(console_handler)


def flush_handlers() -> None:
    """Flushes every handler on the root logger."""
    for handler in logging.getLogger().handlers:
        try:
            handler.flush()
        except (OSError, ValueError):
            continue
