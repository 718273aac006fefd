"""
Logging configuration for ATX Inspector.

Decoder diagnostics and progress messages go through the standard logging
module; this module wires them to an optional log file and to a rich
console handler.
"""

import logging
import platform
import sys
from pathlib import Path
from typing import List, Optional

from rich.logging import RichHandler

# Handlers installed by setup_logging, replaced on each call
_installed_handlers: List[logging.Handler] = []


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO,
                  console: bool = True) -> None:
    """
    Configure logging for the application.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_file: Path to log file (default: no log file)
        level: Logging level (default: logging.INFO)
        console: Also log to the terminal through rich (default: True)

    Example:
        >>> setup_logging("atx-inspector.log", logging.DEBUG)
        >>> logging.info("Decoding started")
    """
    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    root.setLevel(level)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root.addHandler(file_handler)
        _installed_handlers.append(file_handler)

    if console:
        console_handler = RichHandler(show_path=False, markup=False)
        console_handler.setLevel(level)
        root.addHandler(console_handler)
        _installed_handlers.append(console_handler)

    log_system_info()


def log_system_info() -> None:
    """
    Log system information for debugging purposes.

    Captures platform and Python version at DEBUG level.
    """
    logging.debug("=" * 60)
    logging.debug("ATX Inspector - System Information")
    logging.debug("=" * 60)
    logging.debug("Platform: %s %s", platform.system(), platform.release())
    logging.debug("Machine: %s", platform.machine())
    logging.debug("Python version: %s", sys.version)
    logging.debug("=" * 60)
