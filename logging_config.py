"""Console and log-file handlers for the asset scripts."""
import logging
import sys
from typing import Optional

CONSOLE_FORMAT = '%(levelname)s: %(message)s'
VERBOSE_FORMAT = '%(levelname)s %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Route log records to stderr and, optionally, to a file.

    Progress lines go to stdout through print(), so the console handler writes
    to stderr. Calling this again replaces the handlers installed before.

    Args:
        level: Root logging level; DEBUG also adds module names on the console
        log_file: Path of a log file, truncated on every run
    """
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(VERBOSE_FORMAT if level <= logging.DEBUG else CONSOLE_FORMAT))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root.addHandler(file_handler)
