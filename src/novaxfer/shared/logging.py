"""
Logging Module - Rich console logging for indexing runs.
========================================================

Every module asks for its logger with ``get_logger(__name__)``. The first
call installs a Rich handler at INFO so library use and tests get readable
output with no setup; the CLI then reconfigures from settings with
``setup_logging(..., force=True)``.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Chatty at INFO/DEBUG; a PDF decode alone emits thousands of pdfminer records
QUIET_LOGGERS = ("urllib3", "requests", "pdfminer", "pdfplumber")

_configured = False
_console = Console()


def _console_handler(use_rich: bool, log_format: str) -> logging.Handler:
    if use_rich:
        handler: logging.Handler = RichHandler(
            console=_console,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(log_format))
    return handler


def setup_logging(
    level: str = "INFO",
    use_rich: bool = True,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Install handlers on the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO
        use_rich: Rich console output instead of plain formatted lines
        log_file: Also append records to this file
        log_format: Format for plain and file output
        force: Replace an earlier configuration instead of keeping it
    """
    global _configured

    if _configured and not force:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    log_format = log_format or DEFAULT_FORMAT

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(numeric_level)
    root.addHandler(_console_handler(use_rich, log_format))

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    logging.getLogger(__name__).debug(
        f"Logging configured: level={level}, rich={use_rich}, file={log_file}"
    )


def get_logger(name: str) -> logging.Logger:
    """Named logger; configures defaults on first use."""
    if not _configured:
        setup_logging()
    return logging.getLogger(name)


def get_console() -> Console:
    """The Rich console log output goes to, for tables and panels."""
    return _console
