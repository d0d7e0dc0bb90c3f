"""Loguru sinks for migration runs.

Every record passes through :func:`mask_credentials` before any sink sees it,
so a URL with embedded userinfo never reaches the console or the log file,
whichever component logged it.
"""

import re
import sys
from pathlib import Path
from typing import Optional

from loguru import logger


CONSOLE_FORMAT = (
    '<green>{time:YYYY-MM-DD HH:mm:ss}</green> | '
    '<level>{level: <8}</level> | '
    '<cyan>{extra[component]}</cyan> | '
    '<level>{message}</level>'
)

FILE_FORMAT = '{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[component]} | {message}'

_CREDENTIALS_IN_URL = re.compile(r'(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@')


def mask_credentials(text: str) -> str:
    """Hide the userinfo part of any URL in ``text``."""
    if not text:
        return text
    return _CREDENTIALS_IN_URL.sub(r'\g<scheme>***@', text)


def _mask_record(record) -> None:
    record['message'] = mask_credentials(record['message'])


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """Replace loguru's sinks with a stderr sink and an optional rotating file.

    Args:
        level: Minimum level for both sinks
        log_file: Path of the run log; parent directories are created
        log_format: Console format overriding :data:`CONSOLE_FORMAT`
    """
    logger.remove()
    # Records from unbound loggers get a default component.
    logger.configure(extra={'component': 'repo-migrate'}, patcher=_mask_record)

    logger.add(
        sys.stderr,
        format=log_format or CONSOLE_FORMAT,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=level,
            rotation='10 MB',
            retention='30 days',
            compression='gz',
            backtrace=True,
            diagnose=False,
        )

    logger.debug(
        f'Logging at {level}' + (f', writing to {log_file}' if log_file else '')
    )


def get_logger(name: str):
    """Return the shared logger bound to component ``name``."""
    return logger.bind(component=name)
