"""
Logging setup for the tracker.

Every module logs through ``logging.getLogger(__name__)``; this module only
installs the console handler once, at application start.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: int | str = logging.INFO) -> None:
    """
    Install a rich console handler on the root logger.

    Args:
        level: logging level (int or a name such as ``"DEBUG"``).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    console = Console(width=120, stderr=True)
    handler = RichHandler(
        console=console,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))

    logging.basicConfig(level=level, format="%(message)s", handlers=[handler])

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
