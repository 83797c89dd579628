"""Transient user notifications.

Every failure path produces exactly one notification; successes are
announced the same way.
"""

import logging
from typing import Optional

from rich.console import Console

logger = logging.getLogger(__name__)


class Notifier:
    """Receives transient messages. The base implementation only logs them."""

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.warning(message)

    def info(self, message: str) -> None:
        logger.info(message)


class ConsoleNotifier(Notifier):
    """Prints notifications with rich styling."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def success(self, message: str) -> None:
        self.console.print(f"✅ {message}", style="green", markup=False)

    def error(self, message: str) -> None:
        self.console.print(f"❌ {message}", style="red", markup=False)

    def info(self, message: str) -> None:
        self.console.print(f"💡 {message}", style="dim", markup=False)
