"""
Outbound notifications (verification codes, invitation links).

Delivery is fire-and-forget: ``NotificationDispatcher.send`` schedules the
notifier on the running event loop and returns immediately. A failing notifier
is logged and never reaches the operation that triggered it.
"""

import asyncio
from typing import Protocol, Set

import structlog

from app.core.logging import mask_email

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    async def notify(self, address: str, message: str) -> None:
        ...


class LoggingNotifier:
    """Development notifier: delivers messages to the application log."""

    async def notify(self, address: str, message: str) -> None:
        logger.info("notification_delivered", address=address, message=message)


class NotificationDispatcher:

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self._pending: Set[asyncio.Task] = set()

    def send(self, address: str, message: str) -> None:
        """Schedule delivery of ``message`` to ``address`` without waiting for it."""
        task = asyncio.get_running_loop().create_task(self._deliver(address, message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _deliver(self, address: str, message: str) -> None:
        try:
            await self.notifier.notify(address, message)
        except Exception:
            logger.exception("notification_failed", address=mask_email(address))
