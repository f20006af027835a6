"""
In-process notification bus

Synchronous publish/subscribe for the register's outward notifications
(ProposalCreated, VoteCast, ProposalClosed, AllowlistGranted,
AllowlistRevoked). The register publishes inside its critical section after
state has been applied, so subscribers always observe a consistent register.
"""

from collections import defaultdict
from typing import Callable

from pydantic import BaseModel

from proposal_register.kernel.logging import get_logger

logger = get_logger(__name__)

NotificationHandler = Callable[[str, BaseModel], None]

# Subscribe to this kind to receive every notification
ALL_NOTIFICATIONS = "*"


class NotificationBus:
    """
    Simple synchronous in-process bus

    Handlers are called in registration order with (kind, notification).
    A failing handler is logged and skipped; it never undoes or aborts the
    operation that produced the notification.
    """

    def __init__(self) -> None:
        self._handlers: defaultdict[str, list[NotificationHandler]] = defaultdict(list)
        logger.debug("NotificationBus initialized")

    def subscribe(self, kind: str, handler: NotificationHandler) -> Callable[[], None]:
        """
        Register a handler for one notification kind (or ALL_NOTIFICATIONS)

        Returns:
            Callable that removes the subscription again
        """
        self._handlers[kind].append(handler)
        logger.debug(
            "Notification handler registered",
            kind=kind,
            total_handlers=len(self._handlers[kind]),
        )

        def unsubscribe() -> None:
            if handler in self._handlers[kind]:
                self._handlers[kind].remove(handler)

        return unsubscribe

    def publish(self, kind: str, notification: BaseModel) -> None:
        """Deliver a notification to its kind's handlers, then to wildcard handlers"""
        handlers = [*self._handlers.get(kind, []), *self._handlers.get(ALL_NOTIFICATIONS, [])]
        if not handlers:
            return

        for handler in handlers:
            try:
                handler(kind, notification)
            except Exception as e:
                logger.error(
                    "Notification handler failed",
                    kind=kind,
                    error=str(e),
                    exc_info=True,
                )

    def get_kinds(self) -> list[str]:
        """Notification kinds with at least one subscriber"""
        return [kind for kind, handlers in self._handlers.items() if handlers]

    def clear(self) -> None:
        """Remove all subscribers"""
        self._handlers.clear()
