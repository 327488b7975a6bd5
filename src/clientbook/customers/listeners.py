"""Listeners for customer events."""

from typing import Protocol

import structlog

from clientbook.core.events import CustomerCreated, EventDispatcher
from clientbook.core.logging import LogContext

logger = structlog.get_logger()


class WelcomeNotifier(Protocol):
    """Delivers the welcome message to a new customer."""

    async def send_welcome(self, name: str, email: str) -> None: ...


class LoggingWelcomeNotifier:
    """Notifier that records the welcome message in the log instead of sending it."""

    async def send_welcome(self, name: str, email: str) -> None:
        logger.info("welcome_notification_sent", email=email)


class SendCustomerWelcomeNotification:
    """Queued listener greeting newly created customers.

    Failures are logged and re-raised so the event worker counts them;
    they never reach the request that created the customer.
    """

    queued = True

    def __init__(self, notifier: WelcomeNotifier | None = None):
        self.notifier = notifier or LoggingWelcomeNotifier()

    async def __call__(self, event: CustomerCreated) -> None:
        with LogContext(customer_id=event.customer_id, customer_uuid=event.customer_uuid):
            try:
                await self.notifier.send_welcome(event.name, event.email)
            except Exception as exc:
                self.failed(event, exc)
                raise

    def failed(self, event: CustomerCreated, exc: Exception) -> None:
        logger.error(
            "welcome_notification_failed",
            customer_id=event.customer_id,
            error=str(exc),
        )


def register_customer_listeners(
    events: EventDispatcher,
    notifier: WelcomeNotifier | None = None,
) -> None:
    listener = SendCustomerWelcomeNotification(notifier)
    events.listen(CustomerCreated, listener, queued=listener.queued)
