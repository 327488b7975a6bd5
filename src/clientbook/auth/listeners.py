"""Listeners for authentication events."""

import structlog

from clientbook.core.events import EventDispatcher, UserLoggedIn, UserLoggedOut

logger = structlog.get_logger("clientbook.audit")


def log_auth_event(event: UserLoggedIn | UserLoggedOut) -> None:
    """Write an audit line for a login or logout."""
    if isinstance(event, UserLoggedIn):
        logger.info(
            "user_logged_in",
            user_id=event.user_id,
            user_uuid=event.user_uuid,
            username=event.username,
            device_name=event.device_name,
            ip_address=event.ip_address,
        )
    else:
        logger.info(
            "user_logged_out",
            user_id=event.user_id,
            user_uuid=event.user_uuid,
            all_devices=event.all_devices,
        )


def register_auth_listeners(events: EventDispatcher) -> None:
    events.listen(UserLoggedIn, log_auth_event)
    events.listen(UserLoggedOut, log_auth_event)
