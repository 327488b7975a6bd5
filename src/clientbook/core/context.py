"""Per-request state carried through async code in a ``ContextVar``.

The context middleware opens one ``request_context`` per HTTP request; the
logging processors and the bearer-token dependency read it from anywhere
below that point without it being passed around.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_utils.compat import uuid7

from clientbook.core.exceptions import ContextNotSetError


class RequestContext(BaseModel):
    """What is known about the request being served.

    ``user_id`` stays ``None`` until a bearer token resolves to a user.
    """

    request_id: UUID = Field(default_factory=uuid7)
    client_ip: str | None = None
    user_id: int | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_log_dict(self) -> dict[str, Any]:
        return {
            "request_id": str(self.request_id),
            "client_ip": self.client_ip,
            "user_id": self.user_id,
        }


_current: ContextVar[RequestContext | None] = ContextVar("clientbook_request", default=None)


def get_current_context_or_none() -> RequestContext | None:
    return _current.get()


def get_current_context() -> RequestContext:
    """Return the active request context.

    Raises:
        ContextNotSetError: Called outside ``request_context``
    """
    ctx = _current.get()
    if ctx is None:
        raise ContextNotSetError("no request is being served in this context")
    return ctx


@contextmanager
def request_context(ctx: RequestContext) -> Iterator[RequestContext]:
    """Make ``ctx`` current for the block, restoring the previous one after.

    Tasks created inside the block inherit ``ctx``.
    """
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


def create_context(
    *,
    client_ip: str | None = None,
    user_id: int | None = None,
    request_id: UUID | None = None,
) -> RequestContext:
    ctx = RequestContext(client_ip=client_ip, user_id=user_id)
    if request_id is not None:
        ctx.request_id = request_id
    return ctx
