"""Request helpers shared by middleware and dependencies."""

from starlette.requests import HTTPConnection


def get_client_ip(request: HTTPConnection) -> str | None:
    """Extract the client IP, honouring proxy headers from trusted peers only.

    ``X-Forwarded-For`` and ``X-Real-IP`` are read only when the direct
    peer is listed in ``settings.TRUSTED_PROXIES``. Otherwise the socket
    address is the client.
    """
    peer = request.client.host if request.client else None
    if peer is None or peer not in request.app.state.settings.TRUSTED_PROXIES:
        return peer

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # first IP in the chain is the original client
        return forwarded_for.split(",")[0].strip() or peer

    return request.headers.get("X-Real-IP") or peer
