"""Error types raised by the RPC layer and helpers for classifying them."""

from typing import Optional

import httpx

# httpcore reports an accepted request whose connection was closed before any
# response bytes arrived with this message.
_SERVER_DISCONNECTED_MARKER = "server disconnected"


class DevPortalError(RuntimeError):
    """Base class for all errors raised by this package."""


class TransportError(DevPortalError):
    """The request could not be completed at the transport level.

    Covers refused connections, DNS failures and malformed responses. The
    underlying httpx exception is available as `__cause__`.
    """


class RequestTimeoutError(TransportError):
    """The request did not complete within its timeout."""


class HttpStatusError(DevPortalError):
    """The dev server answered with a non-success status code."""

    def __init__(self, status: int, body: str) -> None:
        """Initializes the HttpStatusError.

        Args:
            status: HTTP status code of the response.
            body: Response body text, possibly empty.
        """
        super().__init__(f"HTTP {status}: {body}")
        self.status = status
        self.body = body


class RemoteCallError(DevPortalError):
    """A remote plugin method reported a failure."""

    def __init__(self, method: str, error: Optional[str]) -> None:
        super().__init__(f"Remote call '{method}' failed: {error}")
        self.method = method
        self.error = error


class DeviceNotFoundError(DevPortalError):
    """Discovery finished without finding a running dev server."""


def is_connection_hangup_error(error: BaseException) -> bool:
    """Checks if an exception means the peer hung up without responding.

    Two signatures are recognized: httpx reporting that the server
    disconnected without sending a response, and a `ConnectionResetError`
    anywhere in the exception's cause/context chain.

    Args:
        error: The exception to check.

    Returns:
        True if the error is an abrupt close by the peer, False otherwise.
    """
    if isinstance(error, httpx.RemoteProtocolError):
        if _SERVER_DISCONNECTED_MARKER in str(error).lower():
            return True

    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        if isinstance(current, ConnectionResetError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False
