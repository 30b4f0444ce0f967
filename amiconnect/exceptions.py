"""
Exception hierarchy for amiconnect.

All exceptions inherit from AMIError, providing a clean hierarchy
for error handling. The design follows these principles:

1. Connection errors (refused, reset, timed out) are distinct from action errors
2. Server-reported action failures carry the original response packet
3. Action errors reject only the request that caused them, never the session
4. All exceptions provide meaningful error messages
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping


class AMIError(Exception):
    """
    Base exception for all amiconnect errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all amiconnect errors with a single except clause.
    """

    pass


class ProtocolError(AMIError):
    """
    Protocol-level error.

    Raised when the protocol is violated, such as:
    - A response that cannot be correlated with its request
    - A malformed list response
    """

    pass


class ActionError(ProtocolError):
    """
    Error response from the server.

    Raised when the server answers an action with a status other than
    Success. The message is the server's Message field, so callers see
    "Permission denied" rather than a generic failure.
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        response: Mapping[str, Any] | None = None,
        action: str | None = None,
    ) -> None:
        self.response = response
        self.action = action
        self.message = message or "Action failed"
        super().__init__(self.message)

    @property
    def status(self) -> str | None:
        """The Response field of the failing packet, if any."""
        if self.response is None:
            return None
        value = self.response.get("Response")
        return None if value is None else str(value)

    def __str__(self) -> str:
        if self.action:
            return f"{self.action}: {self.message}"
        return self.message


class ConnectionError(AMIError):  # noqa: A001 - intentionally shadows builtin
    """
    Server connection error.

    Raised when:
    - The connection is refused or reset
    - The connection is unexpectedly lost
    - Data cannot be written to the socket
    """

    pass


class TimeoutError(ConnectionError):  # noqa: A001 - intentionally shadows builtin
    """
    Connection timeout.

    Raised when the TCP connection is not established within the
    configured connection timeout.
    """

    def __init__(
        self,
        message: str = "Connection timed out",
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds is not None:
            return f"{base} (after {self.timeout_seconds:.1f}s)"
        return base


class SessionClosedError(ConnectionError):
    """
    The session was torn down while a request was still pending.

    Every request outstanding at close or reconnect is rejected with this
    error instead of being left unresolved.
    """

    def __init__(self, message: str = "Session closed") -> None:
        super().__init__(message)


class TransportError(AMIError):
    """
    Transport-level error.

    Raised for low-level transport issues:
    - Socket I/O errors
    - Reading from or writing to a closed transport
    """

    pass


class AuthenticationError(AMIError):
    """
    Authentication failure.

    login() reports failure by returning False; this error is raised only
    when another action triggers an implicit login that does not succeed.
    """

    def __init__(self, message: str = "Connection not authenticated") -> None:
        super().__init__(message)


class StateError(AMIError):
    """
    Illegal connection state transition.

    Raised when an operation would move the client between two states that
    are not connected in the state machine, such as starting a second
    connect while one is already in progress.
    """

    def __init__(self, current: Any, requested: Any) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move from {getattr(current, 'name', current)} "
            f"to {getattr(requested, 'name', requested)}"
        )
