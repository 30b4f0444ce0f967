"""
Asterisk Manager Interface client.

This module provides the session manager: it owns the transport connection
and composes the packet decoder and the action correlator over it.

The client implements a state machine for the connection lifecycle:
    DISCONNECTED -> connect() -> CONNECTING
    CONNECTING -> greeting received -> CONNECTED
    CONNECTED -> login() -> AUTHENTICATED
    AUTHENTICATED -> connection lost -> RECONNECTING -> CONNECTING ...
    any state -> close() -> DISCONNECTED

Received bytes are buffered as they arrive and decoded on a periodic
schedule (read_interval). Each decoded packet is emitted as a RESPONSE
event and then offered to the correlator, which completes the matching
pending action.

Example:
    >>> from amiconnect import ManagerClient
    >>>
    >>> async def main():
    ...     async with ManagerClient(host="127.0.0.1", user="admin", password="secret") as ami:
    ...         if await ami.login():
    ...             print(await ami.ping())
    ...             peers = await ami.send({"Action": "SIPpeers"})
    ...             for peer in peers.items:
    ...                 print(peer["ObjectName"])
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Mapping
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Final

from amiconnect.config import ClientOptions
from amiconnect.events import ClientEvent, EventEmitter
from amiconnect.exceptions import (
    AMIError,
    ActionError,
    AuthenticationError,
    ConnectionError,
    SessionClosedError,
    StateError,
    TimeoutError,
    TransportError,
)
from amiconnect.models.packets import ActionResult, Packet
from amiconnect.protocol.constants import PONG, Action, Field, ProtocolConstants
from amiconnect.protocol.correlator import ActionCorrelator
from amiconnect.protocol.frame_reader import PacketDecoder
from amiconnect.scheduler import PeriodicTask
from amiconnect.transport.tcp import TcpTransport

if TYPE_CHECKING:
    from types import TracebackType

    from amiconnect.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)

_GREETING: Final[bytes] = ProtocolConstants.GREETING_BANNER.encode("ascii")


class ClientState(Enum):
    """Manager client connection states."""

    DISCONNECTED = auto()
    """No connection."""

    CONNECTING = auto()
    """Connect in progress, or transport open and greeting not yet seen."""

    CONNECTED = auto()
    """Transport open and server greeting received."""

    AUTHENTICATED = auto()
    """Login succeeded."""

    RECONNECTING = auto()
    """Authenticated connection was lost; reconnect attempts are running."""


_TRANSITIONS: Final[dict[ClientState, frozenset[ClientState]]] = {
    ClientState.DISCONNECTED: frozenset({ClientState.CONNECTING}),
    ClientState.CONNECTING: frozenset({
        ClientState.CONNECTING,
        ClientState.CONNECTED,
        ClientState.AUTHENTICATED,
        ClientState.DISCONNECTED,
        ClientState.RECONNECTING,
    }),
    ClientState.CONNECTED: frozenset({
        ClientState.CONNECTING,
        ClientState.AUTHENTICATED,
        ClientState.RECONNECTING,
        ClientState.DISCONNECTED,
    }),
    ClientState.AUTHENTICATED: frozenset({
        ClientState.CONNECTING,
        ClientState.RECONNECTING,
        ClientState.DISCONNECTED,
    }),
    ClientState.RECONNECTING: frozenset({
        ClientState.CONNECTING,
        ClientState.DISCONNECTED,
    }),
}
"""
Legal state transitions. close() may leave any state.

CONNECTING -> CONNECTING restarts a session still waiting for its greeting;
a connect whose transport open is in flight is refused separately.
"""


class ManagerClient(EventEmitter):
    """
    Client for an Asterisk manager server.

    One instance manages exactly one logical connection. Actions are
    multiplexed over it by ActionID, so any number of send() calls may be
    outstanding at once and complete in any order.

    Attributes:
        state: Current connection state.
        authenticated: Whether login succeeded on the current connection.
        options: Effective configuration.
        transport: The underlying transport layer.

    Example:
        >>> ami = ManagerClient(host="pbx.example.net", user="admin", password="secret")
        >>>
        >>> @ami.on("close")
        ... def closed(had_error):
        ...     print("connection closed", had_error)
        >>>
        >>> await ami.login()
        >>> await ami.module_check("chan_pjsip")
        True
        >>> await ami.close()
    """

    def __init__(
        self,
        options: ClientOptions | None = None,
        transport: AbstractTransport | None = None,
        **overrides: Any,
    ) -> None:
        """
        Initialize the manager client.

        Args:
            options: Client configuration. Defaults to ClientOptions().
            transport: Transport to use. Defaults to a TcpTransport for
                options.host and options.port.
            **overrides: Individual ClientOptions fields, applied on top of
                options (validated).
        """
        super().__init__()

        if options is None:
            options = ClientOptions(**overrides)
        elif overrides:
            options = ClientOptions(**{**options.model_dump(), **overrides})

        self._options = options
        self._transport = transport or TcpTransport(options.host, options.port)
        self._decoder = PacketDecoder()
        self._correlator = ActionCorrelator()
        self._decode_schedule = PeriodicTask(
            options.read_interval,
            self._process_incoming,
            name="ami-decode",
        )
        self._keep_alive: PeriodicTask | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._recovery_task: asyncio.Task[None] | None = None
        self._login_lock = asyncio.Lock()
        self._connect_idle = asyncio.Event()
        self._connect_idle.set()
        self._greeting_tail = b""

        self._state = ClientState.DISCONNECTED
        self._authenticated = False
        self._reconnect_armed = False
        self._transport_live = False
        self._closed = False

    @property
    def state(self) -> ClientState:
        """Get the current connection state."""
        return self._state

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def is_connected(self) -> bool:
        """Check if the server greeting has been received on an open connection."""
        return self._state in (ClientState.CONNECTED, ClientState.AUTHENTICATED)

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def transport(self) -> AbstractTransport:
        """Get the underlying transport."""
        return self._transport

    @property
    def pending_count(self) -> int:
        """Number of actions awaiting a reply."""
        return self._correlator.pending_count

    async def connect(self) -> None:
        """
        Open a fresh connection to the server.

        Any previous session is torn down first: its pending actions are
        rejected, the decode buffer is cleared and the keepalive is
        cancelled. The connect is bounded by options.connection_timeout.

        Raises:
            StateError: If another connect is still opening the transport.
            TimeoutError: If the connection is not established in time.
            SessionClosedError: If close() runs before the transport is open.
            ConnectionError: If the connection is refused or fails.
        """
        await self._open_session(fail_state=ClientState.DISCONNECTED)

    async def login(self, user: str | None = None, password: str | None = None) -> bool:
        """
        Connect and authenticate.

        On success the keepalive (if enabled) is started and reconnect
        handling is armed for the new connection.

        Args:
            user: Username; defaults to options.user.
            password: Secret; defaults to options.password.

        Returns:
            True if the server accepted the credentials, False otherwise.

        Raises:
            TimeoutError: If the connection is not established in time.
            ConnectionError: If the connection fails.
        """
        username = self._options.user if user is None else user
        secret = self._options.password if password is None else password

        await self.connect()

        try:
            response = await self._dispatch({
                Field.ACTION: Action.LOGIN.value,
                Field.USERNAME: username,
                Field.SECRET: secret,
                Field.EVENTS: "off",
            })
        except ActionError as e:
            logger.warning("Login as %r rejected: %s", username, e.message)
            return False

        if not response.is_success:
            return False

        self._authenticated = True
        self._set_state(ClientState.AUTHENTICATED)
        self._reconnect_armed = True

        if self._options.keep_alive_enabled:
            self._keep_alive = PeriodicTask(
                self._options.keep_alive_interval,
                self._keep_alive_tick,
                name="ami-keepalive",
            )
            self._keep_alive.start()

        logger.info("Authenticated as %r on %s", username, self._transport.peer_name)
        return True

    async def send(self, action: Mapping[str, Any]) -> ActionResult:
        """
        Send an action and wait for its reply.

        If the client is not authenticated, any action other than Login
        first triggers login() with the configured credentials.

        Args:
            action: Request fields; must include a non-empty Action. An
                ActionID is attached automatically.

        Returns:
            The reply packet, or a ListResponse for list actions.

        Raises:
            ValueError: If the Action field is missing or empty.
            AuthenticationError: If the implicit login fails.
            ActionError: If the server answers with a non-Success status.
            ConnectionError: If the request cannot be written, or the
                session is closed before the reply arrives.
        """
        name = str(action.get(Field.ACTION, "")).strip()
        if not name:
            raise ValueError("Request requires a non-empty Action field")

        if not self._authenticated and name.lower() != Action.LOGIN.value.lower():
            async with self._login_lock:
                # Let a connect already in flight (e.g. a reconnect attempt) finish
                await self._connect_idle.wait()
                if not self._authenticated and not await self.login():
                    raise AuthenticationError()

        return await self._dispatch(action)

    async def ping(self) -> bool:
        """
        Send a Ping action.

        Returns:
            True if the server answered Success with "Ping: Pong".
        """
        response = await self.send({Field.ACTION: Action.PING.value})
        return (
            isinstance(response, Packet)
            and response.is_success
            and response.get(Field.PING) == PONG
        )

    async def module_check(self, module: str) -> bool:
        """
        Check whether a module is loaded on the server.

        Any failure, including "module not loaded", reads as False.
        """
        try:
            await self.send({Field.ACTION: Action.MODULE_CHECK.value, Field.MODULE: module})
        except AMIError as e:
            logger.debug("ModuleCheck %s: %s", module, e)
            return False
        return True

    async def close(self) -> None:
        """
        Close the connection.

        Cancels the keepalive and any reconnect in progress, clears the
        authenticated flag, stops the decode schedule, rejects pending
        actions with SessionClosedError and closes the transport.
        Safe to call from any state, any number of times.
        """
        await self._shutdown(had_error=False)

    async def _open_session(self, fail_state: ClientState) -> None:
        if not self._connect_idle.is_set():
            raise StateError(self._state, ClientState.CONNECTING)
        self._check_transition(ClientState.CONNECTING)

        self._connect_idle.clear()
        try:
            await self._establish(fail_state)
        finally:
            self._connect_idle.set()

    async def _establish(self, fail_state: ClientState) -> None:
        self._closed = False
        await self._teardown("Session restarted")
        self._set_state(ClientState.CONNECTING)
        self._greeting_tail = b""

        peer = self._transport.peer_name
        timeout = self._options.connection_timeout
        logger.info("Connecting to %s", peer)

        self._decode_schedule.start()

        try:
            await asyncio.wait_for(self._transport.open(), timeout)
        except asyncio.TimeoutError:
            await self._abort_connect(fail_state)
            logger.warning("Connection to %s timed out after %.1fs", peer, timeout)
            raise TimeoutError("Connection timed out", timeout_seconds=timeout) from None
        except ConnectionError:
            await self._abort_connect(fail_state)
            raise
        except (TransportError, OSError) as e:
            await self._abort_connect(fail_state)
            raise ConnectionError(f"Failed to connect to {peer}: {e}") from e

        if self._closed or self._state is not ClientState.CONNECTING:
            # close() ran while the transport was opening
            await self._abort_connect(fail_state)
            logger.debug("Connection to %s closed while opening", peer)
            raise SessionClosedError("Session closed during connect")

        self._transport_live = True
        self._reader_task = asyncio.create_task(self._read_loop(), name="ami-reader")
        logger.debug("Transport open to %s, waiting for greeting", peer)

    async def _abort_connect(self, fail_state: ClientState) -> None:
        await self._decode_schedule.stop()
        await self._transport.close()
        if not self._closed:
            self._set_state(fail_state)

    async def _dispatch(self, action: Mapping[str, Any]) -> ActionResult:
        action_id, wire = self._correlator.build_request(action)
        future = self._correlator.register(action_id, action)

        try:
            await self._transport.write(wire)
        except (TransportError, OSError) as e:
            self._correlator.discard(action_id)
            raise ConnectionError(f"Could not send data to socket: {e}") from e

        logger.debug("Sent %s %s", action.get(Field.ACTION), action_id)

        try:
            return await future
        finally:
            # No-op once completed; drops the entry if the caller was cancelled
            self._correlator.discard(action_id)

    async def _read_loop(self) -> None:
        error: Exception | None = None
        try:
            while True:
                data = await self._transport.read_chunk()
                if not data:
                    break

                if self._state is ClientState.CONNECTING:
                    self._watch_for_greeting(data)

                self._decoder.feed(data)
        except (TransportError, OSError) as e:
            error = e

        self._on_connection_lost(error)

    def _watch_for_greeting(self, data: bytes) -> None:
        # The banner may straddle chunk boundaries
        seen = self._greeting_tail + data
        if _GREETING not in seen:
            self._greeting_tail = seen[-(len(_GREETING) - 1):]
            return

        self._greeting_tail = b""
        self._set_state(ClientState.CONNECTED)
        logger.info("Connected to %s", self._transport.peer_name)
        self.emit(ClientEvent.CONNECT)

    def _process_incoming(self) -> None:
        for packet in self._decoder.decode():
            self.emit(ClientEvent.RESPONSE, packet)
            self._correlator.handle_packet(packet)

    def _on_connection_lost(self, error: Exception | None) -> None:
        if self._closed:
            return

        # Deliver whatever arrived complete before the connection dropped
        self._process_incoming()

        if error is not None:
            logger.warning("Connection to %s lost: %s", self._transport.peer_name, error)
            self.emit(ClientEvent.ERROR, error)
        else:
            logger.info("Connection to %s closed by server", self._transport.peer_name)

        self._recovery_task = asyncio.create_task(
            self._handle_reconnect(error),
            name="ami-reconnect",
        )

    async def _handle_reconnect(self, error: Exception | None) -> None:
        had_error = error is not None

        if not (self._reconnect_armed and self._options.auto_reconnect) or self._closed:
            await self._shutdown(had_error=had_error)
            return

        self._set_state(ClientState.RECONNECTING)
        await self._teardown("Connection lost", had_error=had_error)

        delays = self._options.reconnect_delays()
        for attempt, delay in enumerate(delays, start=1):
            try:
                await self._open_session(fail_state=ClientState.RECONNECTING)
            except ConnectionError as e:
                logger.warning("Reconnect attempt %d/%d failed: %s", attempt, len(delays), e)
                self.emit(ClientEvent.ERROR, e)
                if attempt < len(delays):
                    await asyncio.sleep(delay)
                continue

            logger.info("Reconnected to %s after %d attempt(s)", self._transport.peer_name, attempt)
            return

        logger.error("Giving up on %s after %d reconnect attempts", self._transport.peer_name, len(delays))
        self.emit(
            ClientEvent.ERROR,
            ConnectionError(f"Reconnect failed after {len(delays)} attempts"),
        )
        await self._shutdown(had_error=True)

    async def _keep_alive_tick(self) -> None:
        if not self._authenticated:
            return
        try:
            if not await self.ping():
                logger.warning("Keepalive ping got an unexpected reply")
        except AMIError as e:
            logger.warning("Keepalive ping failed: %s", e)

    async def _shutdown(self, had_error: bool) -> None:
        self._closed = True
        await self._teardown("Session closed", had_error=had_error)

        if self._state is not ClientState.DISCONNECTED:
            logger.info("Disconnected from %s", self._transport.peer_name)
            self._state = ClientState.DISCONNECTED

    async def _teardown(self, reason: str, had_error: bool = False) -> None:
        """Release everything tied to the current connection."""
        if self._keep_alive is not None:
            keep_alive, self._keep_alive = self._keep_alive, None
            await keep_alive.stop()

        self._authenticated = False
        self._reconnect_armed = False

        await self._decode_schedule.stop()
        await self._cancel_task(self._reader_task)
        self._reader_task = None
        await self._cancel_task(self._recovery_task)

        self._correlator.reject_all(lambda: SessionClosedError(reason))
        self._decoder.reset()
        await self._transport.close()

        if self._transport_live:
            self._transport_live = False
            self.emit(ClientEvent.CLOSE, had_error)

    @staticmethod
    async def _cancel_task(task: asyncio.Task[Any] | None) -> None:
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _check_transition(self, new_state: ClientState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise StateError(self._state, new_state)

    def _set_state(self, new_state: ClientState) -> None:
        self._check_transition(new_state)
        logger.debug("State %s -> %s", self._state.name, new_state.name)
        self._state = new_state

    async def __aenter__(self) -> ManagerClient:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - close the connection."""
        await self.close()

    def __repr__(self) -> str:
        return f"ManagerClient(state={self._state.name}, peer={self._transport.peer_name})"
