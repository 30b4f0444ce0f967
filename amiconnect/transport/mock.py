"""
Mock transport for testing.

This module provides a mock transport implementation that allows testing
the AMI client without a running server. Inbound traffic is injected with
feed_data(), or generated per request by a response callback.

Example:
    >>> from amiconnect.transport import MockTransport
    >>> from amiconnect import ManagerClient
    >>>
    >>> def server(action):
    ...     return encode_packet({"Response": "Success", "ActionID": action["ActionID"]})
    >>>
    >>> mock = MockTransport()
    >>> mock.set_response_callback(server)
    >>>
    >>> async with ManagerClient(transport=mock, user="admin", password="secret") as ami:
    ...     await ami.login()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from amiconnect.exceptions import TransportError
from amiconnect.protocol.frame_reader import parse_line
from amiconnect.transport.abc import AbstractTransport

DEFAULT_GREETING = b"Asterisk Call Manager/5.0.1\r\n"
"""Banner a real server sends as soon as the connection opens."""

ResponseCallback = Callable[[dict[str, str]], "bytes | None"]


def parse_request(data: bytes) -> dict[str, str]:
    """
    Parse one serialized request back into its fields.

    Values are kept as raw strings, without coercion.
    """
    fields: dict[str, str] = {}
    for raw in data.decode("utf-8").split("\r\n"):
        parsed = parse_line(raw.strip())
        if parsed is not None:
            name, value = parsed
            fields[name] = value
    return fields


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without a server.

    Records all written data for verification in tests. Inbound bytes are
    queued and handed out by read_chunk() one injected chunk at a time, so
    tests control exactly how the stream is split.

    Attributes:
        written_data: List of all bytes written to the transport.
        written_actions: The same writes parsed back into field dicts.
        open_count: Number of successful open() calls.

    Example:
        >>> mock = MockTransport(greeting=None)
        >>> async with mock:
        ...     await mock.write(b"Action: Ping\\r\\n\\r\\n")
        ...     mock.feed_data(b"Response: Success\\r\\n\\r\\n")
        ...     chunk = await mock.read_chunk()
        ...     assert mock.written_actions == [{"Action": "Ping"}]
    """

    def __init__(
        self,
        peer_name: str = "mock://ami",
        *,
        greeting: bytes | None = DEFAULT_GREETING,
        open_delay: float = 0.0,
        open_error: Exception | None = None,
    ) -> None:
        """
        Initialize the mock transport.

        Args:
            peer_name: Identifier for the mock transport.
            greeting: Bytes queued as soon as the transport opens (None for
                a server that never greets).
            open_delay: Seconds open() takes, for connect timeout tests.
            open_error: Exception raised by open(), for refused connects.
        """
        self._peer_name = peer_name
        self._greeting = greeting
        self.open_delay = open_delay
        self.open_error = open_error
        self.write_error: Exception | None = None
        self._is_open = False
        self._inbound: asyncio.Queue[bytes | BaseException] = asyncio.Queue()
        self._written_data: list[bytes] = []
        self._response_callback: ResponseCallback | None = None
        self._open_count = 0

    @property
    def is_open(self) -> bool:
        """Check if the mock transport is open."""
        return self._is_open

    @property
    def peer_name(self) -> str:
        """Get the mock peer name."""
        return self._peer_name

    @property
    def open_count(self) -> int:
        return self._open_count

    @property
    def written_data(self) -> list[bytes]:
        """Get all data written to the transport."""
        return self._written_data.copy()

    @property
    def written_actions(self) -> list[dict[str, str]]:
        """Get all written requests parsed into field dicts."""
        return [parse_request(data) for data in self._written_data]

    @property
    def last_written(self) -> bytes | None:
        """Get the most recently written data."""
        return self._written_data[-1] if self._written_data else None

    def set_response_callback(self, callback: ResponseCallback | None) -> None:
        """
        Set a callback to dynamically generate responses.

        The callback receives each written request parsed into fields and
        returns the bytes the server would send back, or None for no reply.

        Args:
            callback: Function that takes request fields and returns response.
        """
        self._response_callback = callback

    def feed_data(self, data: bytes) -> None:
        """Queue bytes as if received from the server."""
        self._inbound.put_nowait(bytes(data))

    def feed_eof(self) -> None:
        """Simulate the server closing the connection."""
        self._inbound.put_nowait(b"")

    def feed_error(self, error: BaseException) -> None:
        """Simulate a read failure such as a connection reset."""
        self._inbound.put_nowait(error)

    def clear_written(self) -> None:
        """Clear only the written data history."""
        self._written_data.clear()

    async def open(self) -> None:
        """Open the mock transport."""
        if self._is_open:
            raise TransportError("Mock transport already open")

        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        if self.open_error is not None:
            raise self.open_error

        self._inbound = asyncio.Queue()
        self._is_open = True
        self._open_count += 1
        if self._greeting:
            self.feed_data(self._greeting)

    async def close(self) -> None:
        """Close the mock transport."""
        self._is_open = False

    async def write(self, data: bytes) -> None:
        """
        Write data to the mock transport.

        Records the written data and optionally triggers response callback.

        Args:
            data: Bytes to write.

        Raises:
            TransportError: If transport is not open.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")
        if self.write_error is not None:
            raise self.write_error

        self._written_data.append(bytes(data))

        if self._response_callback:
            response = self._response_callback(parse_request(data))
            if response is not None:
                self.feed_data(response)

    async def read_chunk(self) -> bytes:
        """
        Return the next injected chunk.

        Raises:
            TransportError: If transport is not open, or the injected error.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")

        item = await self._inbound.get()
        if isinstance(item, BaseException):
            raise item
        return item

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """
        Assert that specific data was written.

        Args:
            expected: Expected bytes.
            index: Index in written_data list (-1 for last).

        Raises:
            AssertionError: If data doesn't match.
        """
        if not self._written_data:
            raise AssertionError("No data written to mock transport")

        actual = self._written_data[index]
        if actual != expected:
            raise AssertionError(f"Written data mismatch: expected {expected!r}, got {actual!r}")

    def assert_write_count(self, expected: int) -> None:
        """
        Assert number of write operations.

        Args:
            expected: Expected number of writes.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self._written_data)
        if actual != expected:
            raise AssertionError(f"Write count mismatch: expected {expected}, got {actual}")
