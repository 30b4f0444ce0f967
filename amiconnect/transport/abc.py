"""
Abstract transport interface for AMI communication.

This module defines the abstract base class for all transport implementations.
Transports handle the byte-level connection to the manager server.

The transport layer is responsible for:
- Opening/closing the connection
- Writing raw request bytes
- Handing received bytes to the client in whatever chunks they arrive

Framing is not the transport's concern: received chunks may split or join
lines arbitrarily, and the packet decoder reassembles them.

Implementations:
- TcpTransport: asyncio streams over TCP
- MockTransport: For testing without a server
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Abstract base class for AMI transports.

    All transport implementations must inherit from this class and
    implement all abstract methods.

    Transports support async context manager protocol for safe resource
    management:

        async with TcpTransport("pbx.example.net", 5038) as transport:
            await transport.write(request)
            chunk = await transport.read_chunk()

    Attributes:
        is_open: Whether the transport connection is currently open.
        peer_name: Identifier for the remote end (e.g., "host:port").
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport connection is currently open.

        Returns:
            True if connected and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def peer_name(self) -> str:
        """
        Get the transport identifier.

        Returns:
            Remote address string (e.g., "127.0.0.1:5038").
        """
        ...

    @abstractmethod
    async def open(self) -> None:
        """
        Open the transport connection.

        The caller bounds this with its own connect timeout and calls
        close() if the timeout expires.

        Raises:
            ConnectionError: If the connection is refused or unreachable.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the transport connection.

        Releases the connection and any associated resources.
        Safe to call multiple times (idempotent), including while open()
        is still in progress.

        After closing, the transport can be reopened with open().
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data to the transport.

        Args:
            data: Complete serialized request.

        Raises:
            TransportError: If the transport is not open or write fails.
        """
        ...

    @abstractmethod
    async def read_chunk(self) -> bytes:
        """
        Wait for the next chunk of received bytes.

        Returns:
            Bytes received, or b"" once the remote end has closed.

        Raises:
            TransportError: If the transport is not open or read fails.
        """
        ...

    async def __aenter__(self) -> AbstractTransport:
        """Async context manager entry - opens the transport."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the transport."""
        await self.close()
