"""Shared fixtures: a scripted manager server behind MockTransport."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest
import pytest_asyncio

from amiconnect.client import ManagerClient
from amiconnect.commands import AsteriskManager
from amiconnect.protocol.correlator import encode_packet
from amiconnect.transport.mock import MockTransport

Handler = Callable[[dict[str, str]], "list[dict[str, str]] | None"]


class FakeManagerServer:
    """
    Response callback that answers requests like a manager server.

    Login checks the configured credentials and Ping answers Pong. Other
    actions are answered by registered handlers returning the packets to
    send (the request's ActionID is added to each). A handler returning
    None sends nothing, leaving the request pending.
    """

    def __init__(self, user: str = "admin", password: str = "secret") -> None:
        self.user = user
        self.password = password
        self.requests: list[dict[str, str]] = []
        self.handlers: dict[str, Handler] = {
            "Login": self._login,
            "Ping": lambda action: [{"Response": "Success", "Ping": "Pong", "Timestamp": "1700000000.1"}],
        }

    def handle(self, name: str, handler: Handler) -> None:
        self.handlers[name] = handler

    def requests_for(self, name: str) -> list[dict[str, str]]:
        return [request for request in self.requests if request.get("Action") == name]

    def _login(self, action: dict[str, str]) -> list[dict[str, str]]:
        if action.get("Username") == self.user and action.get("Secret") == self.password:
            return [{"Response": "Success", "Message": "Authentication accepted"}]
        return [{"Response": "Error", "Message": "Authentication failed"}]

    def __call__(self, action: dict[str, str]) -> bytes | None:
        self.requests.append(action)

        handler = self.handlers.get(action.get("Action", ""))
        if handler is None:
            packets = [{"Response": "Error", "Message": "Invalid/unknown command"}]
        else:
            packets = handler(action)
        if packets is None:
            return None

        return reply(action["ActionID"], *packets)


def reply(action_id: str, *packets: dict[str, str]) -> bytes:
    """Serialize reply packets carrying the given ActionID."""
    return b"".join(encode_packet({**packet, "ActionID": action_id}) for packet in packets)


def list_reply(message: str, event: str, items: list[dict[str, str]]) -> list[dict[str, str]]:
    """Header, item and trailer packets of a list action."""
    return [
        {"Response": "Success", "EventList": "start", "Message": message},
        *({"Event": event, **item} for item in items),
        {"Event": f"{event}Complete", "EventList": "Complete", "ListItems": str(len(items))},
    ]


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Poll until predicate() is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def server():
    """Create a fake manager server."""
    return FakeManagerServer()


@pytest.fixture
def transport(server):
    """Create a MockTransport answered by the fake server."""
    mock = MockTransport()
    mock.set_response_callback(server)
    return mock


@pytest.fixture
def client_options():
    """Fast timings for tests; override per test module or test."""
    return {
        "user": "admin",
        "password": "secret",
        "read_interval": 0.01,
        "connection_timeout": 0.5,
        "keep_alive": False,
        "reconnect_delay": 0.01,
        "reconnect_max_delay": 0.02,
        "reconnect_attempts": 3,
    }


@pytest_asyncio.fixture
async def client(transport, client_options):
    """Create a ManagerClient on the mock transport; closed after the test."""
    ami = ManagerClient(transport=transport, **client_options)
    yield ami
    await ami.close()


@pytest_asyncio.fixture
async def manager(transport, client_options):
    """Create an AsteriskManager on the mock transport; closed after the test."""
    ami = AsteriskManager(transport=transport, **client_options)
    yield ami
    await ami.close()
