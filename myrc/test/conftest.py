"""
Test configuration and fixtures for myrc server tests.

Provides:
- Test configuration
- An in-memory line transport for unit tests
- Session/registry/router/processor fixtures
- A real ChatServer on an ephemeral port plus a small TCP test client
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

import pytest
import pytest_asyncio

from myrc.config import ServerSettings
from myrc.core.logging import LogConfig, configure_logging
from myrc.core.message.protocol import decode_line, encode_line
from myrc.core.server import (
    ChatServer,
    DeliveryError,
    MessageRouter,
    Session,
    SessionRegistry,
    create_default_processor,
)


@dataclass
class TestConfig:
    """Configuration for server tests."""
    __test__ = False

    host: str = "127.0.0.1"
    timeout: float = 5.0
    quiet_period: float = 0.2
    log_level: str = "DEBUG"


class FakeTransport:
    """
    In-memory TransportConnection.

    Scripted lines are returned by read_line in order; a scripted exception
    is raised instead. Once the script runs out the transport reports end
    of stream.
    """

    def __init__(self, lines: Iterable[Union[str, Exception, None]] = (), peer: str = "fake:0"):
        self.peer = peer
        self.inbound = deque(lines)
        self.sent: List[str] = []
        self.closed = False
        self.close_calls = 0
        self.fail_sends = False

    async def read_line(self) -> Optional[str]:
        if self.closed or not self.inbound:
            return None
        item = self.inbound.popleft()
        if isinstance(item, Exception):
            raise item
        return item

    async def send_line(self, line: str) -> None:
        if self.closed or self.fail_sends:
            raise DeliveryError("Connection closed", {"peer": self.peer})
        self.sent.append(line)

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    def is_open(self) -> bool:
        return not self.closed


class LineTestClient:
    """Minimal TCP client speaking the line protocol."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, timeout: float):
        self.reader = reader
        self.writer = writer
        self.timeout = timeout

    @classmethod
    async def connect(cls, host: str, port: int, timeout: float = 5.0) -> "LineTestClient":
        reader, writer = await asyncio.open_connection(host, port)
        return cls(reader, writer, timeout)

    async def send(self, line: str) -> None:
        self.writer.write(encode_line(line))
        await self.writer.drain()

    async def recv(self) -> Optional[str]:
        data = await asyncio.wait_for(self.reader.readline(), self.timeout)
        if not data:
            return None
        return decode_line(data)

    async def recv_many(self, count: int) -> List[str]:
        return [await self.recv() for _ in range(count)]

    async def expect_silence(self, period: float) -> None:
        """Assert that no line arrives within period seconds."""
        try:
            data = await asyncio.wait_for(self.reader.readline(), period)
        except asyncio.TimeoutError:
            return
        raise AssertionError(f"Unexpected line: {data!r}")

    async def close(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass


@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    """Provide test configuration."""
    return TestConfig()


@pytest.fixture(scope="session", autouse=True)
def _logging(test_config: TestConfig):
    configure_logging(LogConfig(
        level=test_config.log_level,
        console_output=True,
        file_output=False,
    ))


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def router(registry: SessionRegistry) -> MessageRouter:
    return MessageRouter(registry)


@pytest.fixture
def processor(registry: SessionRegistry, router: MessageRouter):
    return create_default_processor(registry, router)


@pytest.fixture
def make_session(registry: SessionRegistry):
    """Factory for registered sessions on fake transports."""

    def factory(name: Optional[str] = None, lines: Iterable[Union[str, Exception, None]] = (),
                register: bool = True) -> Session:
        session = Session(FakeTransport(lines))
        if register:
            registry.add(session)
            if name is not None:
                assert registry.claim_identity(session, name)
        return session

    return factory


@pytest_asyncio.fixture
async def server_instance(test_config: TestConfig):
    """Create and manage a server instance on a free port."""
    server = ChatServer(ServerSettings(host=test_config.host, port=0))
    await server.start()

    yield server

    await server.stop()


@pytest_asyncio.fixture
async def connect(server_instance: ChatServer, test_config: TestConfig):
    """Factory opening test clients; the welcome block is consumed."""
    clients: List[LineTestClient] = []

    async def factory(name: Optional[str] = None) -> LineTestClient:
        client = await LineTestClient.connect(
            test_config.host, server_instance.bound_port, test_config.timeout
        )
        clients.append(client)
        await client.recv_many(3)
        if name is not None:
            await client.send(f"/name {name}")
            assert await client.recv() == f"Nickname changed to: {name}"
        return client

    yield factory

    for client in clients:
        await client.close()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
