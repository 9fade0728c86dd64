"""
Tests for the connection state machine and ConnectionHandler.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from myrc.core.message.protocol import RESET
from myrc.core.server.handler import (
    ConnectionHandler,
    ConnectionState,
    LineEvent,
    classify_line,
    next_state,
)
from myrc.core.server.session import Session
from myrc.core.server.utils.helpers import WELCOME_LINES

from .conftest import FakeTransport

NICKNAME_REQUIRED = "You need to set your nickname first using: /name <your_nickname>"


class TestStateMachine:
    """Tests for classify_line and next_state."""

    @pytest.mark.parametrize("line, event", [
        (None, LineEvent.EOF),
        ("", LineEvent.EOF),
        ("/name bob", LineEvent.COMMAND),
        ("/", LineEvent.COMMAND),
        ("hello", LineEvent.CHAT),
        (" /name bob", LineEvent.CHAT),
    ])
    def test_classify_line(self, line, event):
        assert classify_line(line) is event

    @pytest.mark.parametrize("state, event, expected", [
        (ConnectionState.CONNECTED, LineEvent.CHAT, ConnectionState.CONNECTED),
        (ConnectionState.CONNECTED, LineEvent.COMMAND, ConnectionState.CONNECTED),
        (ConnectionState.CONNECTED, LineEvent.IDENTIFIED, ConnectionState.NAMED),
        (ConnectionState.CONNECTED, LineEvent.EOF, ConnectionState.CLOSED),
        (ConnectionState.CONNECTED, LineEvent.ERROR, ConnectionState.CLOSED),
        (ConnectionState.NAMED, LineEvent.CHAT, ConnectionState.NAMED),
        (ConnectionState.NAMED, LineEvent.IDENTIFIED, ConnectionState.NAMED),
        (ConnectionState.NAMED, LineEvent.EOF, ConnectionState.CLOSED),
        (ConnectionState.CLOSED, LineEvent.IDENTIFIED, ConnectionState.CLOSED),
        (ConnectionState.CLOSED, LineEvent.CHAT, ConnectionState.CLOSED),
    ])
    def test_next_state(self, state, event, expected):
        assert next_state(state, event) is expected


class TestConnectionHandler:
    """Tests for ConnectionHandler driven by a fake transport."""

    @pytest.fixture
    def make_handler(self, registry, router, processor):
        def factory(lines=()):
            session = Session(FakeTransport(lines))
            return ConnectionHandler(session, registry, router, processor)
        return factory

    @pytest.mark.asyncio
    async def test_open_registers_and_welcomes(self, make_handler, registry):
        handler = make_handler()

        await handler.open()

        assert handler.session in registry
        assert handler.state is ConnectionState.CONNECTED
        assert handler.session.transport.sent == list(WELCOME_LINES)

    @pytest.mark.asyncio
    async def test_chat_before_naming_rejected(self, make_handler, make_session):
        bob = make_session("bob")
        handler = make_handler(["hello everyone"])

        await handler.run()

        assert handler.session.transport.sent[3:] == [NICKNAME_REQUIRED]
        assert bob.transport.sent == []

    @pytest.mark.asyncio
    async def test_name_then_chat(self, make_handler, make_session):
        bob = make_session("bob")
        handler = make_handler(["/name alice", "hi bob"])

        await handler.open()
        state = await handler.handle_line(await handler.session.transport.read_line())
        assert state is ConnectionState.NAMED

        state = await handler.handle_line(await handler.session.transport.read_line())
        assert state is ConnectionState.NAMED
        assert bob.transport.sent == [f"alice: {RESET}hi bob{RESET}"]
        assert handler.session.transport.sent[3:] == ["Nickname changed to: alice"]

    @pytest.mark.asyncio
    async def test_failed_naming_stays_connected(self, make_handler, make_session):
        make_session("bob")
        handler = make_handler()
        await handler.open()

        state = await handler.handle_line("/name bob")

        assert state is ConnectionState.CONNECTED
        assert handler.session.identity is None

    @pytest.mark.asyncio
    async def test_eof_tears_down(self, make_handler, registry):
        handler = make_handler(["/name alice"])

        await handler.run()

        assert handler.state is ConnectionState.CLOSED
        assert handler.session not in registry
        assert handler.session.transport.close_calls == 1
        assert registry.find_by_identity("alice") is None

    @pytest.mark.asyncio
    async def test_empty_line_ends_connection(self, make_handler, make_session):
        bob = make_session("bob")
        handler = make_handler(["/name alice", "", "never sent"])

        await handler.run()

        assert bob.transport.sent == ["alice has left the server."]

    @pytest.mark.asyncio
    async def test_departure_notice_when_named(self, make_handler, make_session):
        bob = make_session("bob")
        unnamed = make_session()
        handler = make_handler(["/name carol"])

        await handler.run()

        assert bob.transport.sent == ["carol has left the server."]
        assert unnamed.transport.sent == []
        assert handler.session.transport.sent[-1] == "Nickname changed to: carol"

    @pytest.mark.asyncio
    async def test_no_departure_notice_when_unnamed(self, make_handler, make_session):
        bob = make_session("bob")
        handler = make_handler(["/color red"])

        await handler.run()

        assert bob.transport.sent == []

    @pytest.mark.asyncio
    async def test_teardown_runs_once(self, make_handler, make_session):
        bob = make_session("bob")
        handler = make_handler(["/name carol"])

        await handler.run()
        await handler.teardown()

        assert handler.session.transport.close_calls == 1
        assert bob.transport.sent == ["carol has left the server."]

    @pytest.mark.asyncio
    async def test_read_error_closes_only_this_connection(self, make_handler, make_session):
        bob = make_session("bob")
        handler = make_handler(["/name alice", ConnectionResetError("reset by peer"), "unread"])

        await handler.run()

        assert handler.state is ConnectionState.CLOSED
        assert bob.transport.sent == ["alice has left the server."]
        assert not bob.transport.closed

    @pytest.mark.asyncio
    async def test_unexpected_error_still_tears_down(self, registry, router, make_session):
        bob = make_session("bob")
        processor = MagicMock()
        processor.process = AsyncMock(side_effect=RuntimeError("bug"))
        session = Session(FakeTransport(["/name alice", "ignored"]))
        handler = ConnectionHandler(session, registry, router, processor)

        await handler.run()

        assert handler.state is ConnectionState.CLOSED
        assert session not in registry
        assert session.transport.close_calls == 1
        assert bob.transport.sent == []
