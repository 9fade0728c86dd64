"""
Per-connection control loop.

Each accepted client gets one ConnectionHandler running in its own task.
The handler moves through three states:

    CONNECTED --(nickname claimed)--> NAMED
        |                               |
        +-------(EOF / I/O error)-------+--> CLOSED

Commands are accepted in every open state (naming is itself a command).
Chat text is only broadcast once the session is NAMED.
"""

import asyncio
import logging
from enum import Enum, auto
from typing import Optional

from myrc.core.server.commands import CommandProcessor, is_command
from myrc.core.server.routing import MessageRouter
from myrc.core.server.session import Session, SessionRegistry
from myrc.core.server.utils.helpers import (
    NICKNAME_REQUIRED,
    departure_notice,
    welcome_lines,
)

logger = logging.getLogger(__name__)

# Failures of a single client's stream; they end that connection only.
# ValueError is what StreamReader.readline raises for an over-long line.
TRANSPORT_ERRORS = (ConnectionError, OSError, ValueError, asyncio.IncompleteReadError)


class ConnectionState(Enum):
    """Lifecycle states of a client connection."""
    CONNECTED = auto()
    NAMED = auto()
    CLOSED = auto()


class LineEvent(Enum):
    """Inputs driving the connection state machine."""
    EOF = auto()
    ERROR = auto()
    COMMAND = auto()
    CHAT = auto()
    IDENTIFIED = auto()


def classify_line(line: Optional[str]) -> LineEvent:
    """
    Classify one line read from the client.

    Args:
        line: Line content, or None at end of stream

    Returns:
        EOF for end of stream or an empty line, COMMAND for "/..." lines,
        CHAT otherwise
    """
    if not line:
        return LineEvent.EOF
    if is_command(line):
        return LineEvent.COMMAND
    return LineEvent.CHAT


def next_state(state: ConnectionState, event: LineEvent) -> ConnectionState:
    """
    Transition function of the connection state machine.

    Args:
        state: Current state
        event: Event that just happened

    Returns:
        The new state
    """
    if state is ConnectionState.CLOSED:
        return ConnectionState.CLOSED
    if event in (LineEvent.EOF, LineEvent.ERROR):
        return ConnectionState.CLOSED
    if event is LineEvent.IDENTIFIED:
        return ConnectionState.NAMED
    return state


class ConnectionHandler:
    """
    Drives one client session from registration to teardown.
    """

    def __init__(
        self,
        session: Session,
        registry: SessionRegistry,
        router: MessageRouter,
        command_processor: CommandProcessor
    ):
        """
        Initialize connection handler.

        Args:
            session: Freshly created session for the client
            registry: Registry of live sessions
            router: Router for chat and notices
            command_processor: Processor for "/" lines
        """
        self.session = session
        self._registry = registry
        self._router = router
        self._commands = command_processor
        self._state = ConnectionState.CONNECTED
        self._torn_down = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def run(self) -> None:
        """
        Serve the client until it disconnects.

        Teardown always runs, whatever ends the loop.
        """
        try:
            await self.open()
            while self._state is not ConnectionState.CLOSED:
                try:
                    line = await self.session.transport.read_line()
                except TRANSPORT_ERRORS as e:
                    logger.info("Read from %s failed: %s", self.session.describe(), e)
                    self._advance(LineEvent.ERROR)
                    break
                await self.handle_line(line)
        except asyncio.CancelledError:
            logger.debug("Handler for %s cancelled", self.session.describe())
            raise
        except Exception as e:
            logger.exception("Error handling connection %s: %s", self.session.describe(), e)
        finally:
            await self.teardown()

    async def open(self) -> None:
        """Register the session and send the welcome block."""
        self._registry.add(self.session)
        self._state = ConnectionState.CONNECTED
        logger.info("Client connected: %s", self.session.describe())
        for line in welcome_lines():
            await self._router.deliver(self.session, line)

    async def handle_line(self, line: Optional[str]) -> ConnectionState:
        """
        Act on one client line and advance the state machine.

        Args:
            line: Line content, or None at end of stream

        Returns:
            The state after handling the line
        """
        event = classify_line(line)

        if event is LineEvent.COMMAND:
            await self._commands.process(self.session, line)
            if self.session.is_named:
                self._advance(LineEvent.IDENTIFIED)
            return self._state

        if event is LineEvent.CHAT:
            if self._state is ConnectionState.NAMED:
                await self._router.broadcast(line, self.session)
            else:
                await self._router.deliver(self.session, NICKNAME_REQUIRED)
            return self._state

        return self._advance(event)

    async def teardown(self) -> None:
        """
        Close the transport, unregister, and announce the departure.

        Runs once; later calls return immediately.
        """
        if self._torn_down:
            return
        self._torn_down = True
        self._state = ConnectionState.CLOSED

        await self.session.transport.close()
        self._registry.remove(self.session)

        identity = self.session.identity
        if identity is not None:
            await self._router.broadcast(departure_notice(identity))
        logger.info("Client disconnected: %s", self.session.describe())

    def _advance(self, event: LineEvent) -> ConnectionState:
        self._state = next_state(self._state, event)
        return self._state


__all__ = [
    'ConnectionState',
    'LineEvent',
    'ConnectionHandler',
    'classify_line',
    'next_state',
]
