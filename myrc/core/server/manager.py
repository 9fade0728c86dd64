"""
Chat server that composes all server components.

This is the main entry point: it binds the listening socket and spawns a
ConnectionHandler task for every accepted client.

Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                     ChatServer                       │
    │  ┌──────────────┐  ┌───────────────┐  ┌───────────┐  │
    │  │ Session      │  │ Message       │  │ Command   │  │
    │  │ Registry     │◄─┤ Router        │◄─┤ Processor │  │
    │  └──────────────┘  └───────────────┘  └───────────┘  │
    │         ▲                  ▲                ▲        │
    │         └──── ConnectionHandler (one per client) ────┘
    └──────────────────────────────────────────────────────┘
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional, Set

from myrc.config import ServerSettings
from myrc.core.server.commands import CommandProcessor, create_default_processor
from myrc.core.server.errors import ServerStartupError
from myrc.core.server.handler import ConnectionHandler
from myrc.core.server.interfaces import ServerLifecycle
from myrc.core.server.routing import MessageRouter
from myrc.core.server.session import Session, SessionRegistry
from myrc.core.server.transport import StreamConnection

logger = logging.getLogger(__name__)


class ChatServer(ServerLifecycle):
    """
    TCP chat server.

    Example:
        server = ChatServer(ServerSettings(port=8888))

        async with server.run():
            await server.serve_forever()
    """

    def __init__(
        self,
        settings: Optional[ServerSettings] = None,
        registry: Optional[SessionRegistry] = None,
        command_processor: Optional[CommandProcessor] = None
    ):
        """
        Initialize the chat server.

        Args:
            settings: Bind address and limits (defaults from Config)
            registry: Session registry (creates new if None)
            command_processor: Command processor (creates default if None)
        """
        self._settings = settings or ServerSettings()
        self._registry = registry or SessionRegistry()
        self._router = MessageRouter(self._registry)
        self._command_processor = command_processor or create_default_processor(
            self._registry, self._router
        )

        self._server: Optional[asyncio.AbstractServer] = None
        self._running = False
        self._handler_tasks: Set[asyncio.Task] = set()

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def router(self) -> MessageRouter:
        return self._router

    @property
    def command_processor(self) -> CommandProcessor:
        return self._command_processor

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually bound, useful when the configured port is 0."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    @asynccontextmanager
    async def run(self):
        """
        Run the server as an async context manager.

        Yields:
            The server instance
        """
        await self.start()
        try:
            yield self
        finally:
            await self.stop()

    async def start(self) -> None:
        """
        Bind the listening socket and start accepting clients.

        Raises:
            ServerStartupError: If the port cannot be bound
        """
        host, port = self._settings.host, self._settings.port
        try:
            self._server = await asyncio.start_server(
                self._handle_connection,
                host,
                port,
                limit=self._settings.max_line_length,
            )
        except OSError as e:
            logger.error("Could not bind %s:%s: %s", host, port, e)
            raise ServerStartupError(
                f"Could not bind {host}:{port}",
                {"error": str(e)}
            ) from e

        self._running = True
        logger.info("Chat server listening on %s:%s", host, self.bound_port)

    async def serve_forever(self) -> None:
        """Accept clients until the server is stopped."""
        if self._server is None:
            await self.start()
        await self._server.serve_forever()

    async def stop(self) -> None:
        """Stop accepting clients and disconnect everybody."""
        if self._server is None:
            return
        self._running = False
        self._server.close()

        for session in self._registry.snapshot():
            await session.transport.close()

        if self._handler_tasks:
            await asyncio.wait(set(self._handler_tasks), timeout=5)

        await self._server.wait_closed()
        self._server = None
        logger.info("Chat server stopped")

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter
    ) -> None:
        """Serve one accepted client."""
        task = asyncio.current_task()
        if task is not None:
            self._handler_tasks.add(task)

        session = Session(StreamConnection(reader, writer, self._settings.send_timeout))
        handler = ConnectionHandler(
            session,
            self._registry,
            self._router,
            self._command_processor,
        )
        try:
            await handler.run()
        except Exception as e:
            logger.exception("Unhandled error for %s: %s", session.describe(), e)
        finally:
            if task is not None:
                self._handler_tasks.discard(task)


def create_server(host: str = None, port: int = None, **kwargs) -> ChatServer:
    """
    Factory function to create a configured chat server.

    Args:
        host: Server host (Config default if None)
        port: Server port (Config default if None)
        **kwargs: Additional arguments passed to ChatServer

    Returns:
        Configured ChatServer instance
    """
    settings = ServerSettings()
    if host is not None:
        settings.host = host
    if port is not None:
        settings.port = port
    return ChatServer(settings, **kwargs)


__all__ = ['ChatServer', 'create_server']
