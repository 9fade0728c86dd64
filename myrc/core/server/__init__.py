"""
Server module for myrc.

Components, leaves first:

1. **Session** (`session/`)
   - Session: per-client state (nickname, color, transport)
   - SessionRegistry: thread-safe set of live sessions with atomic
     nickname claims

2. **Transport** (`transport/`)
   - StreamConnection: asyncio stream pair as a line transport with
     serialized writes

3. **Routing** (`routing/`)
   - MessageRouter: broadcast and whisper delivery

4. **Commands** (`commands/`)
   - CommandProcessor: parses "/" lines and dispatches to /name,
     /whisper, /color and /help handlers

5. **Connection handling** (`handler.py`)
   - ConnectionHandler: per-client loop over the
     CONNECTED -> NAMED -> CLOSED state machine

6. **Listener** (`manager.py`)
   - ChatServer: binds the port and spawns one handler task per client

Usage:

    from myrc.core.server import ChatServer
    from myrc.config import ServerSettings

    server = ChatServer(ServerSettings(port=8888))
    async with server.run():
        await server.serve_forever()
"""

from myrc.core.server.commands import (
    CommandContext,
    CommandHandler,
    CommandProcessor,
    CommandRegistry,
    CommandResult,
    create_default_processor,
    parse_command,
)
from myrc.core.server.errors import DeliveryError, MyrcError, ServerStartupError
from myrc.core.server.handler import ConnectionHandler, ConnectionState
from myrc.core.server.interfaces import ServerLifecycle, TransportConnection
from myrc.core.server.manager import ChatServer, create_server
from myrc.core.server.routing import DeliveryResult, DeliveryStatus, MessageRouter
from myrc.core.server.session import Profile, Session, SessionRegistry
from myrc.core.server.transport import StreamConnection

__all__ = [
    'TransportConnection',
    'ServerLifecycle',

    'MyrcError',
    'ServerStartupError',
    'DeliveryError',

    'Profile',
    'Session',
    'SessionRegistry',

    'StreamConnection',

    'MessageRouter',
    'DeliveryResult',
    'DeliveryStatus',

    'CommandContext',
    'CommandHandler',
    'CommandProcessor',
    'CommandRegistry',
    'CommandResult',
    'create_default_processor',
    'parse_command',

    'ConnectionHandler',
    'ConnectionState',

    'ChatServer',
    'create_server',
]
