"""
Server startup module for myrc.
Provides the entry point for starting the chat server.
"""

import asyncio
import logging

from myrc.core.server import ServerStartupError, create_server

logger = logging.getLogger(__name__)

__all__ = ['server']


def server(host=None, port=None):
    """
    Start the chat server and block until interrupted.

    Args:
        host (str): Address to bind (default: Config.DEFAULT_HOST)
        port (int): Port number to listen on (default: Config.DEFAULT_PORT)

    Returns:
        int: Process exit status
    """
    chat_server = create_server(host=host, port=port)

    async def serve():
        async with chat_server.run():
            await chat_server.serve_forever()

    try:
        asyncio.run(serve())
    except ServerStartupError as e:
        logger.critical("Server failed to start: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Closed by user.")
    return 0
