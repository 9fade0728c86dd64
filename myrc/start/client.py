"""
Client startup module for myrc.
Provides the entry point for starting the chat client.
"""

import asyncio

from myrc.config import config
from myrc.core.client import LineChatClient

__all__ = ['client']


def client(host=None, port=None):
    """
    Start the chat client with specified connection parameters.

    Args:
        host (str): Server hostname to connect to
        port (int): Server port number
    """
    _client = LineChatClient(
        host or config.DEFAULT_CLIENT_HOST,
        port if port is not None else config.DEFAULT_PORT,
    )
    try:
        asyncio.run(_client.run())
    except KeyboardInterrupt:
        print("Leaving the chat room...")
