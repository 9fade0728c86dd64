"""
Abstract base classes and interfaces for the server module.

These are the seams between the connection handling code and the concrete
asyncio stream transport, so the routing and command layers can be driven by
in-memory fakes in tests.
"""

from abc import ABC, abstractmethod
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class TransportConnection(Protocol):
    """Protocol for a bidirectional line transport owned by one session."""

    @property
    def peer(self) -> str:
        """Printable remote address."""
        ...

    async def read_line(self) -> Optional[str]:
        """
        Read one line.

        Returns:
            Line content without terminator, or None at end of stream
        """
        ...

    async def send_line(self, line: str) -> None:
        """
        Write one full line.

        Raises:
            DeliveryError: If the line could not be written
        """
        ...

    async def close(self) -> None:
        """Close the transport. Calling it again is a no-op."""
        ...

    def is_open(self) -> bool:
        """Check if the transport is still usable."""
        ...


class ServerLifecycle(ABC):
    """Abstract base class for server lifecycle management."""

    @abstractmethod
    async def start(self) -> None:
        """Start the server."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop the server."""
        pass

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """Check if server is running."""
        pass


__all__ = [
    'TransportConnection',
    'ServerLifecycle',
]
