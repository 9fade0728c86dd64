"""
Transport layer for plain TCP line connections.

Wraps an asyncio StreamReader/StreamWriter pair and gives the rest of the
server a line-oriented interface with serialized writes and a single close.
"""

import asyncio
import logging
from typing import Optional

from myrc.core.message.protocol import decode_line, encode_line
from myrc.core.server.errors import DeliveryError

logger = logging.getLogger(__name__)


class StreamConnection:
    """
    Line transport over an asyncio stream pair.

    Writes from different tasks are serialized by a per-connection lock so
    two deliverers can never interleave partial lines.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        send_timeout: Optional[float] = None
    ):
        """
        Initialize stream connection wrapper.

        Args:
            reader: Stream to read client lines from
            writer: Stream to write server lines to
            send_timeout: Seconds a write may wait for the client to read
                before the connection is dropped (None waits forever)
        """
        self._reader = reader
        self._writer = writer
        self._send_timeout = send_timeout
        self._send_lock = asyncio.Lock()
        self._closed = False

        peername = writer.get_extra_info("peername")
        if isinstance(peername, tuple) and len(peername) >= 2:
            self._peer = f"{peername[0]}:{peername[1]}"
        else:
            self._peer = str(peername or "unknown")

    @property
    def peer(self) -> str:
        """Get printable remote address."""
        return self._peer

    async def read_line(self) -> Optional[str]:
        """
        Read one line from the client.

        Returns:
            Line without terminator, or None once the client has gone away

        Raises:
            ConnectionError: On a transport failure
            asyncio.LimitOverrunError / ValueError: If the line is too long
        """
        if self._closed:
            return None
        data = await self._reader.readline()
        if not data:
            return None
        return decode_line(data)

    async def send_line(self, line: str) -> None:
        """
        Send one line to the client.

        Args:
            line: Line content without terminator

        Raises:
            DeliveryError: If the connection is closed or the write fails
        """
        payload = encode_line(line)
        async with self._send_lock:
            if self._closed or self._writer.is_closing():
                raise DeliveryError("Connection closed", {"peer": self._peer})
            try:
                self._writer.write(payload)
                await asyncio.wait_for(self._writer.drain(), self._send_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Client %s stopped reading for %ss, dropping it",
                    self._peer, self._send_timeout
                )
                self.abort()
                raise DeliveryError("Send timed out", {"peer": self._peer})
            except (ConnectionError, OSError) as e:
                raise DeliveryError(f"Failed to send to {self._peer}: {e}") from e

    async def close(self) -> None:
        """Close the connection once; later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        try:
            self._writer.close()
            await asyncio.wait_for(self._writer.wait_closed(), self._send_timeout)
        except asyncio.TimeoutError:
            # Unsent data is still buffered for a client that does not read.
            self._writer.transport.abort()
        except (ConnectionError, OSError) as e:
            logger.debug("Error closing connection to %s: %s", self._peer, e)

    def abort(self) -> None:
        """
        Drop the connection at once, discarding unsent data.

        The reading side then sees end of stream, so the session's handler
        tears down as usual.
        """
        self._closed = True
        self._writer.transport.abort()

    def is_open(self) -> bool:
        """Check if connection is open."""
        return not self._closed and not self._writer.is_closing()


__all__ = ['StreamConnection']
