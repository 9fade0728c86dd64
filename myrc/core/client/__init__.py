"""
Command-line chat client.

Reads console lines and writes them to the server; prints every line the
server sends. "/quit" is handled locally and never reaches the server.
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

from myrc.core.message.protocol import decode_line, encode_line

logger = logging.getLogger(__name__)

QUIT_COMMAND = "/quit"


def is_quit_command(text: Optional[str]) -> bool:
    """Check whether console input should end the session."""
    return text is None or text.strip().lower() == QUIT_COMMAND


def _settle(future: asyncio.Future, result: Optional[str], error: Optional[BaseException]) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


class LineChatClient:
    """
    Text client for the line-oriented chat server.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8888,
        input_func: Callable[[], str] = input,
        output_func: Callable[[str], None] = print
    ):
        """
        Initialize the client.

        Args:
            host: Server host
            port: Server port
            input_func: Blocking console reader, run on a daemon thread
            output_func: Console writer
        """
        self.host = host
        self.port = port
        self._input = input_func
        self._output = output_func
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    async def connect(self) -> bool:
        """
        Open the connection to the server.

        Returns:
            True if connected
        """
        self._output("Connecting...please wait.")
        try:
            self._reader, self._writer = await asyncio.open_connection(self.host, self.port)
        except OSError as e:
            self._output(f"Failed to connect to the server: {e}")
            return False
        peer = self._writer.get_extra_info("peername")
        self._output(f"Connected to server: {peer}")
        return True

    async def receive(self) -> None:
        """Print server lines until the server closes the connection."""
        try:
            while True:
                data = await self._reader.readline()
                if not data:
                    break
                self._output(decode_line(data))
        except (ConnectionError, OSError) as e:
            logger.debug("Receive error: %s", e)
        self._output("Disconnected from server.")

    async def send(self, text: str) -> None:
        """Send one console line to the server."""
        self._writer.write(encode_line(text))
        await self._writer.drain()

    async def _read_console(self) -> Optional[str]:
        """
        Read one console line without blocking the event loop.

        The blocking read runs on a daemon thread so a pending input() never
        keeps the process alive after the server has gone away.

        Returns:
            The line, or None on console EOF
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def worker():
            try:
                result, error = self._input(), None
            except EOFError:
                result, error = None, None
            except Exception as e:
                result, error = None, e
            try:
                loop.call_soon_threadsafe(_settle, future, result, error)
            except RuntimeError:
                logger.debug("Console line read after the event loop closed")

        threading.Thread(target=worker, name="myrc-console", daemon=True).start()
        return await future

    async def run(self) -> None:
        """
        Connect and pump console input to the server until /quit, console
        EOF, or the server going away.
        """
        if not await self.connect():
            return

        receiver = asyncio.create_task(self.receive())
        try:
            while not receiver.done():
                console = asyncio.ensure_future(self._read_console())
                done, _ = await asyncio.wait(
                    {console, receiver},
                    return_when=asyncio.FIRST_COMPLETED
                )
                if console not in done:
                    console.cancel()
                    break

                text = console.result()
                if is_quit_command(text):
                    self._output("Leaving the chat room...")
                    break
                try:
                    await self.send(text)
                except (ConnectionError, OSError) as e:
                    self._output(f"Send error: {e}")
                    break
        finally:
            await self.close()
            receiver.cancel()
            try:
                await receiver
            except asyncio.CancelledError:
                pass

    async def close(self) -> None:
        """Close the connection."""
        if self._writer is None:
            return
        writer, self._writer = self._writer, None
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug("Error closing connection: %s", e)


__all__ = ['LineChatClient', 'is_quit_command', 'QUIT_COMMAND']
