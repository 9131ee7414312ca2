"""
Lightpack wire-level transport.

This module owns the single TCP stream to a controller. It knows nothing about
commands or responses, only how to move newline-terminated ASCII lines.

Terms:
- Line = One newline-terminated message in either direction
- Frame limit = The largest line the reader will buffer

Example usage:
async def main():
    transport = Transport("127.0.0.1", 3636)
    await transport.open()
    async with transport:
        welcome = await transport.read_line()
        await transport.write_line("getstatus")
        print(await transport.read_line())

asyncio.run(main())
"""

import asyncio
import logging
from typing import Optional

from ..exceptions import ConnectionLostError, FramingError, LightpackConnectionError


class ClientConst:
    """Constants for the Lightpack client"""
    DEFAULT_HOST = "127.0.0.1"
    DEFAULT_PORT = 3636
    MAX_FRAME = 8192
    ENCODING = "utf-8"
    DELIMITER = b"\n"


class Transport:
    """
    A single bidirectional line stream to host:port.

    Lines are written as UTF-8 (ASCII in practice) with a trailing newline.
    Lines read back have their trailing CR/LF stripped. Nothing is buffered
    beyond what the StreamReader holds for the current line.
    """

    def __init__(self, host: str, port: int, logger: Optional[logging.Logger] = None, limit: int = ClientConst.MAX_FRAME):
        self.host = host
        self.port = port
        self.limit = limit
        self.logger = logger or logging.getLogger(__name__)
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    def __repr__(self) -> str:
        state = "open" if self.is_connected() else "closed"
        return f"Transport({self.host}:{self.port}, {state})"

    async def open(self) -> None:
        """Open the TCP stream. Raises LightpackConnectionError if the socket can't be opened."""
        if self.is_connected():
            return
        try:
            self._reader, self._writer = await asyncio.open_connection(self.host, self.port, limit=self.limit)
        except (OSError, OverflowError, ValueError) as e:
            # OverflowError/ValueError: port or host the socket layer can't represent
            self._reader = self._writer = None
            raise LightpackConnectionError(f"Could not connect to {self.host}:{self.port}: {e}") from e
        self.logger.info(f"Connected to Lightpack at {self.host}:{self.port}")

    def is_connected(self) -> bool:
        """Check if the stream is open"""
        return self._writer is not None and not self._writer.is_closing()

    async def write_line(self, line: str) -> None:
        if not self.is_connected():
            raise ConnectionLostError(f"Stream to {self.host}:{self.port} is closed")
        try:
            self._writer.write(line.encode(ClientConst.ENCODING) + ClientConst.DELIMITER)
            await self._writer.drain()
        except (OSError, RuntimeError) as e:
            raise ConnectionLostError(f"Write to {self.host}:{self.port} failed: {e}") from e

    async def read_line(self) -> bytes:
        """
        Read one line with its delimiter removed.

        Raises ConnectionLostError on EOF, FramingError if the line exceeds
        the frame limit.
        """
        if self._reader is None:
            raise ConnectionLostError(f"Stream to {self.host}:{self.port} is closed")
        try:
            data = await self._reader.readline()
        except ValueError as e:
            # StreamReader reports an overrun as ValueError
            raise FramingError(f"Response exceeds {self.limit} bytes") from e
        except OSError as e:
            raise ConnectionLostError(f"Read from {self.host}:{self.port} failed: {e}") from e
        if not data:
            raise ConnectionLostError(f"Connection to {self.host}:{self.port} closed by peer")
        if not data.endswith(ClientConst.DELIMITER):
            raise ConnectionLostError(f"Connection to {self.host}:{self.port} closed mid-line")
        return data.rstrip(b"\r\n")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the stream. Safe to call more than once."""
        writer = self._writer
        self._reader = self._writer = None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            self.logger.debug(f"Error while closing stream to {self.host}:{self.port}: {e}")
        self.logger.info(f"Disconnected from Lightpack at {self.host}:{self.port}")
