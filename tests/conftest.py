import asyncio
from contextlib import asynccontextmanager
from typing import Callable, Optional

from lightpack.exceptions import ConnectionLostError

WELCOME = 'Lightpack API v1.4 - Prismatik API v2.2 (type "help" for more info)'

# Reply value that makes the fake controller hang up instead of answering
DROP = object()


class FakeTransport:
    """In-memory stand-in for Transport: replays scripted response lines."""

    def __init__(self, *lines: bytes | str):
        self.lines = [line.encode() if isinstance(line, str) else line for line in lines]
        self.sent: list[str] = []
        self.closed = False

    def is_connected(self) -> bool:
        return not self.closed

    async def write_line(self, line: str) -> None:
        if self.closed:
            raise ConnectionLostError("closed")
        self.sent.append(line)

    async def read_line(self) -> bytes:
        if self.closed or not self.lines:
            raise ConnectionLostError("closed by peer")
        return self.lines.pop(0)

    async def close(self) -> None:
        self.closed = True


class FakeController:
    """
    A Prismatik-like server on an ephemeral localhost port.

    `replies` maps a full command line, or just its verb, to the reply line.
    Unmapped commands get 'unknown command'. A reply of DROP closes the
    connection, a callable is called with the command line.
    """

    def __init__(self, replies: Optional[dict] = None, welcome: Optional[str] = WELCOME):
        self.replies = dict(replies or {})
        self.welcome = welcome
        self.received: list[str] = []
        self.connections = 0
        self.server: Optional[asyncio.AbstractServer] = None
        self.host = "127.0.0.1"
        self.port = 0
        self._writers: list[asyncio.StreamWriter] = []

    def reply_for(self, line: str):
        if line in self.replies:
            return self.replies[line]
        verb = line.split(":", 1)[0]
        return self.replies.get(verb, "unknown command")

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.connections += 1
        self._writers.append(writer)
        try:
            if self.welcome is None:
                writer.close()
                return
            writer.write(self.welcome.encode() + b"\r\n")
            await writer.drain()
            while True:
                data = await reader.readline()
                if not data:
                    break
                line = data.decode().rstrip("\r\n")
                self.received.append(line)
                reply = self.reply_for(line)
                if callable(reply):
                    reply = reply(line)
                if reply is DROP:
                    break
                writer.write(reply.encode() + b"\r\n")
                await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()

    async def start(self):
        self.server = await asyncio.start_server(self._handle, self.host, 0)
        self.port = self.server.sockets[0].getsockname()[1]

    async def stop(self):
        for writer in self._writers:
            writer.close()
        self.server.close()
        await self.server.wait_closed()


@asynccontextmanager
async def fake_controller(replies: Optional[dict] = None, welcome: Optional[str] = WELCOME):
    controller = FakeController(replies, welcome)
    await controller.start()
    try:
        yield controller
    finally:
        await controller.stop()


def counting(reply: str) -> Callable[[str], str]:
    """A reply callable that remembers how often it was used."""
    def respond(line: str) -> str:
        respond.calls += 1
        return reply
    respond.calls = 0
    return respond
