"""
Lightpack wire-level command channel.

This module implements the request/response side of the Lightpack API.
It contains the CommandChannel class for sending one command line and
classifying the one line that comes back.

Terms:
- Command = A verb, optionally followed by ':' and an argument
- Response = The single line the controller sends back for one Command
- Channel = A half-duplex pairing of one write with one read

Example usage:
async def main():
    transport = Transport("127.0.0.1", 3636)
    await transport.open()
    channel = CommandChannel(transport)
    await channel.read_welcome()
    resp = await channel.execute("getfps")
    if resp.response_type == ResponseType.VALUE:
        print("FPS:", resp.value)

asyncio.run(main())
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Self

from colorama import Fore, Style

from ..exceptions import (
    PROTOCOL_ERRORS,
    ConnectionLostError,
    FramingError,
    LightpackProtocolError,
    NotConnectedError,
)
from .transport import ClientConst, Transport


@dataclass
class Command:
    """Represents a command to be sent to the controller"""
    verb: str
    argument: Optional[str] = None

    def __post_init__(self):
        if not self.verb or ":" in self.verb or any(c in self.verb for c in "\r\n"):
            raise ValueError(f"Invalid command verb: {self.verb!r}")
        if self.argument is not None and any(c in self.argument for c in "\r\n"):
            raise ValueError("Command argument must not contain line breaks")

    @classmethod
    def parse(cls, line: str) -> Self:
        """Build a Command from 'verb' or 'verb:argument'."""
        verb, sep, argument = line.partition(":")
        return cls(verb=verb, argument=argument if sep else None)

    def encode(self) -> str:
        if self.argument is None:
            return self.verb
        return f"{self.verb}:{self.argument}"

    def __str__(self) -> str:
        return self.encode()


class ResponseType(Enum):
    """How a response line was classified"""
    OK = "ok"            # literal 'ok'
    VALUE = "value"      # key:value
    SYMBOL = "symbol"    # any other bare token
    ERROR = "error"      # one of the protocol error tokens
    INVALID = "invalid"  # cannot be classified


@dataclass
class Response:
    response_type: ResponseType
    value: Optional[str] = None
    key: Optional[str] = None
    error: Optional[type[LightpackProtocolError]] = None
    raw: Optional[bytes] = None
    command: Optional[Command] = None
    reason: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def result(self) -> bool | str | None:
        """True for OK, the payload for VALUE, the token for SYMBOL."""
        if self.response_type == ResponseType.OK:
            return True
        if self.response_type in (ResponseType.VALUE, ResponseType.SYMBOL):
            return self.value
        return None

    def is_success(self) -> bool:
        """
        Whether the controller accepted the command.

        Besides a bare 'ok', the controller acknowledges lock and unlock by
        echoing the verb, e.g. 'lock:success', or with a bare 'success'.
        """
        if self.response_type == ResponseType.OK:
            return True
        if self.response_type == ResponseType.SYMBOL and self.value == "success":
            return True
        if self.response_type == ResponseType.VALUE and self.value == "success":
            return self.command is None or self.key == self.command.verb
        return False


def parse_response(raw: bytes, command: Optional[Command] = None) -> Response:
    """
    Classify one response line (delimiter already removed).

    Every input maps to exactly one ResponseType; nothing here raises.
    """
    try:
        line = raw.decode(ClientConst.ENCODING)
    except UnicodeDecodeError:
        return Response(ResponseType.INVALID, raw=raw, command=command, reason="undecodable response")

    if not line:
        return Response(ResponseType.INVALID, raw=raw, command=command, reason="empty response")
    if len(raw) > ClientConst.MAX_FRAME:
        return Response(ResponseType.INVALID, raw=raw, command=command, reason=f"response exceeds {ClientConst.MAX_FRAME} bytes")

    if line in PROTOCOL_ERRORS:
        return Response(ResponseType.ERROR, value=line, error=PROTOCOL_ERRORS[line], raw=raw, command=command)
    if line == "ok":
        return Response(ResponseType.OK, raw=raw, command=command)
    if ":" in line:
        key, _, value = line.partition(":")
        return Response(ResponseType.VALUE, value=value, key=key, raw=raw, command=command)
    return Response(ResponseType.SYMBOL, value=line.replace(" ", "_"), raw=raw, command=command)


class CommandChannel:
    """
    Request:  <verb>[:<argument>]\\n
    Response: one line, classified by parse_response()
      - strictly one write then one read per call, no pipelining
      - protocol error tokens are raised as their exception class
      - a broken stream is closed and reported to the owner via on_connection_lost
    """

    def __init__(self,
                 transport: Optional[Transport] = None,
                 logger: Optional[logging.Logger] = None,
                 print_traffic: bool = False,
                 on_connection_lost: Optional[Callable[[], None]] = None):
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)
        self.print_traffic = print_traffic
        self.on_connection_lost = on_connection_lost
        self._lock = asyncio.Lock()

    def is_connected(self) -> bool:
        return self.transport is not None and self.transport.is_connected()

    async def read_welcome(self) -> str:
        """Read the greeting the controller sends on connect."""
        async with self._lock:
            if not self.is_connected():
                raise NotConnectedError("Not connected to a Lightpack")
            raw = await self._guarded(self.transport.read_line())
        try:
            welcome = raw.decode(ClientConst.ENCODING)
        except UnicodeDecodeError as e:
            raise FramingError("Undecodable welcome line", raw) from e
        if self.print_traffic:
            print(Fore.CYAN + f"WELCOME: {welcome}" + Style.RESET_ALL)
        self.logger.debug(f"Welcome: {welcome}")
        return welcome

    async def execute(self, command: Command | str) -> Response:
        """
        Send one command and return its classified response.

        Raises NotConnectedError if there is no live transport, the matching
        LightpackProtocolError subclass for an error token, and FramingError
        for a line that can't be classified.
        """
        if isinstance(command, str):
            command = Command.parse(command)
        async with self._lock:
            # Checked under the lock, a previous call may have dropped the stream
            if not self.is_connected():
                raise NotConnectedError(f"Not connected, can't send '{command}'")
            sent_at = time.time()
            await self._guarded(self.transport.write_line(command.encode()))
            raw = await self._guarded(self.transport.read_line())

        response = parse_response(raw, command)
        rtt_ms = (response.timestamp - sent_at) * 1000
        self.logger.debug(f"{command} -> {raw!r} ({response.response_type.name}, {rtt_ms:.0f}ms)")

        if self.print_traffic:
            colour = Fore.RED if response.response_type in (ResponseType.ERROR, ResponseType.INVALID) else Fore.CYAN
            print(Fore.MAGENTA + f"REQUEST: {command}  "
                + Fore.WHITE + Style.DIM + f"RTT: {rtt_ms:.0f}ms".ljust(10)
                + Style.BRIGHT + colour + f"  RESPONSE: {raw.decode(ClientConst.ENCODING, errors='replace')}"
                + Style.RESET_ALL)

        match response.response_type:
            case ResponseType.ERROR:
                raise response.error(command.encode(), response.value)
            case ResponseType.INVALID:
                raise FramingError(f"Invalid response to '{command}': {response.reason}", raw)
        return response

    async def _guarded(self, io):
        """Await one transport operation, dropping the stream if it breaks."""
        try:
            return await io
        except ConnectionLostError as e:
            self.logger.warning(f"Connection lost: {e}")
            await self._drop()
            raise
        except FramingError as e:
            # An overrun leaves the reader mid-frame, so the stream can't be reused
            self.logger.error(f"Framing error, closing connection: {e}")
            await self._drop()
            raise
        except asyncio.CancelledError:
            await self._drop()
            raise

    async def _drop(self):
        transport, self.transport = self.transport, None
        if transport is not None:
            await transport.close()
        if self.on_connection_lost:
            self.on_connection_lost()

    async def close(self):
        """Close the transport without notifying the owner"""
        transport, self.transport = self.transport, None
        if transport is not None:
            await transport.close()
