import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, Self

from ..exceptions import (
    AuthenticationRequiredError,
    LightpackConnectionError,
    LightpackError,
    LightpackProtocolError,
    NotConnectedError,
)
from ..io import ClientConst, Command, CommandChannel, Response, ResponseType, Transport
from .models import ConnectResult
from .types import ConnectFailure, SessionState, Verb

"""
===================================================================================
This module implements the Lightpack session lifecycle on top of lightpack.io:
connect, authenticate, lock, unlock, disconnect.
===================================================================================

Terms:
Authenticator = Sends the API key once, straight after the welcome line.
LockManager = Mirrors the controller's exclusive-write lock in a local flag.
LightpackSession = Owns the transport and drives the two above.

A session is not safe for concurrent use from several tasks. Give each task
its own session, or serialise access externally.
"""

API_VERSION_PATTERN = re.compile(r"API v?(\d+(?:\.\d+)*)")


def parse_api_version(welcome: str) -> Optional[str]:
    """Highest 'API vX.Y' advertised in the welcome line, if any."""
    versions = API_VERSION_PATTERN.findall(welcome)
    if not versions:
        return None
    return max(versions, key=lambda v: tuple(int(part) for part in v.split(".")))


class Authenticator:

    def __init__(self, channel: CommandChannel, logger: Optional[logging.Logger] = None):
        self.channel = channel
        self.logger = logger or logging.getLogger(__name__)

    async def authenticate(self, api_key: Optional[str]) -> bool:
        """
        Send the API key. Returns True if the controller accepted it, or if
        there is no key to send (the controller then needs none).
        """
        if api_key is None:
            return True
        try:
            response = await self.channel.execute(Command(Verb.APIKEY, str(api_key)))
        except LightpackProtocolError as e:
            self.logger.warning(f"API key rejected: {e}")
            return False
        if response.response_type != ResponseType.OK:
            self.logger.warning(f"API key rejected: unexpected response {response.raw!r}")
            return False
        self.logger.debug("Authenticated")
        return True


class LockManager:

    def __init__(self,
                 channel: CommandChannel,
                 logger: Optional[logging.Logger] = None,
                 send: Optional[Callable[[Command], Awaitable[Response]]] = None):
        self.channel = channel
        self.logger = logger or logging.getLogger(__name__)
        # The owning session passes its gated execute so lock/unlock obey the session state
        self.send = send or channel.execute
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    async def acquire(self) -> bool:
        """Take the controller's lock. Returns the resulting lock state."""
        if self._locked:
            return True
        response = await self.send(Command(Verb.LOCK))
        self._locked = response.is_success()
        if self._locked:
            self.logger.debug("Lock acquired")
        else:
            self.logger.info(f"Lock refused: {response.raw!r}")
        return self._locked

    async def release(self) -> bool:
        """
        Give the lock back. The local flag is cleared whatever the controller
        says. Returns whether the controller acknowledged the unlock.
        """
        if not self._locked:
            return False
        try:
            response = await self.send(Command(Verb.UNLOCK))
        except LightpackError as e:
            self.logger.warning(f"Unlock failed: {e}")
            return False
        finally:
            self._locked = False
        if not response.is_success():
            self.logger.warning(f"Unlock not acknowledged: {response.raw!r}")
            return False
        self.logger.debug("Lock released")
        return True

    def reset(self) -> None:
        """Forget the lock without telling the controller (connection is gone)."""
        self._locked = False

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[Self]:
        """
        Hold the lock for the duration of the block.

        A lock that was already held is left alone. Otherwise the lock taken
        here is released on every exit path, exceptions and cancellation
        included.
        """
        if self._locked:
            yield self
            return
        if not await self.acquire():
            self.logger.warning("Running locked block without the lock")
        try:
            yield self
        finally:
            await self.release()


class LightpackSession:
    """
    One connection to a Lightpack controller.

    State machine:
        DISCONNECTED -> CONNECTING -> AUTHENTICATING -> READY <-> LOCKED
        any state -> DISCONNECTED (disconnect, or the stream breaking)

    The session can be connected and disconnected repeatedly.
    """

    def __init__(self,
                 host: str = ClientConst.DEFAULT_HOST,
                 port: int = ClientConst.DEFAULT_PORT,
                 api_key: Optional[str] = None,
                 logger: Optional[logging.Logger] = None,
                 print_traffic: bool = False):
        self._host = host
        self._port = port
        self.api_key = api_key
        self.logger = logger or logging.getLogger(__name__)
        self.channel = CommandChannel(logger=self.logger, print_traffic=print_traffic, on_connection_lost=self._connection_lost)
        self.authenticator = Authenticator(self.channel, logger=self.logger)
        self.lock_manager = LockManager(self.channel, logger=self.logger, send=self.execute)
        self.welcome: Optional[str] = None
        self.api_version: Optional[str] = None
        self._state = SessionState.DISCONNECTED

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._host}:{self._port}, {self.state.name})"

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def state(self) -> SessionState:
        if self._state == SessionState.READY and self.lock_manager.locked:
            return SessionState.LOCKED
        return self._state

    @property
    def connected(self) -> bool:
        return self._state != SessionState.DISCONNECTED and self.channel.is_connected()

    @property
    def locked(self) -> bool:
        return self.connected and self.lock_manager.locked

    # ============================
    # LIFECYCLE
    # ============================

    async def connect(self) -> ConnectResult:
        """
        Open the socket, discard the welcome line and authenticate.

        Never raises for connection-time faults: the returned ConnectResult
        is falsy on failure and carries the cause. On failure the session is
        left DISCONNECTED with no socket open.
        """
        if self.connected:
            return ConnectResult(False, ConnectFailure.ALREADY_CONNECTED)

        self._state = SessionState.CONNECTING
        transport = Transport(self._host, self._port, logger=self.logger)
        try:
            await transport.open()
        except LightpackConnectionError as e:
            self._state = SessionState.DISCONNECTED
            self.logger.error(str(e))
            return ConnectResult(False, ConnectFailure.SOCKET_ERROR, e)
        except asyncio.CancelledError:
            self._state = SessionState.DISCONNECTED
            raise

        self.channel.transport = transport
        self._state = SessionState.AUTHENTICATING
        stage = ConnectFailure.WELCOME_ERROR
        try:
            self.welcome = await self.channel.read_welcome()
            self.api_version = parse_api_version(self.welcome)
            stage = ConnectFailure.AUTHENTICATION_FAILED
            authenticated = await self.authenticator.authenticate(self.api_key)
        except Exception as e:
            # Includes ValueError/TypeError from an API key that can't be framed as a command
            failure = ConnectFailure.SOCKET_ERROR if isinstance(e, (NotConnectedError, OSError)) else stage
            self.logger.error(f"Connect to {self._host}:{self._port} failed during {stage.name}: {e}")
            await self._teardown()
            return ConnectResult(False, failure, e)
        except asyncio.CancelledError:
            await self._teardown()
            raise

        if not authenticated:
            self.logger.error(f"Authentication with {self._host}:{self._port} failed")
            await self._teardown()
            return ConnectResult(False, ConnectFailure.AUTHENTICATION_FAILED)

        self._state = SessionState.READY
        self.logger.info(f"Session ready ({self.api_version or 'unknown API version'})")
        return ConnectResult(True)

    async def disconnect(self) -> bool:
        """Release the lock if held, then close the socket. False if not connected."""
        if not self.connected:
            if self._state != SessionState.DISCONNECTED:
                await self._teardown()
            return False
        await self.lock_manager.release()
        await self._teardown()
        return True

    async def _teardown(self):
        self.lock_manager.reset()
        self._state = SessionState.DISCONNECTED
        await self.channel.close()

    def _connection_lost(self):
        self.logger.warning(f"Connection to {self._host}:{self._port} lost")
        self.lock_manager.reset()
        self._state = SessionState.DISCONNECTED

    async def __aenter__(self):
        (await self.connect()).raise_for_failure()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    @classmethod
    @asynccontextmanager
    async def open(cls, *args, **kwargs) -> AsyncIterator[Self]:
        """Connect, yield the session and always disconnect afterwards."""
        session = cls(*args, **kwargs)
        try:
            (await session.connect()).raise_for_failure()
            yield session
        finally:
            await session.disconnect()

    # ============================
    # COMMANDS
    # ============================

    async def execute(self, command: Command | str) -> Response:
        """Send a command on an authenticated session and return its Response."""
        if isinstance(command, str):
            command = Command.parse(command)
        if not self.connected:
            raise NotConnectedError(f"Not connected, can't send '{command}'")
        if self._state in (SessionState.CONNECTING, SessionState.AUTHENTICATING) and command.verb != Verb.APIKEY:
            raise AuthenticationRequiredError(command.encode())
        return await self.channel.execute(command)

    async def command(self, command: Command | str) -> bool | str:
        """Like execute(), but returns True for 'ok', else the payload or token."""
        return (await self.execute(command)).result

    async def lock(self) -> bool:
        return await self.lock_manager.acquire()

    async def unlock(self) -> bool:
        return await self.lock_manager.release()

    def with_lock(self):
        """async with session.with_lock(): ... runs the block holding the lock."""
        return self.lock_manager.hold()
