"""
Lightpack library exceptions.

This module defines all custom exceptions used throughout the library.
"""

from typing import Optional


class LightpackError(Exception):
    """Base exception for Lightpack protocol errors"""
    pass


class LightpackConnectionError(LightpackError):
    """Raised when the socket to the controller cannot be opened"""
    pass


class NotConnectedError(LightpackError):
    """Raised when a command is attempted on a closed or never-opened session"""
    pass


class ConnectionLostError(NotConnectedError):
    """Raised when the controller drops the connection mid-command"""
    pass


class AuthenticationFailedError(LightpackError):
    """Raised when the controller rejects the configured API key"""
    pass


class FramingError(LightpackError):
    """Raised when a response line cannot be classified"""

    def __init__(self, message: str, raw: Optional[bytes] = None):
        super().__init__(message)
        self.raw = raw


class LightpackProtocolError(LightpackError):
    """Base for the error tokens the controller sends back"""

    token: str = ""

    def __init__(self, command: Optional[str] = None, response: Optional[str] = None):
        self.command = command
        self.response = response if response is not None else self.token
        message = f"Controller replied '{self.response}'"
        if command is not None:
            message += f" to '{command}'"
        super().__init__(message)


class AuthenticationRequiredError(LightpackProtocolError):
    """Raised when a command is sent before authenticating"""
    token = "authorization required"


class UnknownCommandError(LightpackProtocolError):
    """Raised when the controller does not recognise the verb"""
    token = "unknown command"


class NotLockedError(LightpackProtocolError):
    """Raised when a mutating command is sent without holding the lock"""
    token = "not locked"


class BusyError(LightpackProtocolError):
    """Raised when another session holds the lock"""
    token = "busy"


class CommandError(LightpackProtocolError):
    """Raised on a generic server-side failure"""
    token = "error"


# Closed set of error tokens and the exception each one maps to
PROTOCOL_ERRORS: dict[str, type[LightpackProtocolError]] = {
    cls.token: cls
    for cls in (
        AuthenticationRequiredError,
        UnknownCommandError,
        NotLockedError,
        BusyError,
        CommandError,
    )
}
