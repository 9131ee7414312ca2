"""
Lightpack Python Library

A Python library for controlling Lightpack / Prismatik ambient lighting
controllers over their line-based TCP API.

This library provides two layers of abstraction:

1. **lightpack.io**: Wire-level protocol (TCP line stream, command framing, response classification)
2. **lightpack.api**: Session lifecycle (authentication, locking) and device commands

Example usage:
    import lightpack

    async with lightpack.Lightpack.open(host="127.0.0.1", api_key="secret") as lp:
        print(await lp.status())
        async with lp.with_lock():
            await lp.set_brightness(80)
            await lp.set_all_colours(lightpack.Colour(255, 0, 0))
"""

# Device commands (recommended for most users)
from .api import Lightpack, Colour, LedArea, Attribute

# Session lifecycle
from .api import LightpackSession, Authenticator, LockManager, ConnectResult, ConnectFailure, SessionState

# Low-level models
from .io import Transport, CommandChannel, Command, Response, ResponseType, parse_response, ClientConst

# Configuration
from .config import LightpackConfig, load_config

# Exceptions
from .exceptions import (
    LightpackError,
    LightpackConnectionError,
    NotConnectedError,
    ConnectionLostError,
    AuthenticationFailedError,
    FramingError,
    LightpackProtocolError,
    AuthenticationRequiredError,
    UnknownCommandError,
    NotLockedError,
    BusyError,
    CommandError,
)

# Utilities
from .utils import run_with_keyboard_interrupt

__version__ = "0.1.0"

# Public API - these are the main classes users should import
__all__ = [
    # Device commands
    "Lightpack",
    "Colour",
    "LedArea",
    "Attribute",

    # Session lifecycle
    "LightpackSession",
    "Authenticator",
    "LockManager",
    "ConnectResult",
    "ConnectFailure",
    "SessionState",

    # Low-level models (for advanced users)
    "Transport",
    "CommandChannel",
    "Command",
    "Response",
    "ResponseType",
    "parse_response",
    "ClientConst",

    # Configuration
    "LightpackConfig",
    "load_config",

    # Exceptions
    "LightpackError",
    "LightpackConnectionError",
    "NotConnectedError",
    "ConnectionLostError",
    "AuthenticationFailedError",
    "FramingError",
    "LightpackProtocolError",
    "AuthenticationRequiredError",
    "UnknownCommandError",
    "NotLockedError",
    "BusyError",
    "CommandError",

    # Utilities
    "run_with_keyboard_interrupt",
]
