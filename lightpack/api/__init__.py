"""
API-level models and protocol implementation.

This module contains models and types that belong to the API layer:
- LightpackSession (connect, authenticate, lock, disconnect)
- Lightpack (device commands on top of a session)
- Colour, LedArea, ConnectResult (API-level values)
- Types and enums used by the API layer
"""

from .models import Colour, LedArea, ConnectResult
from .session import LightpackSession, Authenticator, LockManager
from .protocol import Lightpack
from .types import Attribute, ConnectFailure, SessionState, Verb, Const

__all__ = [
    # Sessions
    "Lightpack",
    "LightpackSession",
    "Authenticator",
    "LockManager",

    # API-level models
    "Colour",
    "LedArea",
    "ConnectResult",

    # API-level types
    "Attribute",
    "ConnectFailure",
    "SessionState",
    "Verb",
    "Const",
]
