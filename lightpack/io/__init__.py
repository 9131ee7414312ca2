"""
Wire-level protocol implementation.

This module contains the lowest-level communication components:
- Transport - Raw TCP line stream
- CommandChannel - One command line out, one response line back
- Command, Response - Message framing and classification
"""

from .transport import Transport, ClientConst
from .command import CommandChannel, Command, Response, ResponseType, parse_response

__all__ = [
    "Transport",
    "CommandChannel",
    "Command",
    "Response",
    "ResponseType",
    "parse_response",
    "ClientConst",
]
