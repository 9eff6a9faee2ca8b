"""
Connection adapters for chat rooms.

This module provides the abstract transport interface the bot consumes
and a websocket implementation of it.
"""

from .adapter import ConnectionAdapter
from .errors import (
    AuthenticationError,
    ConnectionError,
    NotConnectedError,
    SendError,
)
from .websocket import WebSocketConnection

__all__ = [
    'ConnectionAdapter',
    'WebSocketConnection',
    'ConnectionError',
    'AuthenticationError',
    'NotConnectedError',
    'SendError',
]
