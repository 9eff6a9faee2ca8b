"""
Abstract connection adapter for chat rooms.

This module defines the ConnectionAdapter abstract base class that all
transport implementations must inherit from. The bot only consumes the
normalized events listed below and calls ``send_message``.

Normalized events and their data:
    connect      {}
    disconnect   {}
    message      {'user', 'content', 'history'}
    clear_chat   {}
    history      {'messages': [{'user', 'content'}, ...]}
    user_list    {'users': [name, ...]}
    user_join    {'user'}
    user_change  {'user'}
    user_leave   {'user'}
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional


class ConnectionAdapter(ABC):
    """
    Abstract interface for one room connection.

    The adapter pattern allows swapping transport implementations without
    changing bot logic, and testing with fake connections.

    Attributes:
        room: Room this connection joins
        logger: Logger instance for connection events
        is_connected: Connection status flag

    Example:
        >>> class MyConnection(ConnectionAdapter):
        ...     async def connect(self):
        ...         self._is_connected = True
        ...     # ... implement other methods
        >>> conn = MyConnection('lobby')
        >>> conn.on_event('message', on_message)
        >>> await conn.connect()
        >>> await conn.send_message("Hello world")
    """

    def __init__(self, room: str, logger: Optional[logging.Logger] = None):
        """
        Initialize connection adapter.

        Args:
            room: Room name
            logger: Optional logger instance. If None, creates default logger
                    named after the class.
        """
        self.room = room
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self._is_connected = False
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection, authenticate and join the room.

        Raises:
            ConnectionError: If connection fails
            AuthenticationError: If login fails
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Close connection gracefully.

        This method should not raise exceptions - it should make best
        effort to clean up even if errors occur.
        """

    @abstractmethod
    async def send_message(self, content: str) -> None:
        """
        Send message to the room.

        Raises:
            NotConnectedError: If not connected
            SendError: If message fails to send
        """

    def on_event(self, event: str, callback: Callable) -> None:
        """
        Register callback for normalized event.

        Callbacks can be async or sync functions. They receive two arguments:
        - event: The normalized event name (string)
        - data: Event data dictionary
        """
        self._handlers[event].append(callback)

    def off_event(self, event: str, callback: Callable) -> None:
        """Unregister callback for event."""
        if callback in self._handlers.get(event, []):
            self._handlers[event].remove(callback)

    async def _emit(self, event: str, data: Dict[str, Any]) -> None:
        """Call every handler for an event, isolating handler errors."""
        for callback in list(self._handlers.get(event, [])):
            try:
                result = callback(event, data)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.exception(f"Error in {event} handler: {e}")

    @property
    def is_connected(self) -> bool:
        """
        Check if connection is active.

        Returns:
            True if connected, False otherwise
        """
        return self._is_connected
