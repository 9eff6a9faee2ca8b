"""
Connection-specific exceptions.

This module defines the exception hierarchy for connection-related errors.
All exceptions inherit from ConnectionError for easy catching.
"""


class ConnectionError(Exception):
    """
    Base exception for connection errors.

    All connection-related exceptions inherit from this class,
    allowing catch-all exception handling when needed.
    """
    pass


class AuthenticationError(ConnectionError):
    """
    Authentication or login failed.

    Raised when credentials are invalid or the room rejects the login.
    """
    pass


class NotConnectedError(ConnectionError):
    """
    Operation requires active connection.

    Raised when attempting to send messages without an established
    connection.
    """
    pass


class SendError(ConnectionError):
    """
    Failed to send message.

    Raised when message transmission fails due to network issues or
    protocol errors.
    """
    pass
