"""
lib/command/errors.py

Reasons the command gate refuses an invocation.
"""

from typing import Optional


class AuthorizationDenied(Exception):
    """
    Base exception for refused command invocations.

    Attributes:
        command: Command name as requested
        user: Invoking user
    """

    reason = "denied"

    def __init__(self, command: str, user: str, message: Optional[str] = None):
        self.command = command
        self.user = user
        super().__init__(message or f"{self.reason}: {command} (user: {user})")


class CommandNotFound(AuthorizationDenied):
    """No command with this name is registered."""

    reason = "not-found"


class CommandDisabled(AuthorizationDenied):
    """The command or its plugin is disabled."""

    reason = "disabled"


class Unauthorized(AuthorizationDenied):
    """Master-only command invoked by someone other than the master."""

    reason = "master-only"


class OnCooldown(AuthorizationDenied):
    """
    The user invoked the command again before its cooldown elapsed.

    Attributes:
        remaining: Seconds left until the user may use it again
    """

    reason = "cooldown"

    def __init__(self, command: str, user: str, remaining: float):
        self.remaining = remaining
        super().__init__(
            command, user,
            f"{self.reason}: {command} (user: {user}, {remaining:.1f}s left)"
        )
