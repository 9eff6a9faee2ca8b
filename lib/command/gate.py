"""
lib/command/gate.py

Authorization checks performed before a command runs.
"""

import time
from typing import Callable, Optional

from ..plugin.command import Command
from ..plugin.manager import PluginManager
from .errors import CommandDisabled, CommandNotFound, OnCooldown, Unauthorized


class CommandGate:
    """
    Decides whether a user may run a command right now.

    Checks run in order and the first failure raises:

        1. The command exists               -> CommandNotFound
        2. Command and plugin are enabled   -> CommandDisabled
        3. Master-only commands need master -> Unauthorized
        4. The user's cooldown has elapsed  -> OnCooldown

    On success the user's last-used timestamp is set to now.

    Args:
        registry: PluginManager used for command lookup
        master: Master user name (compared case-sensitively), or None
        clock: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(
        self,
        registry: PluginManager,
        master: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.master = master
        self.clock = clock

    def authorize(self, name: str, user: str) -> Command:
        """
        Authorize one invocation attempt.

        Returns:
            The command to execute

        Raises:
            AuthorizationDenied: One of its subclasses, per failed check
        """
        command = self.registry.get_command(name) if name else None
        if command is None:
            raise CommandNotFound(name, user)

        if not command.is_enabled():
            raise CommandDisabled(command.name, user)

        if command.master_only and (self.master is None or user != self.master):
            raise Unauthorized(command.name, user)

        now = self.clock()
        remaining = command.remaining_cooldown(user, now)
        if remaining > 0:
            raise OnCooldown(command.name, user, remaining)

        command.used(user, now)
        return command
