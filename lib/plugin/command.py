"""
lib/plugin/command.py

Commands exposed by plugins.
"""

from typing import TYPE_CHECKING, Callable, Dict, Optional

if TYPE_CHECKING:
    from .base import Plugin


class Command:
    """
    A named, authorizable action bound to a plugin handler.

    Tracks the last authorized use of the command per user so the
    command gate can enforce cooldowns.

    Attributes:
        name: Command name (lowercase, unique across all plugins)
        plugin: Owning plugin (back-reference)
        handler: Callable receiving a CommandContext; may be async
        master_only: Only the configured master may invoke it
        cooldown: Seconds required between one user's uses (0 = none)

    Example:
        cmd = Command('ping', plugin, handler, cooldown=5)
        if cmd.can_be_used('alice', now):
            cmd.used('alice', now)
    """

    def __init__(
        self,
        name: str,
        plugin: 'Plugin',
        handler: Callable,
        master_only: bool = False,
        cooldown: float = 0.0,
        description: str = '',
    ):
        if not name or any(c.isspace() for c in name):
            raise ValueError(f"Invalid command name: {name!r}")
        if cooldown < 0:
            raise ValueError(f"Cooldown must not be negative: {cooldown}")

        self.name = name.lower()
        self.plugin = plugin
        self.handler = handler
        self.master_only = master_only
        self.cooldown = cooldown
        self.description = description
        self._enabled = True
        self._last_used: Dict[str, float] = {}

    @property
    def enabled(self) -> bool:
        """Whether the command itself is enabled (ignores its plugin)."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)

    def is_enabled(self) -> bool:
        """Command is usable only while both it and its plugin are enabled."""
        return self._enabled and self.plugin.is_enabled

    def last_used(self, user: str) -> Optional[float]:
        """Timestamp of the user's last authorized use, if any."""
        return self._last_used.get(user)

    def remaining_cooldown(self, user: str, now: float) -> float:
        """Seconds until the user may invoke this command again."""
        if not self.cooldown:
            return 0.0
        last = self._last_used.get(user)
        if last is None:
            return 0.0
        return max(0.0, self.cooldown - (now - last))

    def can_be_used(self, user: str, now: float) -> bool:
        """Check the per-user cooldown."""
        return self.remaining_cooldown(user, now) <= 0

    def used(self, user: str, now: float) -> None:
        """Record an authorized use."""
        self._last_used[user] = now

    def __repr__(self) -> str:
        flags = []
        if self.master_only:
            flags.append('master')
        if self.cooldown:
            flags.append(f'cooldown={self.cooldown}')
        if not self._enabled:
            flags.append('disabled')
        suffix = f" ({', '.join(flags)})" if flags else ''
        return f"<Command {self.name}{suffix}>"
