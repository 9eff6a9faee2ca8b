"""
lib/plugin/base.py

Abstract plugin base class.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging

from .command import Command
from .metadata import PluginMetadata


@dataclass
class LifecycleContext:
    """
    Context passed with a lifecycle event.

    Attributes:
        room: Room the event concerns
        send: Pushes a message into that room's outbound queue
        config: The receiving plugin's configuration slice
        services: Shared helpers (registry, scheduler, ...)
        logger: Logger for the receiving plugin
    """
    room: str
    send: Callable[[str], None]
    config: Dict[str, Any] = field(default_factory=dict)
    services: Dict[str, Any] = field(default_factory=dict)
    logger: Optional[logging.Logger] = None


class Plugin(ABC):
    """
    Abstract base class for bot modules.

    A plugin contributes zero or more commands and reacts to lifecycle
    events broadcast by the PluginManager (currently only ``join``).

    Lifecycle:
        1. __init__() - Construct plugin (fast, no I/O)
        2. setup() - Declare commands (called once by the manager)
        3. on_lifecycle_event() - Called for every broadcast event
        4. enable() / disable() - Toggled at runtime by trusted commands

    Attributes:
        config: Plugin configuration slice (keyed by module name in config)
        logger: Logger instance for this plugin
        commands: Commands declared in setup()

    Example:
        class PingPlugin(Plugin):
            @property
            def metadata(self):
                return PluginMetadata(name='Ping', description='Pong')

            def setup(self):
                self.add_command('ping', self.on_ping, cooldown=5)

            def on_ping(self, ctx):
                return 'pong'
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize plugin.

        IMPORTANT: This should be fast (no I/O, no blocking operations).

        Args:
            config: Plugin configuration dict (from config file)
            logger: Optional logger; defaults to ``plugin.<name>``
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger(f"plugin.{self.metadata.key}")
        self._is_enabled = True
        self._commands: List[Command] = []

    @property
    @abstractmethod
    def metadata(self) -> PluginMetadata:
        """
        Plugin metadata (name, description, version).

        This should return a constant PluginMetadata instance.
        """

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def is_enabled(self) -> bool:
        """Check if plugin is currently enabled."""
        return self._is_enabled

    @property
    def commands(self) -> List[Command]:
        return list(self._commands)

    # =================================================================
    # Lifecycle Hooks
    # =================================================================

    def setup(self) -> None:
        """
        Declare commands (called once on load).

        If this raises an exception, the plugin will not be loaded.
        """

    async def on_lifecycle_event(self, event: str, context: Any) -> None:
        """
        Handle a lifecycle event broadcast by the manager.

        The default implementation ignores every event.

        Args:
            event: Event name (e.g. 'join')
            context: LifecycleContext with room, send, config and services
        """

    def enable(self) -> None:
        self._is_enabled = True
        self.logger.info(f"{self.metadata.name} enabled")

    def disable(self) -> None:
        """
        Disable the plugin.

        The plugin stays loaded; its commands are refused by the gate and
        handlers that emit on their own should check ``is_enabled``.
        """
        self._is_enabled = False
        self.logger.info(f"{self.metadata.name} disabled")

    # =================================================================
    # Command Registration
    # =================================================================

    def add_command(
        self,
        name: str,
        handler: Callable,
        master_only: bool = False,
        cooldown: float = 0.0,
        description: str = '',
    ) -> Command:
        """
        Declare a command handled by this plugin.

        Handler signature: def handler(ctx) or async def handler(ctx).
        A non-None return value is sent back to the invoking room.

        Args:
            name: Command name (without prefix, case-insensitive)
            handler: Callable receiving a CommandContext
            master_only: Restrict to the configured master user
            cooldown: Seconds between uses per user (0 disables)
            description: Short help text

        Returns:
            The declared Command
        """
        command = Command(
            name,
            self,
            handler,
            master_only=master_only,
            cooldown=cooldown,
            description=description,
        )
        self._commands.append(command)
        self.logger.debug(f"Declared command '{command.name}'")
        return command

    # =================================================================
    # Configuration
    # =================================================================

    def configure(self, config: Optional[Dict[str, Any]]) -> None:
        """Replace the configuration slice."""
        self.config = config or {}

    def get_config(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Supports dot notation for nested configuration.

        Example:
            # Config: {'lobby': {'name': 'Stream'}}
            name = self.get_config('lobby.name')  # Returns 'Stream'
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    # =================================================================
    # Utility
    # =================================================================

    def __str__(self) -> str:
        return str(self.metadata)

    def __repr__(self) -> str:
        status = "enabled" if self.is_enabled else "disabled"
        return f"<{self.metadata.name} v{self.metadata.version} ({status})>"
