"""
lib/plugin/manager.py

Plugin registration, command lookup, and lifecycle broadcast.
"""

import importlib
import inspect
import logging
import traceback
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .base import Plugin
from .command import Command
from .errors import PluginLoadError, PluginNotFoundError

PluginSource = Union[str, type, Plugin]


class PluginState(Enum):
    """
    Plugin registration states.

    States:
        LOADED: Instantiated, set up, and registered
        FAILED: Rejected during load (import error, setup error, collision)
    """

    LOADED = "loaded"
    FAILED = "failed"


class PluginInfo:
    """
    Plugin information and state tracking.

    Attributes:
        plugin: Plugin instance (None if loading failed early)
        state: Current plugin state
        error: Error message if state == FAILED
        source: What the plugin was loaded from (for diagnostics)
    """

    def __init__(self, source: PluginSource):
        self.plugin: Optional[Plugin] = None
        self.state: PluginState = PluginState.FAILED
        self.error: Optional[str] = None
        self.source = source

    @property
    def name(self) -> Optional[str]:
        """Plugin name (None if not loaded)."""
        return self.plugin.metadata.name if self.plugin else None

    def __str__(self) -> str:
        if self.plugin:
            return f"{self.plugin.metadata.name} ({self.state.value})"
        return f"{_describe(self.source)} ({self.state.value})"

    def __repr__(self) -> str:
        return f"<PluginInfo: {self} error={self.error!r}>"


def _describe(source: PluginSource) -> str:
    if isinstance(source, str):
        return source
    if isinstance(source, type):
        return source.__name__
    return type(source).__name__


class PluginManager:
    """
    Registry of loaded plugins and the commands they expose.

    Features:
        - Load plugins from an explicit, ordered source list
        - Case-insensitive lookup of plugins and commands
        - Reject duplicate plugin or command names (others keep loading)
        - Runtime enable/disable of plugins and commands
        - Broadcast lifecycle events with per-plugin error isolation

    Args:
        config: Per-module configuration slices keyed by module name
        logger: Optional logger instance

    Example:
        manager = PluginManager({'reminder': {...}})
        manager.load(['plugins.admin', 'plugins.reminder'])

        command = manager.get_command('PING')
        await manager.broadcast('join', make_context)
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger("plugin.manager")
        self._config = {str(k).lower(): v for k, v in (config or {}).items()}

        # Registry in load order: key -> Plugin
        self._plugins: Dict[str, Plugin] = {}

        # Command namespace: name -> Command
        self._commands: Dict[str, Command] = {}

        # Every load attempt, including failures
        self._infos: List[PluginInfo] = []

    # =================================================================
    # Loading
    # =================================================================

    def load(self, sources: Iterable[PluginSource]) -> List[PluginInfo]:
        """
        Load plugins in order.

        Continues on errors - one plugin failure doesn't prevent
        loading others.

        Args:
            sources: Plugin subclasses, instances, or dotted import paths
                     ('plugins.reminder' or 'plugins.reminder:ReminderPlugin')

        Returns:
            PluginInfo for each source, in order
        """
        results = []
        for source in sources:
            info = PluginInfo(source)
            try:
                info.plugin = self._register(self._instantiate(source))
                info.state = PluginState.LOADED
            except PluginLoadError as e:
                info.error = str(e)
                self.logger.error(f"Failed to load {_describe(source)}: {e}")
                self.logger.debug(traceback.format_exc())
            self._infos.append(info)
            results.append(info)

        self.logger.info(self.summary())
        return results

    def _instantiate(self, source: PluginSource) -> Plugin:
        """
        Resolve a source into a set-up Plugin instance.

        Raises:
            PluginLoadError: If import, instantiation or setup fails
        """
        try:
            if isinstance(source, Plugin):
                plugin = source
            else:
                plugin_class = self._resolve_class(source)
                plugin = plugin_class()

            if plugin.metadata.key in self._config:
                plugin.configure(self._config[plugin.metadata.key])
            plugin.setup()
            return plugin

        except PluginLoadError:
            raise
        except Exception as e:
            raise PluginLoadError(f"{type(e).__name__}: {e}") from e

    @staticmethod
    def _resolve_class(source: Union[str, type]) -> type:
        if isinstance(source, type):
            if not issubclass(source, Plugin):
                raise PluginLoadError(f"{source.__name__} is not a Plugin subclass")
            return source

        module_name, _, attr = source.partition(':')
        module = importlib.import_module(module_name)

        if attr:
            obj = getattr(module, attr, None)
            if not (inspect.isclass(obj) and issubclass(obj, Plugin)):
                raise PluginLoadError(f"{source} is not a Plugin subclass")
            return obj

        # Find Plugin subclass in module
        for name in dir(module):
            obj = getattr(module, name)
            if (
                inspect.isclass(obj)
                and issubclass(obj, Plugin)
                and obj is not Plugin
                and not inspect.isabstract(obj)
            ):
                return obj

        raise PluginLoadError(f"No Plugin subclass found in {module_name}")

    def _register(self, plugin: Plugin) -> Plugin:
        """
        Add a plugin and its commands to the registry.

        Nothing is registered if any name collides.

        Raises:
            PluginLoadError: On duplicate plugin or command name
        """
        key = plugin.metadata.key
        if key in self._plugins:
            raise PluginLoadError(f"Duplicate module name: {plugin.metadata.name}")

        seen = set()
        for command in plugin.commands:
            if command.name in self._commands or command.name in seen:
                raise PluginLoadError(
                    f"Command '{command.name}' of {plugin.metadata.name} "
                    "collides with an existing command"
                )
            seen.add(command.name)

        self._plugins[key] = plugin
        for command in plugin.commands:
            self._commands[command.name] = command

        self.logger.info(f"Loaded plugin: {plugin.metadata}")
        return plugin

    # =================================================================
    # Lookup
    # =================================================================

    def get(self, name: str) -> Optional[Plugin]:
        """Get plugin by name (case-insensitive)."""
        return self._plugins.get(name.lower())

    def get_command(self, name: str) -> Optional[Command]:
        """Get command by name (case-insensitive)."""
        return self._commands.get(name.lower())

    def list_plugins(self) -> List[Plugin]:
        """Loaded plugins in load order."""
        return list(self._plugins.values())

    def list_commands(self) -> List[Command]:
        return list(self._commands.values())

    def load_results(self) -> List[PluginInfo]:
        """Every load attempt, including failures."""
        return list(self._infos)

    def for_each(self, visitor: Callable[[Plugin], Any]) -> None:
        """
        Call visitor once per loaded plugin, in load order.

        A visitor error for one plugin is logged and the walk continues.
        """
        for plugin in list(self._plugins.values()):
            try:
                visitor(plugin)
            except Exception as e:
                self.logger.exception(f"Visitor failed for {plugin.metadata.name}: {e}")

    def summary(self) -> str:
        plugins = len(self._plugins)
        commands = len(self._commands)
        return (
            f"Loaded {plugins} module{'s' if plugins != 1 else ''} "
            f"with {commands} command{'s' if commands != 1 else ''}"
        )

    # =================================================================
    # Enable / Disable
    # =================================================================

    def enable(self, name: str) -> Union[Plugin, Command]:
        """
        Enable a plugin or, failing that, a command by name.

        Raises:
            PluginNotFoundError: If no plugin or command has this name
        """
        target = self._find(name)
        if isinstance(target, Plugin):
            target.enable()
        else:
            target.enabled = True
            self.logger.info(f"Command enabled: {target.name}")
        return target

    def disable(self, name: str) -> Union[Plugin, Command]:
        """
        Disable a plugin or, failing that, a command by name.

        Raises:
            PluginNotFoundError: If no plugin or command has this name
        """
        target = self._find(name)
        if isinstance(target, Plugin):
            target.disable()
        else:
            target.enabled = False
            self.logger.info(f"Command disabled: {target.name}")
        return target

    def _find(self, name: str) -> Union[Plugin, Command]:
        target = self.get(name) or self.get_command(name)
        if target is None:
            raise PluginNotFoundError(f"No module or command named '{name}'")
        return target

    # =================================================================
    # Lifecycle Broadcast
    # =================================================================

    async def broadcast(
        self, event: str, context_factory: Callable[[Plugin], Any]
    ) -> int:
        """
        Deliver a lifecycle event to every plugin in load order.

        A failing plugin is logged and skipped; the broadcast continues.

        Args:
            event: Event name (e.g. 'join')
            context_factory: Builds the context passed to each plugin

        Returns:
            Number of plugins that handled the event without error
        """
        handled = 0
        for plugin in list(self._plugins.values()):
            try:
                result = plugin.on_lifecycle_event(event, context_factory(plugin))
                if inspect.isawaitable(result):
                    await result
                handled += 1
            except Exception as e:
                self.logger.exception(
                    f"Error in {plugin.metadata.name} handling '{event}': {e}"
                )
        return handled
