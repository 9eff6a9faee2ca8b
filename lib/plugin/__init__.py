"""
lib/plugin

Plugin system for extensible bot functionality.

This module provides:
- Plugin: Abstract base class for all plugins
- PluginMetadata: Plugin identity
- Command: Commands exposed by plugins
- PluginManager: Plugin registration, lookup and lifecycle broadcast
- Exception hierarchy for plugin errors

Example:
    from lib.plugin import Plugin, PluginMetadata, PluginManager

    class MyPlugin(Plugin):
        @property
        def metadata(self):
            return PluginMetadata(name='Hello', description='Says hello')

        def setup(self):
            self.add_command('hello', self.say_hello)

        def say_hello(self, ctx):
            return f'Hello {ctx.sender}!'

    manager = PluginManager()
    manager.load([MyPlugin])
"""

from .base import LifecycleContext, Plugin
from .command import Command
from .errors import (
    PluginConfigError,
    PluginError,
    PluginLoadError,
    PluginNotFoundError,
)
from .manager import PluginInfo, PluginManager, PluginState
from .metadata import PluginMetadata

__all__ = [
    "Plugin",
    "LifecycleContext",
    "PluginMetadata",
    "PluginManager",
    "PluginState",
    "PluginInfo",
    "Command",
    "PluginError",
    "PluginLoadError",
    "PluginConfigError",
    "PluginNotFoundError",
]
