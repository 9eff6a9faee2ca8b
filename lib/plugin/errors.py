"""
lib/plugin/errors.py

Plugin-specific exceptions.
"""


class PluginError(Exception):
    """Base exception for plugin errors."""
    pass


class PluginLoadError(PluginError):
    """Plugin failed to load or collided with an existing registration."""
    pass


class PluginConfigError(PluginError):
    """Plugin configuration invalid or missing."""
    pass


class PluginNotFoundError(PluginError):
    """Plugin or command not found."""
    pass
