"""
lib/plugin/metadata.py

Plugin metadata structure.
"""

from dataclasses import dataclass


@dataclass
class PluginMetadata:
    """
    Plugin identity.

    Module names are unique and compared case-insensitively; ``key`` is
    the normalized form used by the registry.

    Attributes:
        name: Module name as displayed (e.g. 'Reminder')
        description: Short description of module functionality
        version: Semantic version string (e.g., '1.0.0')
        author: Plugin author/maintainer

    Example:
        metadata = PluginMetadata(
            name='Reminder',
            description='State reminders',
        )
    """
    name: str
    description: str = ''
    version: str = '1.0.0'
    author: str = ''

    def __post_init__(self):
        """Validate metadata after initialization."""
        if not self.name or not self.name.replace('_', '').isalnum():
            raise ValueError(
                f"Plugin name '{self.name}' must be alphanumeric "
                "with underscores only"
            )

        version_parts = self.version.split('.')
        if len(version_parts) != 3 or not all(p.isdigit() for p in version_parts):
            raise ValueError(
                f"Plugin version '{self.version}' must be semantic version "
                "(e.g., '1.0.0')"
            )

    @property
    def key(self) -> str:
        """Case-insensitive registry key."""
        return self.name.lower()

    def __str__(self) -> str:
        """String representation for logs."""
        return f"{self.name} v{self.version}"
