"""
plugins/reminder/__init__.py

Reminder plugin for Misaka.

Provides daily event reminders with:
- Time-of-day events ("H", "H:M" or "H:M:S", local time)
- Lead alerts before the event ([amount, unit] offsets)
- Automatic daily re-arming
- A !reminder command showing the time left
"""

from .plugin import ReminderPlugin
from .reminder import Alert, Reminder, format_remaining, parse_offset, parse_time

__all__ = [
    "Alert",
    "Reminder",
    "ReminderPlugin",
    "format_remaining",
    "parse_offset",
    "parse_time",
]
