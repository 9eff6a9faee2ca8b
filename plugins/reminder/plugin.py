"""
plugins/reminder/plugin.py

Reminder plugin: daily event reminders announced in the room.

Configuration (module slice, one reminder per room):
    {
        "lobby": {
            "name": "Stream",
            "repeat": "daily",
            "time": "20:00",
            "alert": [[1, "hours"], [30, "minutes"]]
        }
    }

Commands:
    !reminder - Time left until the room's reminders
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional

from lib.plugin import LifecycleContext, Plugin, PluginConfigError, PluginMetadata

from .reminder import Alert, Reminder, format_remaining


class ReminderPlugin(Plugin):
    """
    Announces configured daily reminders.

    Reminders are armed when the bot joins a room. Alerts keep firing
    while the plugin is disabled but nothing is sent to the room.
    """

    @property
    def metadata(self) -> PluginMetadata:
        return PluginMetadata(
            name='Reminder',
            description='State reminders',
            version='1.1.0',
        )

    def __init__(self, config=None, logger=None):
        super().__init__(config, logger)
        self.reminders: Dict[str, List[Reminder]] = {}
        self._clock: Callable[[], datetime] = datetime.now

    def setup(self) -> None:
        self.add_command(
            'reminder',
            self.on_reminder,
            cooldown=10,
            description='Time left until the next reminder',
        )

    async def on_lifecycle_event(self, event: str, context: LifecycleContext) -> None:
        if event == 'join':
            self.on_join(context)

    def on_join(self, context: LifecycleContext) -> None:
        """Create and arm the reminder configured for the joined room."""
        room = context.room
        config = (context.config or {}).get(room)
        if not config:
            return

        if room in self.reminders:
            self.logger.debug(f"Reminders already armed for {room}")
            return

        scheduler = context.services.get('scheduler')
        if scheduler is None:
            self.logger.error("No scheduler available, reminders disabled")
            return
        self._clock = scheduler.clock

        try:
            reminder = Reminder(config, room, logger=self.logger)
        except PluginConfigError as e:
            self.logger.warning(f"Invalid reminder config for {room}: {e}")
            return

        reminder.subscribe(self._make_sender(context.send))
        if reminder.setup(scheduler):
            self.reminders[room] = [reminder]

    def _make_sender(self, send: Callable[[str], None]) -> Callable[[Alert], None]:
        def on_alert(alert: Alert) -> None:
            if self.is_enabled:
                send(str(alert))
        return on_alert

    def on_reminder(self, ctx) -> Optional[str]:
        reminders = self.reminders.get(ctx.room)
        if not reminders:
            return None

        now = self._clock()
        return '; '.join(
            f"{r.name} begins in {format_remaining(r.remaining(now))}"
            for r in reminders
        )
