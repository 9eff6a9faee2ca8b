"""
Reminders and their alerts.

A reminder is a daily event at a fixed local time of day. Each reminder
owns one root alert (the event itself) and one lead alert per configured
offset, e.g.::

    {
        "name": "Stream",           # Name of reminder
        "repeat": "daily",          # Only daily is supported
        "time": "20:00",            # H, H:M or H:M:S, local time
        "alert": [[1, "hours"],     # Lead alerts before the event
                  [30, "minutes"]]
    }

Alerts are fired by a TaskScheduler and re-arm themselves one day later.
"""

from datetime import datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence
import logging
import re

from lib.plugin import PluginConfigError


ONE_DAY = timedelta(days=1)

TIME_PATTERN = re.compile(r'^(\d{1,2})(?::(\d{1,2})(?::(\d{1,2}))?)?$')

# Offset units (moment-style names) -> timedelta keyword
UNITS = {
    'ms': 'milliseconds', 'millisecond': 'milliseconds', 'milliseconds': 'milliseconds',
    's': 'seconds', 'second': 'seconds', 'seconds': 'seconds',
    'm': 'minutes', 'minute': 'minutes', 'minutes': 'minutes',
    'h': 'hours', 'hour': 'hours', 'hours': 'hours',
    'd': 'days', 'day': 'days', 'days': 'days',
    'w': 'weeks', 'week': 'weeks', 'weeks': 'weeks',
}

SUPPORTED_REPEAT = 'daily'


def parse_time(value: str) -> time:
    """
    Parse a time of day.

    Accepts "H", "H:M" or "H:M:S" with one or two digits per part.
    Out-of-range parts are reset to 0 rather than rejected.

    Raises:
        PluginConfigError: If the string is not in one of those forms
    """
    match = TIME_PATTERN.match(str(value).strip())
    if not match:
        raise PluginConfigError(f"Invalid time of day: {value!r}")

    hour, minute, second = (int(part) if part else 0 for part in match.groups())
    if hour > 23:
        hour = 0
    if minute > 59:
        minute = 0
    if second > 59:
        second = 0

    return time(hour, minute, second)


def parse_offset(offset: Sequence[Any]) -> timedelta:
    """
    Convert an [amount, unit] pair into a timedelta.

    Raises:
        PluginConfigError: If the pair is malformed, the unit unknown,
                           or the amount not positive
    """
    try:
        amount, unit = offset
    except (TypeError, ValueError) as e:
        raise PluginConfigError(f"Alert offset must be [amount, unit]: {offset!r}") from e

    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise PluginConfigError(f"Alert amount must be a number: {amount!r}")

    key = UNITS.get(str(unit).lower())
    if key is None:
        raise PluginConfigError(f"Unknown alert unit: {unit!r}")

    try:
        delta = timedelta(**{key: amount})
    except (OverflowError, ValueError) as e:
        raise PluginConfigError(f"Alert offset out of range: {offset!r}") from e
    if delta <= timedelta(0):
        raise PluginConfigError(f"Alert offset must be positive: {offset!r}")
    return delta


def format_remaining(delta: timedelta) -> str:
    """
    Format a timedelta as a human-readable string.

    Example:
        format_remaining(timedelta(hours=1, minutes=30))  # "1 hour, 30 minutes"
    """
    total_seconds = int(delta.total_seconds())
    if total_seconds <= 0:
        return "less than a second"

    days = total_seconds // 86400
    hours = (total_seconds % 86400) // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    parts = []
    if days > 0:
        parts.append(f"{days} day{'s' if days != 1 else ''}")
    if hours > 0:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes > 0:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if not parts:
        parts.append(f"{seconds} second{'s' if seconds != 1 else ''}")
    return ", ".join(parts)


class Alert:
    """
    One firing point of a reminder.

    The root alert (no offset) marks the event itself; lead alerts fire
    ``offset`` before it. Alerts are scheduler tasks: ``fire()`` notifies
    the reminder and returns the next instant, exactly one day later.

    Attributes:
        reminder: Owning reminder
        offset: (amount, unit) pair as configured, None for the root alert
        delta: Offset as a timedelta (zero for the root alert)
        when: Next fire instant
    """

    def __init__(self, reminder: 'Reminder', when: datetime,
                 offset: Optional[Sequence[Any]] = None):
        self.reminder = reminder
        self.offset = tuple(offset) if offset is not None else None
        self.delta = parse_offset(offset) if offset is not None else timedelta(0)
        try:
            self.when = when - self.delta
        except OverflowError as e:
            raise PluginConfigError(f"Alert offset out of range: {offset!r}") from e

    @property
    def is_root(self) -> bool:
        return self.offset is None

    def arm(self, scheduler, now: datetime) -> None:
        """
        Schedule this alert at its next instant not before ``now``.

        An instant equal to ``now`` is due and fires right away; one
        already in the past moves forward a day at a time.
        """
        while self.when < now:
            self.when += ONE_DAY
        scheduler.schedule(self, self.when)

    def advance(self) -> None:
        self.when += ONE_DAY

    def fire(self, now: datetime) -> datetime:
        self.reminder.notify(self)
        self.advance()
        while self.when < now:
            self.advance()
        return self.when

    def __str__(self) -> str:
        name = self.reminder.name
        if self.is_root:
            return f"The {name} begins now!"
        amount, unit = self.offset
        return f"{amount} {unit} until the {name}!"

    def __repr__(self) -> str:
        label = 'root' if self.is_root else f"{self.offset[0]} {self.offset[1]}"
        return f"<Alert {self.reminder.name} ({label}) at {self.when}>"


class Reminder:
    """
    A daily event with lead alerts.

    Alerts notify the reminder when they fire; the reminder passes the
    alert on to every subscriber.

    Args:
        config: Reminder configuration (name, repeat, time, alert)
        room: Room the reminder belongs to
        logger: Optional logger instance

    Raises:
        PluginConfigError: If name or time is missing or invalid

    Example:
        reminder = Reminder({'name': 'Stream', 'repeat': 'daily',
                             'time': '20:00', 'alert': [[1, 'hours']]}, 'lobby')
        reminder.subscribe(lambda alert: send(str(alert)))
        reminder.setup(scheduler)
    """

    def __init__(self, config: Dict[str, Any], room: str,
                 logger: Optional[logging.Logger] = None):
        if not isinstance(config, dict):
            raise PluginConfigError(f"Reminder config for {room} must be an object")

        name = config.get('name')
        if not name:
            raise PluginConfigError(f"Reminder for {room} has no name")
        if config.get('time') is None:
            raise PluginConfigError(f"Reminder '{name}' has no time")

        self.name = str(name)
        self.room = room
        self.repeat = str(config.get('repeat', SUPPORTED_REPEAT)).lower()
        self.time_of_day = parse_time(config['time'])
        self.offsets: List[Any] = list(config.get('alert', config.get('alerts')) or [])
        self.logger = logger or logging.getLogger(__name__)

        self.root: Optional[Alert] = None
        self.alerts: List[Alert] = []
        self._subscribers: List[Callable[[Alert], None]] = []

    def subscribe(self, callback: Callable[[Alert], None]) -> None:
        """Register a callback invoked with every fired alert."""
        self._subscribers.append(callback)

    def notify(self, alert: Alert) -> None:
        for callback in list(self._subscribers):
            try:
                callback(alert)
            except Exception as e:
                self.logger.exception(f"Error in reminder subscriber for {self.name}: {e}")

    def next_occurrence(self, now: datetime) -> datetime:
        """
        Next instant matching the time of day: today, or tomorrow if
        that time has already passed.
        """
        candidate = now.replace(
            hour=self.time_of_day.hour,
            minute=self.time_of_day.minute,
            second=self.time_of_day.second,
            microsecond=0,
        )
        if candidate < now:
            candidate += ONE_DAY
        return candidate

    def setup(self, scheduler, now: Optional[datetime] = None) -> bool:
        """
        Create and arm the root alert and one alert per valid offset.

        Returns:
            False if the repeat kind is unsupported (nothing is armed)
        """
        if self.repeat != SUPPORTED_REPEAT:
            self.logger.warning(
                f"Only '{SUPPORTED_REPEAT}' repeat for reminders is currently "
                f"supported, ignoring '{self.name}' in {self.room}"
            )
            return False

        if now is None:
            now = scheduler.clock()
        # Event times carry whole seconds only
        now = now.replace(microsecond=0)
        event = self.next_occurrence(now)

        self.root = Alert(self, event)
        self.alerts = []
        for offset in self.offsets:
            try:
                self.alerts.append(Alert(self, event, offset))
            except PluginConfigError as e:
                self.logger.warning(f"Skipping alert for '{self.name}': {e}")

        for alert in self.alerts + [self.root]:
            alert.arm(scheduler, now)

        self.logger.info(
            f"Reminder '{self.name}' armed for {self.room}: next at {self.root.when}, "
            f"{len(self.alerts)} lead alert{'s' if len(self.alerts) != 1 else ''}"
        )
        return True

    def remaining(self, now: datetime) -> timedelta:
        """Time until the event (based on the root alert once armed)."""
        when = self.root.when if self.root else self.next_occurrence(now)
        return when - now

    def __repr__(self) -> str:
        return f"<Reminder {self.name} {self.repeat} {self.time_of_day} ({self.room})>"
