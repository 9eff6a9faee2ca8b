"""
Global pytest configuration and fixtures for Misaka tests

Provides:
- Fake room connection
- Fake clocks (monotonic and wall-clock)
- Plugin factory
- Test configuration
"""

from datetime import datetime, timedelta
from typing import List

import pytest

from common.config import BotConfig
from lib.connection import ConnectionAdapter, ConnectionError, NotConnectedError, SendError
from lib.plugin import Plugin, PluginMetadata


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "plugin: Plugin tests")
    config.addinivalue_line("markers", "core: Core infrastructure tests")


# ============================================================================
# Fake Connection
# ============================================================================

class FakeConnection(ConnectionAdapter):
    """
    In-memory connection for testing.

    Records sent messages and lets tests inject normalized events
    with ``receive()``.
    """

    def __init__(self, room: str = 'lobby', fail_connect: bool = False):
        super().__init__(room)
        self.sent: List[str] = []
        self.fail_connect = fail_connect
        self.fail_send = False
        self.connect_count = 0
        self.disconnect_count = 0

    async def connect(self) -> None:
        self.connect_count += 1
        if self.fail_connect:
            raise ConnectionError(f"Cannot reach {self.room}")
        self._is_connected = True
        await self._emit('connect', {})

    async def disconnect(self) -> None:
        self.disconnect_count += 1
        if self._is_connected:
            self._is_connected = False
            await self._emit('disconnect', {})

    async def send_message(self, content: str) -> None:
        if not self._is_connected:
            raise NotConnectedError("Not connected")
        if self.fail_send:
            raise SendError("Send failed")
        self.sent.append(content)

    async def receive(self, event: str, data: dict) -> None:
        """Simulate an inbound normalized event."""
        await self._emit(event, data)

    async def say(self, user: str, content: str, history: bool = False) -> None:
        await self.receive('message', {'user': user, 'content': content, 'history': history})


@pytest.fixture
def fake_connection():
    return FakeConnection()


@pytest.fixture
def connections():
    """Factory producing one FakeConnection per room.

    Created connections are kept in ``factory.created``; rooms listed in
    ``factory.failing`` refuse to connect.
    """
    created = {}

    def factory(room):
        created[room] = FakeConnection(room, fail_connect=room in factory.failing)
        return created[room]

    factory.created = created
    factory.failing = set()
    return factory


# ============================================================================
# Clocks
# ============================================================================

class FakeMonotonic:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeClock:
    """Manually advanced wall clock (naive local datetimes)."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, when: datetime) -> None:
        self.now = when


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 19, 0, 0))


# ============================================================================
# Plugins
# ============================================================================

def make_plugin(name='Test', commands=None, setup_error=None):
    """
    Build a Plugin subclass on the fly.

    Args:
        name: Module name
        commands: Mapping of command name -> dict of add_command kwargs
                  (``handler`` defaults to one returning ``'<name> ok'``)
        setup_error: Exception raised from setup(), if any
    """
    commands = commands or {}

    class _Plugin(Plugin):
        events = None

        @property
        def metadata(self):
            return PluginMetadata(name=name, description=f'{name} test module')

        def setup(self):
            if setup_error is not None:
                raise setup_error
            for command_name, options in commands.items():
                options = dict(options)
                handler = options.pop('handler', None)
                if handler is None:
                    handler = (lambda n: lambda ctx: f'{n} ok')(command_name)
                self.add_command(command_name, handler, **options)

        async def on_lifecycle_event(self, event, context):
            if self.events is None:
                self.events = []
            self.events.append((event, context))

    _Plugin.__name__ = f'{name}Plugin'
    return _Plugin


@pytest.fixture
def plugin_factory():
    return make_plugin


# ============================================================================
# Configuration
# ============================================================================

@pytest.fixture
def config_dict():
    return {
        'version': '2.0',
        'username': 'Misaka',
        'master': 'Owner',
        'rooms': ['lobby'],
        'command_prefix': '!',
        'message_wait': 0,
        'plugins': ['plugins.admin'],
        'modules': {},
        'server': {'domain': 'chat.example.com', 'secure': True},
    }


@pytest.fixture
def bot_config(config_dict):
    return BotConfig(config_dict)
