"""
tests/test_reminder_plugin.py

Tests for the ReminderPlugin: arming on join and the !reminder command.
"""

from types import SimpleNamespace

import pytest

from lib.plugin import LifecycleContext, PluginManager
from plugins.reminder import ReminderPlugin


pytestmark = pytest.mark.plugin


@pytest.fixture
def sent():
    return []


@pytest.fixture
def plugin(stream_config):
    manager = PluginManager({'reminder': {'lobby': stream_config}})
    manager.load([ReminderPlugin])
    return manager.get('reminder')


def join_context(plugin, scheduler, sent, room='lobby'):
    return LifecycleContext(
        room=room,
        send=sent.append,
        config=plugin.config,
        services={'scheduler': scheduler},
        logger=plugin.logger,
    )


class TestPluginSetup:

    def test_metadata(self, plugin):
        assert plugin.metadata.name == 'Reminder'
        assert plugin.metadata.description == 'State reminders'

    def test_declares_reminder_command(self, plugin):
        command = plugin.commands[0]

        assert command.name == 'reminder'
        assert command.cooldown == 10
        assert not command.master_only


class TestJoin:

    @pytest.mark.asyncio
    async def test_join_arms_room_reminder(self, plugin, scheduler, sent):
        await plugin.on_lifecycle_event('join', join_context(plugin, scheduler, sent))

        assert [r.name for r in plugin.reminders['lobby']] == ['Stream']
        assert scheduler.pending_count == 3

        await scheduler.run_pending()
        assert sent == ["1 hours until the Stream!"]

    @pytest.mark.asyncio
    async def test_other_events_ignored(self, plugin, scheduler, sent):
        await plugin.on_lifecycle_event('leave', join_context(plugin, scheduler, sent))

        assert plugin.reminders == {}

    @pytest.mark.asyncio
    async def test_room_without_config_ignored(self, plugin, scheduler, sent):
        await plugin.on_lifecycle_event('join', join_context(plugin, scheduler, sent, 'games'))

        assert plugin.reminders == {}
        assert scheduler.pending_count == 0

    @pytest.mark.asyncio
    async def test_second_join_does_not_rearm(self, plugin, scheduler, sent):
        context = join_context(plugin, scheduler, sent)
        await plugin.on_lifecycle_event('join', context)
        await plugin.on_lifecycle_event('join', context)

        assert len(plugin.reminders['lobby']) == 1
        assert scheduler.pending_count == 3

    @pytest.mark.asyncio
    async def test_invalid_config_logged(self, scheduler, sent, caplog):
        manager = PluginManager({'reminder': {'lobby': {'name': 'Broken'}}})
        manager.load([ReminderPlugin])
        plugin = manager.get('reminder')

        await plugin.on_lifecycle_event('join', join_context(plugin, scheduler, sent))

        assert plugin.reminders == {}
        assert 'Invalid reminder config' in caplog.text

    @pytest.mark.asyncio
    async def test_unsupported_repeat_not_armed(self, stream_config, scheduler, sent):
        stream_config['repeat'] = 'monthly'
        plugin = ReminderPlugin({'lobby': stream_config})

        await plugin.on_lifecycle_event('join', join_context(plugin, scheduler, sent))

        assert plugin.reminders == {}
        assert scheduler.pending_count == 0

    @pytest.mark.asyncio
    async def test_disabled_plugin_stays_quiet(self, plugin, scheduler, sent, clock):
        await plugin.on_lifecycle_event('join', join_context(plugin, scheduler, sent))
        plugin.disable()

        clock.advance(hours=1)
        await scheduler.run_pending()

        assert sent == []
        assert scheduler.pending_count == 3

        plugin.enable()
        clock.advance(days=1)
        await scheduler.run_pending()

        assert len(sent) == 3

    @pytest.mark.asyncio
    async def test_broadcast_from_manager(self, stream_config, scheduler, sent):
        manager = PluginManager({'Reminder': {'lobby': stream_config}})
        manager.load([ReminderPlugin])

        handled = await manager.broadcast(
            'join', lambda plugin: join_context(plugin, scheduler, sent))

        assert handled == 1
        assert 'lobby' in manager.get('reminder').reminders


class TestReminderCommand:

    @pytest.mark.asyncio
    async def test_time_left(self, plugin, scheduler, sent, clock):
        await plugin.on_lifecycle_event('join', join_context(plugin, scheduler, sent))
        clock.advance(minutes=30)

        reply = plugin.on_reminder(SimpleNamespace(room='lobby'))

        assert reply == 'Stream begins in 30 minutes'

    def test_no_reminders_in_room(self, plugin):
        assert plugin.on_reminder(SimpleNamespace(room='lobby')) is None
