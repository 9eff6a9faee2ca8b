"""
Unit tests for CommandDispatcher.
"""

import logging

import pytest

from lib.command import CommandDispatcher, CommandGate, CommandParser
from lib.plugin import PluginManager


pytestmark = pytest.mark.unit


@pytest.fixture
def sent():
    return []


@pytest.fixture
def calls():
    return []


@pytest.fixture
def dispatcher(plugin_factory, monotonic, sent, calls):
    def echo(ctx):
        calls.append(ctx)
        return f'{ctx.sender} said {ctx.tail}'

    async def later(ctx):
        calls.append(ctx)
        return 'async done'

    def quiet(ctx):
        calls.append(ctx)

    def broken(ctx):
        raise RuntimeError('handler failed')

    def replies_directly(ctx):
        ctx.send('first')
        ctx.send('second')

    registry = PluginManager()
    registry.load([plugin_factory('Demo', {
        'echo': {'handler': echo, 'cooldown': 10},
        'later': {'handler': later},
        'quiet': {'handler': quiet},
        'broken': {'handler': broken},
        'direct': {'handler': replies_directly},
        'secret': {'handler': echo, 'master_only': True},
    })])

    def send_factory(room):
        return lambda text: sent.append((room, text))

    return CommandDispatcher(
        CommandParser('!'),
        CommandGate(registry, master='Owner', clock=monotonic),
        send_factory,
        bot_name='Misaka',
        services={'registry': registry},
    )


class TestDispatch:

    @pytest.mark.asyncio
    async def test_result_is_sent_to_room(self, dispatcher, sent):
        assert await dispatcher.dispatch('alice', '!echo  hello there ', 'lobby')

        assert sent == [('lobby', 'alice said hello there')]

    @pytest.mark.asyncio
    async def test_context_fields(self, dispatcher, calls):
        await dispatcher.dispatch('alice', '!ECHO a b', 'lobby')

        ctx = calls[0]
        assert ctx.parsed.name == 'echo'
        assert ctx.message == '!ECHO a b'
        assert ctx.sender == 'alice'
        assert ctx.room == 'lobby'
        assert ctx.args == ['a', 'b']
        assert 'registry' in ctx.services
        assert ctx.logger.name == 'plugin.demo'

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(self, dispatcher, sent):
        assert await dispatcher.dispatch('alice', '!later', 'lobby')

        assert sent == [('lobby', 'async done')]

    @pytest.mark.asyncio
    async def test_none_result_sends_nothing(self, dispatcher, sent, calls):
        assert await dispatcher.dispatch('alice', '!quiet', 'lobby')

        assert len(calls) == 1
        assert sent == []

    @pytest.mark.asyncio
    async def test_handler_can_send_directly(self, dispatcher, sent):
        await dispatcher.dispatch('alice', '!direct', 'lobby')

        assert sent == [('lobby', 'first'), ('lobby', 'second')]

    @pytest.mark.asyncio
    async def test_handler_exception_is_contained(self, dispatcher, sent, caplog):
        with caplog.at_level(logging.ERROR):
            assert await dispatcher.dispatch('alice', '!broken', 'lobby')

        assert sent == []
        assert 'handler failed' in caplog.text


class TestDenied:

    @pytest.mark.asyncio
    async def test_unknown_command_is_silent(self, dispatcher, sent):
        assert not await dispatcher.dispatch('alice', '!nothing', 'lobby')
        assert sent == []

    @pytest.mark.asyncio
    async def test_master_only_refused_with_warning(self, dispatcher, sent, calls, caplog):
        with caplog.at_level(logging.WARNING):
            assert not await dispatcher.dispatch('mallory', '!secret x', 'lobby')

        assert calls == []
        assert sent == []
        assert 'master-only' in caplog.text

    @pytest.mark.asyncio
    async def test_master_allowed(self, dispatcher, sent):
        assert await dispatcher.dispatch('Owner', '!secret x', 'lobby')
        assert sent == [('lobby', 'Owner said x')]

    @pytest.mark.asyncio
    async def test_cooldown_refused(self, dispatcher, sent, monotonic):
        await dispatcher.dispatch('alice', '!echo one', 'lobby')
        monotonic.advance(3)

        assert not await dispatcher.dispatch('alice', '!echo two', 'lobby')
        assert sent == [('lobby', 'alice said one')]


class TestIsCommand:

    def test_bot_lines_are_not_commands(self, dispatcher):
        assert not dispatcher.is_command('misaka', '!echo hi')
        assert dispatcher.is_command('alice', '!echo hi')
