"""
Integration tests: reminder alerts flowing from the scheduler through
the bot's room queue to the transport.
"""

import asyncio

import pytest
import pytest_asyncio

from common.config import BotConfig
from lib.bot import Bot
from lib.scheduler import TaskScheduler


pytestmark = pytest.mark.core


async def wait_for_sent(connection, count, timeout=2.0):
    async def _poll():
        while len(connection.sent) < count:
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def reminder_config(config_dict):
    config_dict['plugins'] = ['plugins.admin', 'plugins.reminder']
    config_dict['modules'] = {
        'reminder': {
            'lobby': {
                'name': 'Stream',
                'repeat': 'daily',
                'time': '20:00',
                'alert': [[1, 'hours'], [30, 'minutes']],
            }
        }
    }
    return BotConfig(config_dict)


@pytest_asyncio.fixture
async def bot(reminder_config, connections, clock):
    bot = Bot(reminder_config, connections,
              scheduler=TaskScheduler(clock=clock, check_interval=0.01),
              console=None)
    await bot.start()
    yield bot
    await bot.stop()


class TestReminderDelivery:

    @pytest.mark.asyncio
    async def test_due_alert_is_sent_after_join(self, bot, connections):
        lobby = connections.created['lobby']

        await wait_for_sent(lobby, 1)

        assert lobby.sent == ['1 hours until the Stream!']

    @pytest.mark.asyncio
    async def test_alerts_follow_the_clock(self, bot, connections, clock):
        lobby = connections.created['lobby']
        await wait_for_sent(lobby, 1)

        clock.advance(minutes=30)
        await wait_for_sent(lobby, 2)
        clock.advance(minutes=30)
        await wait_for_sent(lobby, 3)

        assert lobby.sent == [
            '1 hours until the Stream!',
            '30 minutes until the Stream!',
            'The Stream begins now!',
        ]

    @pytest.mark.asyncio
    async def test_reminder_command(self, bot, connections, clock):
        lobby = connections.created['lobby']
        await wait_for_sent(lobby, 1)

        clock.advance(minutes=15)
        await lobby.say('alice', '!reminder')
        await wait_for_sent(lobby, 2)

        assert lobby.sent[-1] == 'Stream begins in 45 minutes'

    @pytest.mark.asyncio
    async def test_disabled_module_sends_no_alerts(self, bot, connections, clock):
        lobby = connections.created['lobby']
        await wait_for_sent(lobby, 1)

        await lobby.say('Owner', '!disable reminder')
        await wait_for_sent(lobby, 2)
        assert lobby.sent[-1] == 'Reminder disabled'

        clock.advance(minutes=30)
        await asyncio.sleep(0.1)

        assert len(lobby.sent) == 2
