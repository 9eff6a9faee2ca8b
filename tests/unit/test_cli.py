"""
Unit tests for the misaka command line entry point.
"""

import json
import logging

import pytest

import misaka
from lib.connection import ConnectionError, WebSocketConnection


# The autouse fixture below replaces misaka.setup_logging
setup_logging = misaka.setup_logging


pytestmark = pytest.mark.unit


class FakeBot:
    """Records construction and fails or succeeds on run."""

    instances = []
    error = None

    def __init__(self, config, connection_factory):
        self.config = config
        self.connection_factory = connection_factory
        FakeBot.instances.append(self)

    async def run(self):
        if FakeBot.error:
            raise FakeBot.error


@pytest.fixture(autouse=True)
def fake_bot(monkeypatch):
    FakeBot.instances = []
    FakeBot.error = None
    monkeypatch.setattr(misaka, 'Bot', FakeBot)
    monkeypatch.setattr(misaka, 'setup_logging', lambda config, debug=False: None)
    return FakeBot


@pytest.fixture
def config_path(tmp_path, config_dict):
    def _write(**overrides):
        conf = dict(config_dict, **overrides)
        path = tmp_path / 'misaka.json'
        path.write_text(json.dumps(conf), encoding='utf-8')
        return str(path)
    return _write


class TestParseArgs:

    def test_defaults(self):
        args = misaka.parse_args([])

        assert args.room is None
        assert args.config == misaka.DEFAULT_CONFIG_PATH
        assert args.debug is False

    def test_options(self):
        args = misaka.parse_args(['-r', 'games', '-c', 'other.yaml', '--debug'])

        assert args.room == 'games'
        assert args.config == 'other.yaml'
        assert args.debug is True


class TestMain:

    def test_runs_bot(self, config_path, fake_bot):
        assert misaka.main(['-c', config_path()]) == 0

        bot = fake_bot.instances[0]
        assert bot.config.rooms == ['lobby']

    def test_room_override(self, config_path, fake_bot):
        assert misaka.main(['-c', config_path(), '-r', 'games']) == 0

        assert fake_bot.instances[0].config.rooms == ['games']

    def test_missing_config(self, tmp_path, fake_bot):
        assert misaka.main(['-c', str(tmp_path / 'missing.json')]) == 1
        assert fake_bot.instances == []

    def test_no_rooms(self, config_path, fake_bot):
        assert misaka.main(['-c', config_path(rooms=[])]) == 1
        assert fake_bot.instances == []

    def test_no_domain(self, config_path, fake_bot):
        assert misaka.main(['-c', config_path(server={})]) == 1
        assert fake_bot.instances == []

    def test_connection_error(self, config_path, fake_bot):
        fake_bot.error = ConnectionError('refused')

        assert misaka.main(['-c', config_path()]) == 1

    def test_unknown_log_level(self, config_path, fake_bot, monkeypatch, caplog):
        monkeypatch.setattr(misaka, 'setup_logging', setup_logging)
        monkeypatch.setattr(misaka, 'configure_logger', lambda logger, **kwargs: None)

        assert misaka.main(['-c', config_path(logging={'level': 'chatty'})]) == 1
        assert fake_bot.instances == []
        assert 'Unknown log level' in caplog.text


class TestHelpers:

    def test_connection_factory(self, bot_config):
        factory = misaka.make_connection_factory(bot_config)

        connection = factory('lobby')

        assert isinstance(connection, WebSocketConnection)

    def test_setup_logging_detection_format(self, bot_config, monkeypatch):
        calls = []
        monkeypatch.setattr(misaka, 'configure_logger',
                            lambda logger, **kwargs: calls.append(kwargs))
        bot_config.logging = {'detection': True, 'file': 'misaka.log'}

        setup_logging(bot_config, debug=True)

        assert calls == [{
            'log_file': 'misaka.log',
            'log_format': misaka.DETECTION_LOG_FORMAT,
            'log_level': logging.DEBUG,
        }]

    def test_setup_logging_explicit_format_wins(self, bot_config, monkeypatch):
        calls = []
        monkeypatch.setattr(misaka, 'configure_logger',
                            lambda logger, **kwargs: calls.append(kwargs))
        bot_config.logging = {'detection': True, 'format': '%(message)s', 'level': 'warning'}

        setup_logging(bot_config)

        assert calls[0]['log_format'] == '%(message)s'
        assert calls[0]['log_level'] == logging.WARNING
