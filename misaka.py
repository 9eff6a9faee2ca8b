#!/usr/bin/env python3
"""
Misaka - chat room bot

Loads the configuration, joins the configured room(s) and runs until
interrupted. All chat features live in plugins.

usage: misaka.py [-h] [-r ROOM] [-c CONFIG] [--debug]
"""

import argparse
import asyncio
import logging
import sys

from common.config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_LOG_FORMAT,
    ConfigError,
    configure_logger,
    load_config,
)
from lib.bot import Bot
from lib.connection import ConnectionError, WebSocketConnection


logger = logging.getLogger('misaka')

# Adds the emitting file and line to every record
DETECTION_LOG_FORMAT = (
    '[%(asctime).19s] [%(name)s] [%(levelname)s] '
    '[%(filename)s:%(lineno)d] %(message)s'
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='misaka',
        description='Misaka - chat room bot',
    )
    parser.add_argument('-r', '--room', help='room to join')
    parser.add_argument('-c', '--config', default=DEFAULT_CONFIG_PATH,
                        help=f'config file (default: {DEFAULT_CONFIG_PATH})')
    parser.add_argument('--debug', action='store_true',
                        help='enable debug logger')
    return parser.parse_args(argv)


def setup_logging(config, debug=False):
    """Configure the root logger from the config's logging section."""
    settings = config.logging
    log_format = settings.get('format')
    if log_format is None:
        log_format = DETECTION_LOG_FORMAT if settings.get('detection') else DEFAULT_LOG_FORMAT

    level = logging.DEBUG if debug else config.log_level
    configure_logger(logging.getLogger(), log_file=settings.get('file'),
                     log_format=log_format, log_level=level)


def make_connection_factory(config):
    """Build one WebSocketConnection per room from the config."""
    def factory(room):
        return WebSocketConnection(
            room,
            domain=config.domain,
            username=config.username,
            password=config.password,
            color=config.color,
            secure=config.secure,
        )
    return factory


async def run(bot):
    try:
        await bot.run()
    except ConnectionError as e:
        logger.error('Error connecting to room: %s', e)
        return 1
    return 0


def main(argv=None):
    """Entry point"""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error("Couldn't read config file, aborting: %s", e)
        return 1
    logger.debug('Loaded config from %s', args.config)

    try:
        setup_logging(config, debug=args.debug)
    except ConfigError as e:
        logger.error("Couldn't read config file, aborting: %s", e)
        return 1

    if args.room:
        config.set_room(args.room)

    if not config.rooms:
        logger.error('No room to join specified, aborting')
        return 1

    if not config.domain:
        logger.error('No server domain configured, aborting')
        return 1

    bot = Bot(config, make_connection_factory(config))
    try:
        return asyncio.run(run(bot))
    except KeyboardInterrupt:
        logger.info('Received shutdown signal')
        return 0


if __name__ == '__main__':
    sys.exit(main())
