#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import json
import logging
from typing import Any, Dict, List, Optional

import yaml
from packaging import version

DEFAULT_CONFIG_PATH = 'config/misaka.json'

DEFAULT_PLUGINS = ['plugins.admin', 'plugins.reminder']

DEFAULT_LOG_FORMAT = '[%(asctime).19s] [%(name)s] [%(levelname)s] %(message)s'


class ConfigError(Exception):
    """Configuration file is missing, unreadable or malformed."""


class RobustFileHandler(logging.FileHandler):
    """FileHandler that gracefully handles flush errors on Windows"""

    def flush(self):
        """Flush the stream, catching OSError on Windows file handles"""
        try:
            super().flush()
        except OSError as e:
            # EINVAL when the Windows file handle is in an inconsistent state
            if e.errno != 22:
                raise


def configure_logger(logger,
                     log_file=None,
                     log_format=None,
                     log_level=logging.INFO):
    """Configure a logger with a file or stream handler

    Args:
        logger: Logger instance or logger name string
        log_file: File path string or file-like object (None for stderr)
        log_format: Format string for log messages
        log_level: Logging level (e.g., logging.INFO, logging.DEBUG)

    Returns:
        Configured logger instance
    """
    if isinstance(log_file, str):
        handler = RobustFileHandler(
            log_file,
            mode='a',
            encoding='utf-8',
            errors='replace'
        )
    else:
        handler = logging.StreamHandler(log_file)  # Default to stderr if None

    formatter = logging.Formatter(log_format or DEFAULT_LOG_FORMAT)

    if isinstance(logger, str):
        logger = logging.getLogger(logger)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(log_level)

    return logger


def parse_log_level(value, default=logging.INFO):
    """Convert a level name ('info', 'DEBUG') or number to a logging constant."""
    if value is None:
        return default
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    if not isinstance(level, int):
        raise ConfigError(f'Unknown log level: {value!r}')
    return level


class BotConfig:
    """Parsed bot configuration.

    Attributes:
        version: Config format version string
        username: Bot account name
        password: Bot account password (None for guest)
        color: Chat color (optional)
        master: Master user allowed to run trusted commands (None = nobody)
        rooms: Rooms to join
        command_prefix: Command prefix
        message_wait: Seconds between outbound messages per room
        plugins: Plugin sources, in load order
        modules: Per-module configuration slices keyed by module name
        logging: Logging settings (level, file, format, detection)
        server: Server settings (domain, secure)
        path: File the configuration was loaded from
    """

    def __init__(self, conf: Optional[Dict[str, Any]] = None, path: Optional[str] = None):
        conf = conf or {}
        if not isinstance(conf, dict):
            raise ConfigError('Configuration must be a mapping')

        self.path = path
        self.version = str(conf.get('version', '1.0'))

        try:
            is_v2 = version.parse(self.version) >= version.parse('2.0')
        except version.InvalidVersion as e:
            raise ConfigError(f'Invalid config version: {self.version!r}') from e

        if is_v2:
            rooms = conf.get('rooms', [])
        else:
            rooms = conf.get('room')
        if isinstance(rooms, str):
            rooms = [rooms]
        self.rooms: List[str] = [str(r) for r in rooms or []]

        self.username: Optional[str] = conf.get('username')
        self.password: Optional[str] = conf.get('password')
        self.color: Optional[str] = conf.get('color')
        self.master: Optional[str] = conf.get('master')
        self.command_prefix: str = conf.get('command_prefix', '!')

        try:
            self.message_wait = float(conf.get('message_wait', 1.0))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid message_wait: {conf.get('message_wait')!r}") from e
        if self.message_wait < 0:
            raise ConfigError(f'message_wait must not be negative: {self.message_wait}')

        self.plugins: List[Any] = list(conf.get('plugins', DEFAULT_PLUGINS))

        modules = conf.get('modules', {}) or {}
        if not isinstance(modules, dict):
            raise ConfigError('modules must be a mapping')
        self.modules: Dict[str, Any] = {str(k).lower(): v for k, v in modules.items()}

        self.logging: Dict[str, Any] = dict(conf.get('logging', {}) or {})
        self.server: Dict[str, Any] = dict(conf.get('server', {}) or {})

    @property
    def domain(self) -> Optional[str]:
        return self.server.get('domain')

    @property
    def secure(self) -> bool:
        return bool(self.server.get('secure', True))

    @property
    def log_level(self):
        return parse_log_level(self.logging.get('level'))

    def get_module_config(self, name: str) -> Dict[str, Any]:
        """Configuration slice for a module (case-insensitive), empty if none."""
        return self.modules.get(name.lower(), {})

    def set_room(self, name: str) -> None:
        """Override the configured rooms with a single room."""
        self.rooms = [name]

    def __repr__(self) -> str:
        return f'<BotConfig {self.username} rooms={self.rooms}>'


def load_config(path: str = DEFAULT_CONFIG_PATH) -> BotConfig:
    """Load and parse configuration from a JSON or YAML file

    The format is chosen from the file extension (.yaml/.yml for YAML,
    JSON otherwise).

    Returns:
        Parsed BotConfig

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(path, 'r', encoding='utf-8') as fp:
            if path.endswith(('.yaml', '.yml')):
                conf = yaml.safe_load(fp)
            else:
                conf = json.load(fp)
    except OSError as e:
        raise ConfigError(f'Cannot read config file {path}: {e}') from e
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f'Cannot parse config file {path}: {e}') from e

    return BotConfig(conf, path=path)
