"""Configuration and logging helpers for Misaka."""
from .config import BotConfig, ConfigError, configure_logger, load_config

__all__ = ['BotConfig', 'ConfigError', 'load_config', 'configure_logger']
