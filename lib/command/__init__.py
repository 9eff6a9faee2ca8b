"""
lib/command

Command pipeline: recognition, authorization and dispatch.
"""

from .dispatcher import CommandContext, CommandDispatcher
from .errors import (
    AuthorizationDenied,
    CommandDisabled,
    CommandNotFound,
    OnCooldown,
    Unauthorized,
)
from .gate import CommandGate
from .parser import CommandParser, ParsedCommand

__all__ = [
    'CommandContext',
    'CommandDispatcher',
    'CommandGate',
    'CommandParser',
    'ParsedCommand',
    'AuthorizationDenied',
    'CommandNotFound',
    'CommandDisabled',
    'Unauthorized',
    'OnCooldown',
]
