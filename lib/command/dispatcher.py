"""
lib/command/dispatcher.py

Routes recognized command lines through the gate to plugin handlers.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .errors import AuthorizationDenied, CommandDisabled, CommandNotFound
from .gate import CommandGate
from .parser import CommandParser, ParsedCommand


@dataclass
class CommandContext:
    """
    Everything a command handler receives.

    Attributes:
        parsed: Parsed command (name, tail, args)
        message: Full chat line
        sender: Invoking user
        room: Room the command was issued in
        send: Pushes a message into that room's outbound queue
        services: Shared helpers (registry, scheduler, config, ...)
        logger: Logger for the handler
    """
    parsed: ParsedCommand
    message: str
    sender: str
    room: str
    send: Callable[[str], None]
    services: Dict[str, Any] = field(default_factory=dict)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger('plugin'))

    @property
    def tail(self) -> str:
        return self.parsed.tail

    @property
    def args(self):
        return self.parsed.args


class CommandDispatcher:
    """
    Recognizes, authorizes and executes commands.

    Denied invocations are only logged; nothing is sent to the room.
    Exceptions raised by handlers are logged and never propagate.

    Args:
        parser: CommandParser for recognition/parsing
        gate: CommandGate for authorization
        send_factory: Returns the send callable bound to a room
        bot_name: The bot's own user name (its lines are ignored)
        services: Shared helpers exposed to handlers
        logger: Optional logger instance
    """

    def __init__(
        self,
        parser: CommandParser,
        gate: CommandGate,
        send_factory: Callable[[str], Callable[[str], None]],
        bot_name: Optional[str] = None,
        services: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.parser = parser
        self.gate = gate
        self.send_factory = send_factory
        self.bot_name = bot_name
        self.services = services if services is not None else {}
        self.logger = logger or logging.getLogger(__name__)

    def is_command(self, sender: str, text: str) -> bool:
        return self.parser.is_command(sender, text, bot_name=self.bot_name)

    async def dispatch(self, sender: str, message: str, room: str) -> bool:
        """
        Parse, authorize and run a command line.

        Returns:
            True if a handler was executed
        """
        parsed = self.parser.parse(message)

        try:
            command = self.gate.authorize(parsed.name, sender)
        except (CommandNotFound, CommandDisabled) as e:
            self.logger.info(f"Ignoring command from {sender}: {e}")
            return False
        except AuthorizationDenied as e:
            self.logger.warning(f"Refused command from {sender}: {e}")
            return False

        send = self.send_factory(room)
        ctx = CommandContext(
            parsed=parsed,
            message=message,
            sender=sender,
            room=room,
            send=send,
            services=self.services,
            logger=command.plugin.logger,
        )

        self.logger.debug(f"Executing {command.name} for {sender} in {room}")
        try:
            result = command.handler(ctx)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self.logger.exception(f"Error executing command {command.name}: {e}")
            return True

        if result is not None:
            send(str(result))
        return True
