"""
lib/command/parser.py

Command recognition and parsing of chat lines.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ParsedCommand:
    """
    A chat line split into command name and argument tail.

    Attributes:
        name: Command name, lowercase, without prefix
        tail: Remaining text with surrounding whitespace trimmed
        args: Tail split on whitespace
    """
    name: str
    tail: str = ''
    args: List[str] = field(default_factory=list)


class CommandParser:
    """
    Recognizes and parses prefixed command lines.

    Args:
        prefix: Command prefix (default: '!')

    Example:
        parser = CommandParser('!')
        parser.is_command('alice', '!ping', bot_name='Misaka')  # True
        parser.parse('!derpi cute, safe')  # name='derpi', tail='cute, safe'
    """

    def __init__(self, prefix: str = '!'):
        if not prefix:
            raise ValueError("Command prefix must not be empty")
        self.prefix = prefix

    def is_command(self, sender: str, text: str,
                   bot_name: Optional[str] = None) -> bool:
        """
        Check whether a chat line is a command invocation.

        Lines sent by the bot itself never count, so its own replies
        cannot trigger further commands.
        """
        if not text or not text.strip().startswith(self.prefix):
            return False
        if bot_name and sender and sender.lower() == bot_name.lower():
            return False
        return True

    def parse(self, text: str) -> ParsedCommand:
        """Split a command line into name and tail."""
        body = text.strip()
        if body.startswith(self.prefix):
            body = body[len(self.prefix):]

        parts = body.strip().split(maxsplit=1)
        if not parts:
            return ParsedCommand(name='')

        tail = parts[1].strip() if len(parts) > 1 else ''
        return ParsedCommand(name=parts[0].lower(), tail=tail, args=tail.split())
