from .bot import Bot, Room
from .command import CommandDispatcher, CommandGate, CommandParser
from .connection import ConnectionAdapter, WebSocketConnection
from .message_queue import MessageQueue
from .plugin import Plugin, PluginManager
from .scheduler import TaskScheduler

__version__ = '1.0.0'
