"""
lib/bot.py

Bot orchestrator: rooms, transports, outbound queues, plugins and commands.
"""

import asyncio
import functools
import logging
from datetime import datetime
from typing import Callable, Dict, Optional, Set

from .command import CommandDispatcher, CommandGate, CommandParser
from .connection import ConnectionAdapter
from .message_queue import MessageQueue
from .plugin import LifecycleContext, PluginManager
from .scheduler import TaskScheduler


class Room:
    """
    A joined chat room.

    Attributes:
        name: Room name
        connection: Transport for this room
        queue: Outbound message queue
        users: Names of users currently in the room
    """

    def __init__(self, name: str, connection: ConnectionAdapter, queue: MessageQueue):
        self.name = name
        self.connection = connection
        self.queue = queue
        self.users: Set[str] = set()

    def __repr__(self) -> str:
        return f"<Room {self.name} ({len(self.users)} users)>"


class Bot:
    """Chat room bot.

    Wires one transport and one throttled outbound queue per room to a
    shared plugin registry, command pipeline and alert scheduler.

    Attributes
    ----------
    config : `common.config.BotConfig`
        Bot configuration.
    connection_factory : `function` (room)
        Creates the transport for a room.
    registry : `lib.plugin.PluginManager`
        Loaded modules and their commands.
    scheduler : `lib.scheduler.TaskScheduler`
        Runs reminder alerts.
    rooms : `dict` of (`str`, `Room`)
        Joined rooms.
    """
    logger = logging.getLogger(__name__)

    def __init__(self, config,
                 connection_factory: Callable[[str], ConnectionAdapter],
                 scheduler: Optional[TaskScheduler] = None,
                 console: Optional[Callable[[str], None]] = print):
        self.config = config
        self.connection_factory = connection_factory
        self.console = console
        self.rooms: Dict[str, Room] = {}

        self.registry = PluginManager(config.modules)
        self.scheduler = scheduler or TaskScheduler()
        self.parser = CommandParser(config.command_prefix)
        self.gate = CommandGate(self.registry, master=config.master)
        self.services = {
            'bot': self,
            'config': config,
            'registry': self.registry,
            'scheduler': self.scheduler,
            'prefix': config.command_prefix,
        }
        self.dispatcher = CommandDispatcher(
            self.parser,
            self.gate,
            self.sender_for,
            bot_name=config.username,
            services=self.services,
        )

        self._stopped = asyncio.Event()

    # =================================================================
    # Lifecycle
    # =================================================================

    async def start(self):
        """Load plugins, start the scheduler and join every configured room.

        Raises
        ------
        lib.connection.ConnectionError
            If a room's transport cannot connect.
        """
        self.registry.load(self.config.plugins)
        await self.scheduler.start()

        for room in self.config.rooms:
            await self.join(room)

    async def stop(self):
        """Leave every room and stop the scheduler."""
        for room in list(self.rooms):
            await self.leave(room)
        await self.scheduler.stop()
        self._stopped.set()

    async def run(self):
        """Start and keep running until stopped or cancelled."""
        try:
            await self.start()
            await self._stopped.wait()
        except asyncio.CancelledError:
            self.logger.info('cancelled')
        finally:
            await self.stop()

    async def join(self, name: str) -> Room:
        """Connect to a room and announce the join to every plugin."""
        if name in self.rooms:
            self.logger.warning('already in room %s', name)
            return self.rooms[name]

        connection = self.connection_factory(name)
        queue = MessageQueue(
            connection.send_message,
            wait=self.config.message_wait,
            room=name,
        )
        room = Room(name, connection, queue)

        for attr in dir(self):
            if attr.startswith('_on_'):
                connection.on_event(attr[4:], functools.partial(getattr(self, attr), room))

        self.rooms[name] = room
        queue.start()
        try:
            await connection.connect()
        except Exception:
            await queue.stop()
            del self.rooms[name]
            raise

        queue.set_connected(connection.is_connected)
        self.logger.info('joined room %s', name)

        await self.registry.broadcast(
            'join', functools.partial(self._lifecycle_context, name))
        return room

    async def leave(self, name: str) -> None:
        """Disconnect from a room, discarding undelivered messages."""
        room = self.rooms.pop(name, None)
        if room is None:
            return

        await room.queue.stop()
        dropped = room.queue.drain()
        if dropped:
            self.logger.info('discarded %d pending messages for %s', len(dropped), name)

        try:
            await room.connection.disconnect()
        except Exception as ex:
            self.logger.error('disconnect error: %r', ex)

    def _lifecycle_context(self, room: str, plugin) -> LifecycleContext:
        return LifecycleContext(
            room=room,
            send=self.sender_for(room),
            config=plugin.config,
            services=self.services,
            logger=plugin.logger,
        )

    # =================================================================
    # Sending
    # =================================================================

    def send(self, room: str, text: str) -> None:
        """Queue a message for a room."""
        joined = self.rooms.get(room)
        if joined is None:
            self.logger.warning('cannot send to %s: room not joined', room)
            return
        joined.queue.push(text)

    def sender_for(self, room: str) -> Callable[[str], None]:
        """Send callable bound to one room."""
        return functools.partial(self.send, room)

    def echo(self, text: str) -> None:
        """Echo a line to the console with the local time."""
        if self.console:
            self.console(f"[{datetime.now().strftime('%H:%M:%S')}] {text}")

    # =================================================================
    # Transport Events
    # =================================================================

    def _on_connect(self, room, _, data):
        room.queue.set_connected(True)
        self.logger.info('connected to %s', room.name)

    def _on_disconnect(self, room, _, data):
        room.queue.set_connected(False)
        self.logger.warning('disconnected from %s', room.name)

    async def _on_message(self, room, _, data):
        if data.get('history'):
            return

        username = data.get('user', '')
        msg = data.get('content', '')
        self.echo(f'{username}: {msg}')

        if self.dispatcher.is_command(username, msg):
            await self.dispatcher.dispatch(username, msg, room.name)

    def _on_clear_chat(self, room, _, data):
        self.echo('*** Room chat has been cleared by admin ***')

    def _on_history(self, room, _, data):
        if not self.console:
            return
        self.console('--- Begin History ---')
        for message in data.get('messages', []):
            self.console(f"{message.get('user', '')}: {message.get('content', '')}")
        self.console('--- End History ---')

    def _on_user_list(self, room, _, data):
        room.users = set(data.get('users', []))
        self.logger.info('userlist: %s users', len(room.users))
        if self.console:
            self.console('Users in room: ' + ', '.join(data.get('users', [])))

    def _on_user_join(self, room, _, data):
        username = data.get('user', '')
        room.users.add(username)
        if self.console:
            self.console(f'*** {username} has joined the room ***')

    def _on_user_change(self, room, _, data):
        if self.console:
            self.console(f"*** {data.get('user', '')} has changed in some way ***")

    def _on_user_leave(self, room, _, data):
        username = data.get('user', '')
        room.users.discard(username)
        if self.console:
            self.console(f'*** {username} has left the room ***')
