"""
Websocket room connection.

Minimal socket.io-style client: packets are ``42["event", data]`` text
frames. Raw room events are normalized to the names documented in
``lib.connection.adapter``.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import websockets

from .adapter import ConnectionAdapter
from .errors import ConnectionError, NotConnectedError, SendError


class WebSocketConnection(ConnectionAdapter):
    """
    Websocket implementation of ConnectionAdapter.

    Attributes:
        domain: Chat server domain (e.g., "chat.example.com")
        username: Bot username
        password: Bot password (None for guest)
        color: Chat color sent with messages (optional)
        secure: Use WSS (True) or WS (False)

    Example:
        >>> conn = WebSocketConnection('lobby', 'chat.example.com', 'Misaka')
        >>> await conn.connect()
        >>> await conn.send_message("Hello!")
        >>> await conn.disconnect()
    """

    # Raw event name -> normalized event name
    EVENTS = {
        'userMsg': 'message',
        'clearChat': 'clear_chat',
        'history': 'history',
        'userList': 'user_list',
        'userAdded': 'user_join',
        'userChanged': 'user_change',
        'userRemoved': 'user_leave',
    }

    def __init__(
        self,
        room: str,
        domain: str,
        username: str,
        password: Optional[str] = None,
        color: Optional[str] = None,
        secure: bool = True,
        connect_timeout: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(room, logger or logging.getLogger(__name__))
        self.domain = domain
        self.username = username
        self.password = password
        self.color = color
        self.secure = secure
        self.connect_timeout = connect_timeout

        self._ws = None
        self._receive_task: Optional[asyncio.Task] = None

    @property
    def url(self) -> str:
        protocol = "wss" if self.secure else "ws"
        return f"{protocol}://{self.domain}/socket.io/?EIO=3&transport=websocket"

    async def connect(self) -> None:
        """
        Connect, join the room and log in.

        Raises:
            ConnectionError: If the server cannot be reached
        """
        if self._is_connected:
            self.logger.warning(f"Already connected to {self.room}")
            return

        try:
            self.logger.info(f"Connecting to {self.url}")
            self._ws = await websockets.connect(self.url)

            # Wait for initial connection packet
            msg = await asyncio.wait_for(self._ws.recv(), timeout=self.connect_timeout)
            self.logger.debug(f"Received initial packet: {msg}")

            await self._ws.send(self.encode_packet("joinChannel", {"name": self.room}))
            login = {"name": self.username}
            if self.password:
                login["pw"] = self.password
            await self._ws.send(self.encode_packet("login", login))

        except Exception as e:
            self._ws = None
            raise ConnectionError(f"Failed to connect to {self.room}: {e}") from e

        self._is_connected = True
        self._receive_task = asyncio.create_task(self._receive_loop())
        self.logger.info(f"Connected to room: {self.room}")
        await self._emit('connect', {})

    async def disconnect(self) -> None:
        """Disconnect from the room."""
        if self._receive_task:
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None

        if self._ws:
            try:
                await self._ws.close()
            except Exception as e:
                self.logger.debug(f"Error closing websocket: {e}")
            self._ws = None

        if self._is_connected:
            self._is_connected = False
            self.logger.info(f"Disconnected from room: {self.room}")
            await self._emit('disconnect', {})

    async def send_message(self, content: str) -> None:
        if not self._is_connected or not self._ws:
            raise NotConnectedError(f"Not connected to {self.room}")

        data: Dict[str, Any] = {"msg": content}
        if self.color:
            data["color"] = self.color

        try:
            await self._ws.send(self.encode_packet("chatMsg", data))
        except Exception as e:
            raise SendError(f"Failed to send to {self.room}: {e}") from e
        self.logger.debug(f"Sent chat message: {content}")

    async def _receive_loop(self) -> None:
        """Background loop to receive and process websocket messages."""
        while self._is_connected:
            try:
                msg = await self._ws.recv()
                await self.handle_raw(msg)

            except asyncio.CancelledError:
                raise
            except websockets.exceptions.ConnectionClosed:
                self.logger.warning("Websocket connection closed")
                self._is_connected = False
                await self._emit('disconnect', {})
                break
            except Exception as e:
                self.logger.error(f"Error in receive loop: {e}")
                await asyncio.sleep(1.0)

    async def handle_raw(self, raw_message: str) -> None:
        """
        Parse one raw frame and emit the normalized event.

        Args:
            raw_message: Raw websocket message string
        """
        if not raw_message:
            return

        packet_type = raw_message[0]

        if packet_type == '2':  # PING
            if self._ws:
                await self._ws.send('3')
            return

        if packet_type != '4':
            return

        json_start = raw_message.find('[')
        if json_start == -1:
            return

        try:
            event_array = json.loads(raw_message[json_start:])
        except json.JSONDecodeError as e:
            self.logger.debug(f"Malformed packet ({e}): {raw_message}")
            return

        if not event_array:
            return

        raw_event = event_array[0]
        payload = event_array[1] if len(event_array) > 1 else {}
        event = self.EVENTS.get(raw_event)
        if event is None:
            self.logger.debug(f"Ignoring event: {raw_event}")
            return

        await self._emit(event, self.normalize(event, payload))

    @staticmethod
    def normalize(event: str, payload: Any) -> Dict[str, Any]:
        """Convert a raw event payload into normalized event data."""
        if event == 'message':
            return {
                'user': payload.get('username', ''),
                'content': payload.get('msg', ''),
                'history': bool(payload.get('history', False)),
            }
        if event == 'history':
            return {
                'messages': [
                    {'user': m.get('username', ''), 'content': m.get('msg', '')}
                    for m in payload or []
                ]
            }
        if event == 'user_list':
            return {'users': [u.get('username', '') for u in payload or []]}
        if event == 'user_change' and isinstance(payload, list):
            payload = payload[0] if payload else {}
        if event in ('user_join', 'user_change', 'user_leave'):
            return {'user': payload.get('username', '')}
        return {}

    @staticmethod
    def encode_packet(event_type: str, data: Dict[str, Any]) -> str:
        """
        Encode a socket.io event packet.

        Returns:
            Encoded packet string: 42["event_name", data]
        """
        return f"42{json.dumps([event_type, data])}"
