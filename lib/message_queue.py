"""
lib/message_queue.py

Per-room outbound message queue with send throttling.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, List, Optional


@dataclass
class QueueStats:
    """Delivery counters for one queue."""
    sent: int = 0
    failed: int = 0


class MessageQueue:
    """
    FIFO delivery buffer between the bot and one room's transport.

    ``push()`` never blocks. A single background task delivers pending
    messages in submission order while the queue is connected, waiting
    ``wait`` seconds after every delivery attempt. A failed send is
    logged and dropped; the loop moves on to the next message.

    Args:
        send: Async callable delivering one message to the transport
        wait: Minimum seconds between deliveries
        room: Room name (for logs)
        logger: Optional logger instance

    Example:
        queue = MessageQueue(connection.send_message, wait=1.0, room='lobby')
        queue.start()
        queue.set_connected(True)
        queue.push('Hello!')
    """

    def __init__(
        self,
        send: Callable[[str], Awaitable[None]],
        wait: float = 1.0,
        room: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if wait < 0:
            raise ValueError(f"Queue wait must not be negative: {wait}")

        self.room = room
        self.wait = wait
        self.stats = QueueStats()
        self.logger = logger or logging.getLogger(f"{__name__}.{room or 'queue'}")
        self._send = send
        self._pending: Deque[str] = deque()
        self._connected = False
        self._wakeup = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def push(self, message: str) -> None:
        """Append a message to the tail of the queue."""
        self._pending.append(message)
        self._wakeup.set()

    def set_connected(self, connected: bool) -> None:
        """
        Suspend or resume delivery.

        Pending messages are kept while disconnected.
        """
        self._connected = bool(connected)
        self.logger.debug(
            f"Queue {'connected' if connected else 'disconnected'} "
            f"({len(self._pending)} pending)"
        )
        if connected:
            self._wakeup.set()

    def drain(self) -> List[str]:
        """Remove and return every pending message."""
        messages = list(self._pending)
        self._pending.clear()
        return messages

    def start(self) -> None:
        """Start the delivery loop on the running event loop."""
        if self.running:
            self.logger.warning("Queue already running")
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the delivery loop. Pending messages stay queued."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            if not (self._connected and self._pending):
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            message = self._pending.popleft()
            try:
                await self._send(message)
                self.stats.sent += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.stats.failed += 1
                self.logger.error(f"Failed to send message to {self.room}: {e}")

            await asyncio.sleep(self.wait)
