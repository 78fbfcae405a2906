"""
Detection publisher (tracker side of the transport channel).

Keeps a WebSocket client connection to the relay open in the background
and sends one message per processed frame. publish() never blocks the
tick: while no connection is open the frame is dropped, not queued.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from core.events import EventBus, Events
from core.types import DetectionFrame
from .protocol import encode_frame

logger = logging.getLogger(__name__)


@dataclass
class TransportConfig:
    """Transport channel configuration (shared by publisher and relay)."""
    host: str = "127.0.0.1"
    port: int = 8081
    # Seconds between reconnect attempts; 0 disables reconnecting
    reconnect_delay: float = 2.0

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    @classmethod
    def from_dict(cls, config: dict) -> "TransportConfig":
        """Create config from dictionary."""
        return cls(
            host=config.get("host", "127.0.0.1"),
            port=config.get("port", 8081),
            reconnect_delay=config.get("reconnect_delay", 2.0),
        )


class DetectionPublisher:
    """
    Fire-and-forget WebSocket producer.

    Example:
        >>> publisher = DetectionPublisher(TransportConfig())
        >>> await publisher.open()
        >>> publisher.publish(frame)   # from the tick, never blocks
        >>> await publisher.close()
    """

    def __init__(self, config: Optional[TransportConfig] = None, bus: Optional[EventBus] = None):
        self.config = config or TransportConfig()
        self._bus = bus
        self._connection = None
        self._connect_task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._closing = False
        self._sent = 0
        self._dropped = 0

    async def open(self) -> None:
        """Start connecting in the background. Returns immediately."""
        if self._connect_task is not None and not self._connect_task.done():
            return
        self._closing = False
        self._connect_task = asyncio.ensure_future(self._connect_loop())

    async def _connect_loop(self) -> None:
        url = self.config.url
        while not self._closing:
            try:
                async with websockets.connect(url) as connection:
                    self._connection = connection
                    logger.info("Connected to cursor relay at %s", url)
                    self._emit(Events.TRANSPORT_OPENED, url=url)
                    await connection.wait_closed()
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                logger.debug("Relay connection to %s failed: %s", url, e)
            finally:
                if self._connection is not None:
                    self._connection = None
                    logger.info("Disconnected from cursor relay at %s", url)
                    self._emit(Events.TRANSPORT_CLOSED, url=url)

            if self._closing or self.config.reconnect_delay <= 0:
                break
            await asyncio.sleep(self.config.reconnect_delay)

    def _emit(self, event_name: str, **kwargs) -> None:
        if self._bus is not None:
            self._bus.emit(event_name, **kwargs)

    def publish(self, frame: DetectionFrame) -> bool:
        """
        Send a frame if the channel is open.

        Returns:
            True if the send was scheduled, False if the frame was dropped
        """
        connection = self._connection
        if connection is None:
            self._dropped += 1
            return False

        task = asyncio.ensure_future(self._send(connection, encode_frame(frame)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def _send(self, connection, message: str) -> None:
        try:
            await connection.send(message)
            self._sent += 1
        except ConnectionClosed:
            self._dropped += 1
            logger.debug("Relay connection closed while sending; frame dropped")

    async def close(self) -> None:
        """Stop reconnecting and close the connection."""
        self._closing = True
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._connection is not None:
            await self._connection.close()
        if self._connect_task is not None:
            self._connect_task.cancel()
            try:
                await self._connect_task
            except asyncio.CancelledError:
                pass
            self._connect_task = None
        self._connection = None

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def sent_count(self) -> int:
        return self._sent

    @property
    def dropped_count(self) -> int:
        return self._dropped
