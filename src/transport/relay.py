"""
Cursor relay (actuator side of the transport channel).

A WebSocket server that owns the OS pointer. Messages are handled one at
a time in arrival order: move the pointer, then click on an open -> closed
edge. Bad input and actuator faults are logged and absorbed; the relay
process never goes down because of a message.
"""

import asyncio
import logging
from typing import Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from core.types import ProtocolError
from control.cursor_actuator import CursorActuator
from recognition.stabilizer import ClickEdgeDetector
from .protocol import decode_message
from .publisher import TransportConfig

logger = logging.getLogger(__name__)


class RelayServer:
    """
    WebSocket server driving a CursorActuator.

    Example:
        >>> relay = RelayServer(TransportConfig(), CursorActuator())
        >>> await relay.start()
        >>> await relay.wait_closed()
    """

    def __init__(self, config: Optional[TransportConfig], actuator: CursorActuator):
        self.config = config or TransportConfig()
        self._actuator = actuator
        self._edges = ClickEdgeDetector()
        self._server = None
        self._message_count = 0
        self._discarded_count = 0

    def handle_message(self, raw: Union[str, bytes]) -> None:
        """Apply one wire message to the pointer. Never raises."""
        self._message_count += 1
        try:
            command = decode_message(raw)
        except ProtocolError as e:
            self._discarded_count += 1
            logger.warning("Discarding malformed message: %s", e)
            return

        if command.cursor is not None:
            try:
                self._actuator.move(command.cursor)
            except Exception as e:
                logger.error("Pointer move failed: %s", e)

        if not self._edges.update(command.gesture):
            return
        logger.info("Click triggered (%s)", command.facing.value)
        try:
            # Blocks the loop for the hold time; the next message must not
            # move the pointer before this button is released
            self._actuator.click(command.facing)
        except Exception as e:
            logger.error("Click failed: %s", e)

    async def _handler(self, connection) -> None:
        peer = getattr(connection, "remote_address", None)
        logger.info("Tracker connected: %s", peer)
        # A new tracker starts from an unknown gesture
        self._edges.reset()
        try:
            async for message in connection:
                self.handle_message(message)
        except ConnectionClosed:
            pass
        finally:
            logger.info("Tracker disconnected: %s", peer)

    async def start(self) -> None:
        """Start listening."""
        self._server = await websockets.serve(self._handler, self.config.host, self.config.port)
        logger.info("Cursor relay listening on %s", self.config.url)

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("Cursor relay stopped")

    async def wait_closed(self) -> None:
        if self._server is not None:
            await self._server.wait_closed()

    @property
    def port(self) -> Optional[int]:
        """Bound port (useful when configured with port 0)."""
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    @property
    def message_count(self) -> int:
        return self._message_count

    @property
    def discarded_count(self) -> int:
        return self._discarded_count


async def run_relay(config: TransportConfig, actuator: CursorActuator,
                    stop_event: Optional[asyncio.Event] = None) -> None:
    """Serve until stop_event is set."""
    relay = RelayServer(config, actuator)
    await relay.start()
    try:
        if stop_event is None:
            await relay.wait_closed()
        else:
            await stop_event.wait()
    finally:
        await relay.stop()
