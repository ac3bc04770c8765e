"""
Socket.IO transport session — one physical connection from a bridge client to the hub.

Envelopes travel as JSON text on the `message` event. python-socketio's own
reconnection is disabled; recovery belongs to the ReconnectionController.
"""

import json
import logging
from typing import Any, Callable, Optional

import socketio

from lan_bridge.errors import TransportError

logger = logging.getLogger("lan_bridge.transport.socketio")


class SocketIOTransport:
    def __init__(
        self,
        url: str,
        on_receive: Callable[[str], None],
        on_close: Callable[[], None],
        transports: Optional[list[str]] = None,
        connect_timeout: float = 10.0,
    ):
        self._url = url
        self._on_receive = on_receive
        self._on_close = on_close
        self._transports = transports or ["websocket"]
        self._connect_timeout = connect_timeout
        self._sio: Optional[socketio.AsyncClient] = None
        self._open = False
        self._closing = False

    @property
    def is_open(self) -> bool:
        return self._open and self._sio is not None and self._sio.connected

    async def open(self) -> None:
        """Connect to the hub. Raises TransportError if the connection is not established."""
        if self.is_open:
            return

        self._closing = False
        self._sio = socketio.AsyncClient(reconnection=False)

        @self._sio.event
        async def message(data: Any) -> None:
            if not isinstance(data, (str, bytes)):
                data = json.dumps(data)
            elif isinstance(data, bytes):
                data = data.decode("utf-8", errors="replace")
            self._on_receive(data)

        @self._sio.event
        async def disconnect(*_args: Any) -> None:
            was_open = self._open
            self._open = False
            if was_open and not self._closing:
                logger.info(f"Connection to {self._url} lost")
                self._on_close()

        try:
            await self._sio.connect(
                self._url,
                transports=self._transports,
                wait_timeout=self._connect_timeout,
            )
        except socketio.exceptions.ConnectionError as e:
            self._sio = None
            raise TransportError(f"Failed to connect to {self._url}: {e}") from e
        self._open = True
        logger.info(f"Connected to {self._url}")

    async def send(self, data: str) -> None:
        if not self.is_open:
            raise TransportError("Socket.IO not connected")
        try:
            await self._sio.send(data)  # type: ignore[union-attr]
        except socketio.exceptions.SocketIOError as e:
            raise TransportError(f"Send failed: {e}") from e

    async def close(self) -> None:
        self._closing = True
        self._open = False
        if self._sio:
            await self._sio.disconnect()
            self._sio = None
