"""
BridgeClient — peer-side connection to a relay hub.

    client = BridgeClient("http://192.168.1.10:8080")
    client.on_message("text", lambda env: print(env.payload))
    await client.connect()
    await client.send_text("hello")
    await client.send_file("pic.png")
"""

import logging
import mimetypes
import os
from pathlib import Path
from typing import IO, Callable, Optional, Protocol, Union

from lan_bridge.errors import FileReadError, MalformedEnvelope, NotConnected, TransportError
from lan_bridge.models.envelope import EnvelopeType, MessageEnvelope
from lan_bridge.reconnect import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    ConnectionState,
    ReconnectionController,
    Scheduler,
)
from lan_bridge.transport.envelope import build_file_envelope, build_text_envelope, parse_envelope
from lan_bridge.transport.http import HttpClient
from lan_bridge.transport.socketio import SocketIOTransport

logger = logging.getLogger("lan_bridge.client")

DEFAULT_URL = "http://localhost:8080"

MessageHandler = Callable[[MessageEnvelope], None]
FileLike = Union[str, os.PathLike, IO[bytes]]


class Transport(Protocol):
    @property
    def is_open(self) -> bool: ...

    async def open(self) -> None: ...

    async def send(self, data: str) -> None: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[str, Callable[[str], None], Callable[[], None]], Transport]


def normalize_url(url: str) -> str:
    """Accept ws:// and wss:// addresses; Socket.IO negotiates from http(s)."""
    url = url.rstrip("/")
    if url.startswith("ws://"):
        return "http://" + url[len("ws://"):]
    if url.startswith("wss://"):
        return "https://" + url[len("wss://"):]
    return url


class BridgeClient:
    def __init__(
        self,
        url: str = DEFAULT_URL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        transport_factory: Optional[TransportFactory] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.url = normalize_url(url)
        self._transport_factory: TransportFactory = transport_factory or SocketIOTransport
        self._transport: Optional[Transport] = None
        self._handlers: dict[EnvelopeType, list[MessageHandler]] = {}
        self._controller = ReconnectionController(
            self._open_transport,
            max_attempts=max_attempts,
            base_delay=base_delay,
            scheduler=scheduler,
        )
        self._http = HttpClient(self.url)

    @property
    def connected(self) -> bool:
        return (
            self._transport is not None
            and self._transport.is_open
            and self._controller.state is ConnectionState.CONNECTED
        )

    @property
    def state(self) -> ConnectionState:
        return self._controller.state

    @property
    def attempt(self) -> int:
        return self._controller.attempt

    # -- lifecycle --

    async def connect(self) -> None:
        """Open a session to the hub. Raises TransportError; a failed explicit connect is not retried."""
        await self._controller.connect()

    async def disconnect(self) -> None:
        """Close the session without triggering reconnection."""
        self._controller.cancel()
        await self._drop_transport()
        await self._http.close()

    async def __aenter__(self) -> "BridgeClient":
        await self.connect()
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.disconnect()

    async def _open_transport(self) -> None:
        await self._drop_transport()
        transport: Optional[Transport] = None

        def on_close() -> None:
            # ignore late closes from a transport that has already been replaced
            if transport is not None and self._transport is transport:
                self._controller.connection_lost()

        transport = self._transport_factory(self.url, self._handle_frame, on_close)
        await transport.open()
        self._transport = transport

    async def _drop_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            await transport.close()
        except TransportError as e:
            logger.error(f"Error closing transport: {e}")

    # -- sending --

    def _require_connected(self) -> Transport:
        if not self.connected:
            raise NotConnected()
        return self._transport  # type: ignore[return-value]

    async def send_text(self, text: str) -> bool:
        """Send a text envelope. Best effort: not queued, not retried."""
        transport = self._require_connected()
        return await self._transmit(transport, build_text_envelope(text))

    async def send_file(
        self,
        file: FileLike,
        *,
        name: Optional[str] = None,
        media_type: Optional[str] = None,
    ) -> bool:
        """Send a whole file as one base64 envelope; `image/*` media types go out as `image`."""
        transport = self._require_connected()
        name, data = _read_file(file, name)
        if media_type is None:
            media_type, _ = mimetypes.guess_type(name)
        envelope = build_file_envelope(name, data, media_type)
        logger.debug(f"Sending {envelope.type.value} {name} ({len(data)} bytes)")
        return await self._transmit(transport, envelope)

    async def _transmit(self, transport: Transport, envelope: MessageEnvelope) -> bool:
        try:
            await transport.send(envelope.to_json())
        except TransportError as e:
            logger.error(f"Send failed for {envelope.type.value}: {e}")
            return False
        return True

    # -- receiving --

    def on_message(self, type: Union[EnvelopeType, str], handler: MessageHandler) -> Callable[[], None]:
        """Register a handler for one envelope type. Returns a function that unregisters it."""
        key = EnvelopeType(type)
        self._handlers.setdefault(key, []).append(handler)

        def remove() -> None:
            self.off_message(key, handler)
        return remove

    def off_message(self, type: Union[EnvelopeType, str], handler: MessageHandler) -> None:
        handlers = self._handlers.get(EnvelopeType(type), [])
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def on_state_change(self, handler: Callable[[ConnectionState, int], None]) -> Callable[[], None]:
        return self._controller.add_listener(handler)

    def _handle_frame(self, data: str) -> None:
        try:
            envelope = parse_envelope(data)
        except MalformedEnvelope as e:
            logger.error(f"Failed to parse message: {e}")
            return
        for handler in list(self._handlers.get(envelope.type, [])):
            try:
                handler(envelope)
            except Exception:
                logger.exception(f"Handler for {envelope.type.value} failed")

    # -- stored payloads --

    async def fetch(self, reference: str) -> bytes:
        """Download a payload the hub stored, by the reference from a file/image envelope."""
        return await self._http.get_bytes(reference)


def _read_file(file: FileLike, name: Optional[str]) -> tuple[str, bytes]:
    if isinstance(file, (str, os.PathLike)):
        path = Path(file)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FileReadError(details={"path": str(path)}) from e
        return name or path.name, data

    try:
        data = file.read()
    except OSError as e:
        raise FileReadError() from e
    if not isinstance(data, (bytes, bytearray)):
        raise FileReadError("File must be opened in binary mode")
    return name or Path(str(getattr(file, "name", "") or "upload")).name, bytes(data)
