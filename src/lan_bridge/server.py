"""
Hub server — Socket.IO over aiohttp.

Socket.IO events map onto the RelayHub contract:
  connect     -> RelayHub.on_connect
  disconnect  -> RelayHub.on_disconnect
  message     -> RelayHub.on_message

Stored payloads are served read-only under the store's URL prefix.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import socketio
from aiohttp import web

from lan_bridge.hub import HubSession, RelayHub
from lan_bridge.store import DEFAULT_UPLOAD_DIR, DirectoryPayloadStore, PayloadStore

logger = logging.getLogger("lan_bridge.server")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_MAX_PAYLOAD_BYTES = 16 * 1024 * 1024


class HubServer:
    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        upload_dir: Union[str, Path] = DEFAULT_UPLOAD_DIR,
        store: Optional[PayloadStore] = None,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ):
        self._host = host
        self._port = port
        self.store = store or DirectoryPayloadStore(upload_dir)
        self.hub = RelayHub(self.store)
        self._sessions: dict[str, HubSession] = {}
        self._runner: Optional[web.AppRunner] = None

        self._sio = socketio.AsyncServer(
            async_mode="aiohttp",
            cors_allowed_origins="*",
            max_http_buffer_size=max_payload_bytes,
        )
        self._app = web.Application(client_max_size=max_payload_bytes)
        self._sio.attach(self._app)
        if isinstance(self.store, DirectoryPayloadStore):
            self._app.router.add_static(self.store.url_prefix, self.store.directory)
        self._register_handlers()

    @property
    def app(self) -> web.Application:
        return self._app

    @property
    def port(self) -> int:
        return self._port

    @property
    def url(self) -> str:
        host = "localhost" if self._host in ("0.0.0.0", "") else self._host
        return f"http://{host}:{self._port}"

    def _register_handlers(self) -> None:
        sio = self._sio

        @sio.event
        async def connect(sid: str, environ: dict[str, Any], auth: Any = None) -> None:
            async def send(data: str) -> None:
                await sio.send(data, to=sid)

            session = HubSession(sid, send)
            self._sessions[sid] = session
            self.hub.on_connect(session)

        @sio.event
        async def disconnect(sid: str, *_args: Any) -> None:
            session = self._sessions.pop(sid, None)
            if session is not None:
                self.hub.on_disconnect(session)

        @sio.event
        async def message(sid: str, data: Any) -> None:
            session = self._sessions.get(sid)
            if session is None:
                return
            if not isinstance(data, (str, bytes)):
                # Socket.IO peers may emit the envelope as an object
                data = json.dumps(data)
            await self.hub.on_message(session, data)

    async def start(self) -> None:
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        if self._port == 0 and self._runner.addresses:
            self._port = self._runner.addresses[0][1]
        logger.info(f"Relay hub listening on {self._host}:{self._port}")

    async def stop(self) -> None:
        for session in list(self._sessions.values()):
            self.hub.on_disconnect(session)
        self._sessions.clear()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Relay hub stopped")

    async def serve_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()
