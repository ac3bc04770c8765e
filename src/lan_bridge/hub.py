"""
Relay hub — owns the live session set and fans envelopes out to every peer
except the sender.

text        forwarded unchanged
file/image  base64 payload decoded, persisted, rebroadcast as name + reference
anything else / unparseable  error envelope back to the sender only
"""

import asyncio
import logging
import uuid
from enum import Enum
from pathlib import PurePath
from typing import Awaitable, Callable, Optional, Union

from lan_bridge.errors import (
    MalformedEnvelope,
    PayloadDecodeError,
    StoreWriteError,
    TransportError,
)
from lan_bridge.models.envelope import EnvelopeType, MessageEnvelope
from lan_bridge.store import PayloadStore
from lan_bridge.transport.envelope import (
    INVALID_FORMAT,
    UNKNOWN_TYPE,
    build_error_envelope,
    build_reference_envelope,
    decode_payload,
    now_ms,
    parse_envelope,
)

logger = logging.getLogger("lan_bridge.hub")

SAVE_FAILED = "Failed to save file"


class SessionState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class HubSession:
    """One peer connection as seen by the hub."""

    def __init__(self, sid: str, send: Callable[[str], Awaitable[None]]):
        self.sid = sid
        self.state = SessionState.OPEN
        self._send = send

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    def close(self) -> None:
        self.state = SessionState.CLOSED

    async def send(self, data: str) -> None:
        if not self.is_open:
            raise TransportError(f"Session {self.sid} is closed")
        await self._send(data)

    def __repr__(self) -> str:
        return f"HubSession(sid={self.sid!r}, state={self.state.value})"


def storage_name(original: str) -> str:
    """Collision-free name for a stored payload: arrival time, random tag, original basename."""
    base = PurePath(original.replace("\\", "/")).name or "upload"
    return f"received_{now_ms()}_{uuid.uuid4().hex[:8]}_{base}"


class RelayHub:
    def __init__(self, store: PayloadStore):
        self._store = store
        self._sessions: dict[str, HubSession] = {}

    @property
    def sessions(self) -> list[HubSession]:
        return list(self._sessions.values())

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def on_connect(self, session: HubSession) -> None:
        self._sessions[session.sid] = session
        logger.info(f"Client connected: {session.sid} ({len(self._sessions)} live)")

    def on_disconnect(self, session: HubSession) -> None:
        session.close()
        if self._sessions.pop(session.sid, None) is not None:
            logger.info(f"Client disconnected: {session.sid} ({len(self._sessions)} live)")

    async def on_message(self, session: HubSession, raw: Union[str, bytes]) -> None:
        if not session.is_open:
            return
        try:
            envelope = parse_envelope(raw)
        except MalformedEnvelope as e:
            logger.error(f"Rejected message from {session.sid}: {e}")
            await self._reply_error(session, str(e))
            return

        logger.debug(f"Received {envelope.type.value} from {session.sid}")
        if envelope.type is EnvelopeType.TEXT:
            text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
            await self.broadcast(text, exclude=session)
        elif envelope.is_binary:
            await self._relay_binary(session, envelope)
        else:
            logger.error(f"Unknown message type from {session.sid}: {envelope.type.value}")
            await self._reply_error(session, UNKNOWN_TYPE)

    async def _relay_binary(self, session: HubSession, envelope: MessageEnvelope) -> None:
        if envelope.payload is None:
            await self._reply_error(session, INVALID_FORMAT)
            return
        try:
            data = decode_payload(envelope.payload)
        except PayloadDecodeError as e:
            logger.error(f"Bad {envelope.type.value} payload from {session.sid}: {e}")
            await self._reply_error(session, str(e))
            return

        name = storage_name(envelope.name or "")
        try:
            reference = await self._store.persist(name, data)
        except (StoreWriteError, OSError) as e:
            logger.error(f"Failed to save file {name}: {e}")
            await self._reply_error(session, SAVE_FAILED)
            return

        logger.info(f"File saved: {name} ({len(data)} bytes) -> {reference}")
        outbound = build_reference_envelope(envelope.type, name, reference)
        await self.broadcast(outbound.to_json(), exclude=session)

    async def broadcast(self, data: str, exclude: Optional[HubSession] = None) -> int:
        """Send to every open live session except `exclude`. Returns the number delivered."""
        targets = [s for s in list(self._sessions.values()) if s is not exclude and s.is_open]
        if not targets:
            return 0
        results = await asyncio.gather(*(s.send(data) for s in targets), return_exceptions=True)
        delivered = 0
        for target, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error(f"Delivery to {target.sid} failed: {result}")
            else:
                delivered += 1
        return delivered

    async def _reply_error(self, session: HubSession, message: str) -> None:
        if not session.is_open:
            return
        try:
            await session.send(build_error_envelope(message).to_json())
        except Exception as e:
            logger.error(f"Error reply to {session.sid} failed: {e}")
