"""
Envelope construction and parsing for the relay wire format.

One JSON object per Socket.IO `message` event. Binary payloads travel as
base64 text into the hub and as a store reference out of it.
"""

import base64
import binascii
import json
import time
from typing import Optional, Union

from pydantic import ValidationError

from lan_bridge.errors import MalformedEnvelope, PayloadDecodeError
from lan_bridge.models.envelope import EnvelopeType, MessageEnvelope

INVALID_FORMAT = "Invalid message format"
UNKNOWN_TYPE = "Unknown message type"

_KNOWN_TYPES = {t.value for t in EnvelopeType}


def now_ms() -> int:
    return int(time.time() * 1000)


def encode_payload(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_payload(payload: str) -> bytes:
    """Strict base64 decode; anything outside the alphabet is rejected."""
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PayloadDecodeError() from e


def classify_media_type(media_type: Optional[str]) -> EnvelopeType:
    if media_type and media_type.startswith("image/"):
        return EnvelopeType.IMAGE
    return EnvelopeType.FILE


def build_text_envelope(text: str) -> MessageEnvelope:
    return MessageEnvelope(type=EnvelopeType.TEXT, payload=text, timestamp=now_ms())


def build_file_envelope(name: str, data: bytes, media_type: Optional[str] = None) -> MessageEnvelope:
    return MessageEnvelope(
        type=classify_media_type(media_type),
        name=name,
        payload=encode_payload(data),
        timestamp=now_ms(),
    )


def build_reference_envelope(type: EnvelopeType, name: str, reference: str) -> MessageEnvelope:
    """Outbound form of a file/image envelope after the hub stored its bytes."""
    return MessageEnvelope(type=type, name=name, reference=reference, timestamp=now_ms())


def build_error_envelope(message: str) -> MessageEnvelope:
    return MessageEnvelope(type=EnvelopeType.ERROR, payload=message, timestamp=now_ms())


def parse_envelope(raw: Union[str, bytes, bytearray]) -> MessageEnvelope:
    """Parse one wire message. Raises MalformedEnvelope."""
    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        obj = json.loads(text)
    except (UnicodeDecodeError, TypeError, ValueError) as e:
        raise MalformedEnvelope(INVALID_FORMAT) from e
    if not isinstance(obj, dict):
        raise MalformedEnvelope(INVALID_FORMAT)
    if not isinstance(obj.get("type"), str) or obj["type"] not in _KNOWN_TYPES:
        raise MalformedEnvelope(UNKNOWN_TYPE, details={"type": obj.get("type")})
    try:
        return MessageEnvelope.model_validate(obj)
    except ValidationError as e:
        raise MalformedEnvelope(INVALID_FORMAT, details={"errors": e.errors(include_url=False)}) from e
