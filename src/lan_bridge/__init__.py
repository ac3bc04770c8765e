"""
lan-bridge — local-network message relay.

A Socket.IO relay hub that fans text, files and images out to every other
connected peer, and a bridge client that reconnects with linear backoff.
"""

from lan_bridge.client import BridgeClient
from lan_bridge.hub import HubSession, RelayHub
from lan_bridge.server import HubServer
from lan_bridge.store import DirectoryPayloadStore, PayloadStore
from lan_bridge.reconnect import ConnectionState, ReconnectionController
from lan_bridge.models.envelope import EnvelopeType, MessageEnvelope
from lan_bridge.errors import (
    LanBridgeError,
    MalformedEnvelope,
    PayloadDecodeError,
    StoreWriteError,
    NotConnected,
    FileReadError,
    TransportError,
)

__version__ = "0.1.0"
__all__ = [
    "BridgeClient",
    "RelayHub",
    "HubSession",
    "HubServer",
    "PayloadStore",
    "DirectoryPayloadStore",
    "ConnectionState",
    "ReconnectionController",
    "EnvelopeType",
    "MessageEnvelope",
    "LanBridgeError",
    "MalformedEnvelope",
    "PayloadDecodeError",
    "StoreWriteError",
    "NotConnected",
    "FileReadError",
    "TransportError",
]
