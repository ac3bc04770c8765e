"""
LAN bridge error types — one class per failure in the relay protocol.
"""

from typing import Any, Optional


class LanBridgeError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class MalformedEnvelope(LanBridgeError):
    """Unparseable envelope or unknown `type`."""

    def __init__(self, message: str = "Invalid message format", details: Optional[dict[str, Any]] = None):
        super().__init__("malformed_envelope", message, details)


class PayloadDecodeError(LanBridgeError):
    def __init__(self, message: str = "Invalid file payload"):
        super().__init__("payload_decode_error", message)


class StoreWriteError(LanBridgeError):
    def __init__(self, message: str = "Failed to save file", details: Optional[dict[str, Any]] = None):
        super().__init__("store_write_error", message, details)


class NotConnected(LanBridgeError):
    def __init__(self, message: str = "Not connected to server"):
        super().__init__("not_connected", message)


class FileReadError(LanBridgeError):
    def __init__(self, message: str = "Failed to read file", details: Optional[dict[str, Any]] = None):
        super().__init__("file_read_error", message, details)


class TransportError(LanBridgeError):
    def __init__(self, message: str):
        super().__init__("transport_error", message)
