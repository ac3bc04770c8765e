"""Basic unit tests for the lan-bridge package."""

from pathlib import Path

import pytest

from lan_bridge import (
    BridgeClient,
    HubServer,
    RelayHub,
    LanBridgeError,
    MalformedEnvelope,
    PayloadDecodeError,
    StoreWriteError,
    NotConnected,
    FileReadError,
    TransportError,
    EnvelopeType,
    ConnectionState,
    __version__,
)


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert BridgeClient is not None
    assert HubServer is not None
    assert RelayHub is not None


def test_error_hierarchy():
    for cls in (MalformedEnvelope, PayloadDecodeError, StoreWriteError, NotConnected, FileReadError, TransportError):
        assert issubclass(cls, LanBridgeError)


def test_error_attributes():
    err = LanBridgeError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    malformed = MalformedEnvelope("Unknown message type", details={"type": "video"})
    assert malformed.code == "malformed_envelope"
    assert malformed.details == {"type": "video"}
    assert NotConnected().code == "not_connected"
    assert str(StoreWriteError()) == "Failed to save file"


def test_enum_values():
    assert EnvelopeType.TEXT == "text"
    assert EnvelopeType.IMAGE == "image"
    assert ConnectionState.FAILED == "failed"


def test_declared_dependencies():
    tomllib = pytest.importorskip("tomllib")
    pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
    deps = tomllib.loads(pyproject.read_text())["project"]["dependencies"]
    assert "python-socketio>=5.11" in deps
    assert any(d.startswith("aiohttp") for d in deps)
    assert not any("[" in d for d in deps)
