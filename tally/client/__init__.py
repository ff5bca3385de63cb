"""Client-side helpers for the Google sign-in popup."""

from .error import BridgeError, PopupAccessError, PopupBlockedError
from .popup import (
    HandshakeAttempt,
    HandshakeOutcome,
    HandshakeStatus,
    MessageEvent,
    OpenerWindow,
    Popup,
    PopupBridge,
)
from .probe import ProbeResult, probe_configuration
from .storage import ClientStorage, InMemoryClientStorage

__all__ = [
    "BridgeError",
    "ClientStorage",
    "HandshakeAttempt",
    "HandshakeOutcome",
    "HandshakeStatus",
    "InMemoryClientStorage",
    "MessageEvent",
    "OpenerWindow",
    "Popup",
    "PopupAccessError",
    "PopupBlockedError",
    "PopupBridge",
    "ProbeResult",
    "probe_configuration",
]
