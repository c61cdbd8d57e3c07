"""Reverse Beacon Network telnet feed: line parser and client."""

from .client import (
    ClientState,
    Connect,
    Disconnect,
    Disconnected,
    RawLine,
    RbnClient,
    RbnClientConfig,
    RbnClientError,
    SpotReceived,
    StatusChanged,
)
from .parser import SPOT_PREFIX, parse_spot_line

__all__ = [
    "ClientState",
    "Connect",
    "Disconnect",
    "Disconnected",
    "RawLine",
    "RbnClient",
    "RbnClientConfig",
    "RbnClientError",
    "SPOT_PREFIX",
    "SpotReceived",
    "StatusChanged",
    "parse_spot_line",
]
