"""Radio CAT-control abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class RadioMode(Enum):
    CW = "CW"
    CW_REVERSE = "CWR"
    USB = "USB"
    LSB = "LSB"
    RTTY = "RTTY"
    RTTY_REVERSE = "RTTYR"
    AM = "AM"
    FM = "FM"
    DATA = "PKTUSB"

    @classmethod
    def from_rbn_mode(cls, mode: str) -> RadioMode:
        """Map an RBN mode token to a rig mode; unknown modes tune as CW."""
        return _RBN_MODES.get(mode.strip().upper(), cls.CW)

    def to_rigctld_mode(self) -> str:
        return self.value


_RBN_MODES = {
    "CW": RadioMode.CW,
    "RTTY": RadioMode.RTTY,
    "FT8": RadioMode.USB,
    "FT4": RadioMode.USB,
    "PSK31": RadioMode.USB,
    "PSK63": RadioMode.USB,
    "JT65": RadioMode.USB,
    "JT9": RadioMode.USB,
    "WSPR": RadioMode.USB,
    "SSB": RadioMode.USB,
}


class RadioErrorKind(Enum):
    NOT_CONNECTED = "not_connected"
    CONNECTION_FAILED = "connection_failed"
    COMMAND_FAILED = "command_failed"
    TIMEOUT = "timeout"
    NOT_CONFIGURED = "not_configured"


class RadioError(RuntimeError):
    def __init__(self, kind: RadioErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(self._message())

    def _message(self) -> str:
        if self.kind is RadioErrorKind.NOT_CONNECTED:
            return "Radio not connected"
        if self.kind is RadioErrorKind.CONNECTION_FAILED:
            return f"Connection failed: {self.detail}"
        if self.kind is RadioErrorKind.COMMAND_FAILED:
            return f"Command failed: {self.detail}"
        if self.kind is RadioErrorKind.TIMEOUT:
            return "Radio not responding"
        return "Radio not configured"


class RadioController(ABC):
    """Capability interface the application uses to tune a rig."""

    @abstractmethod
    def is_connected(self) -> bool: ...

    @abstractmethod
    def connect(self) -> None:
        """Open the control channel; raises :class:`RadioError`."""

    @abstractmethod
    def disconnect(self) -> None: ...

    @abstractmethod
    def tune(self, frequency_khz: float, mode: RadioMode) -> None:
        """Set frequency and mode; raises :class:`RadioError`."""

    @property
    @abstractmethod
    def backend_name(self) -> str: ...
