"""Byte sinks for the 2x20 VFD character display."""

from __future__ import annotations

import logging
from typing import Protocol

import serial  # type: ignore[import]
import serial.tools.list_ports  # type: ignore[import]

DISPLAY_WIDTH = 20
DISPLAY_LINES = 2
# Form feed: clear the display and home the cursor.
CLEAR_DISPLAY = b"\x0c"
DEFAULT_BAUD_RATE = 9600

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class DisplaySinkError(RuntimeError):
    pass


class DisplaySink(Protocol):
    def write(self, data: bytes) -> None: ...


def format_line(text: str) -> str:
    """Pad or truncate ``text`` to exactly one display row."""
    return f"{text:<{DISPLAY_WIDTH}}"[:DISPLAY_WIDTH]


def encode_frame(line1: str, line2: str) -> bytes:
    """Clear/home followed by both rows; the display wraps after 20 bytes."""
    body = format_line(line1) + format_line(line2)
    return CLEAR_DISPLAY + body.encode("ascii", errors="replace")


def available_ports() -> list[str]:
    return [port.device for port in serial.tools.list_ports.comports()]


class SerialDisplaySink:
    """VFD attached to a serial port (9600 8N1)."""

    def __init__(self, baud_rate: int = DEFAULT_BAUD_RATE, timeout: float = 1.0) -> None:
        self._baud_rate = baud_rate
        self._timeout = timeout
        self._port: serial.Serial | None = None
        self._port_name = ""

    @property
    def is_open(self) -> bool:
        return self._port is not None

    @property
    def port_name(self) -> str:
        return self._port_name

    def open(self, port_name: str) -> None:
        if not port_name:
            raise DisplaySinkError("No serial port selected")
        self.close()
        try:
            port = serial.Serial(
                port=port_name,
                baudrate=self._baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self._timeout,
                write_timeout=self._timeout,
            )
        except (serial.SerialException, OSError) as exc:
            raise DisplaySinkError(f"Failed to open {port_name}: {exc}") from exc
        self._port = port
        self._port_name = port_name
        logger.info("VFD opened on %s @ %s baud", port_name, self._baud_rate)
        self._write_quietly(CLEAR_DISPLAY)

    def write(self, data: bytes) -> None:
        if self._port is None:
            raise DisplaySinkError("Display port not open")
        try:
            self._port.write(data)
        except (serial.SerialException, OSError) as exc:
            raise DisplaySinkError(f"Display write failed: {exc}") from exc

    def close(self) -> None:
        if self._port is None:
            return
        self._write_quietly(CLEAR_DISPLAY)
        try:
            self._port.close()
        except (serial.SerialException, OSError) as exc:
            logger.debug("Error closing %s: %s", self._port_name, exc)
        finally:
            logger.info("VFD closed on %s", self._port_name)
            self._port = None
            self._port_name = ""

    def _write_quietly(self, data: bytes) -> None:
        try:
            self.write(data)
        except DisplaySinkError as exc:
            logger.warning("%s", exc)


class NullDisplaySink:
    """Accepts and discards writes; used when no hardware is attached."""

    def write(self, data: bytes) -> None:
        return None
