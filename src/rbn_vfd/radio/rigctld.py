"""Hamlib ``rigctld`` controller speaking its line-based TCP protocol."""

from __future__ import annotations

import io
import logging
import socket
from typing import Optional

from .base import RadioController, RadioError, RadioErrorKind, RadioMode

DEFAULT_RIGCTLD_HOST = "localhost"
DEFAULT_RIGCTLD_PORT = 4532

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class RigctldController(RadioController):
    def __init__(
        self,
        host: str = DEFAULT_RIGCTLD_HOST,
        port: int = DEFAULT_RIGCTLD_PORT,
        *,
        timeout: float = 3.0,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout
        self._socket: Optional[socket.socket] = None
        self._reader: Optional[io.BufferedReader] = None

    def is_connected(self) -> bool:
        return self._socket is not None

    @property
    def backend_name(self) -> str:
        return "rigctld"

    def connect(self) -> None:
        if self._socket is not None:
            return
        address = f"{self._host}:{self._port}"
        try:
            sock = socket.create_connection((self._host, self._port), timeout=self._timeout)
        except OSError as exc:
            raise RadioError(
                RadioErrorKind.CONNECTION_FAILED,
                f"Cannot connect to rigctld at {address}. Is rigctld running? ({exc})",
            ) from exc
        sock.settimeout(self._timeout)
        self._socket = sock
        self._reader = sock.makefile("rb")
        logger.info("Connected to rigctld at %s", address)

    def disconnect(self) -> None:
        if self._reader is not None:
            try:
                self._reader.close()
            except OSError:
                pass
            self._reader = None
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
            logger.info("Disconnected from rigctld at %s:%s", self._host, self._port)

    def tune(self, frequency_khz: float, mode: RadioMode) -> None:
        if self._socket is None:
            raise RadioError(RadioErrorKind.NOT_CONNECTED)
        frequency_hz = int(round(frequency_khz * 1000.0))
        self._send_command(f"F {frequency_hz}")
        # Passband 0 keeps the rig's default filter for the mode.
        self._send_command(f"M {mode.to_rigctld_mode()} 0")
        logger.info("Tuned to %.1f kHz %s", frequency_khz, mode.to_rigctld_mode())

    def _send_command(self, command: str) -> str:
        if self._socket is None or self._reader is None:
            raise RadioError(RadioErrorKind.NOT_CONNECTED)
        logger.debug("rigctld >> %s", command)
        try:
            self._socket.sendall(f"{command}\n".encode("ascii"))
            line = self._reader.readline()
        except socket.timeout as exc:
            self.disconnect()
            raise RadioError(RadioErrorKind.TIMEOUT) from exc
        except OSError as exc:
            self.disconnect()
            raise RadioError(RadioErrorKind.COMMAND_FAILED, str(exc)) from exc
        if not line:
            self.disconnect()
            raise RadioError(RadioErrorKind.COMMAND_FAILED, "rigctld closed the connection")
        response = line.decode("ascii", errors="replace").strip()
        logger.debug("rigctld << %s", response)
        _check_report(response)
        return response


def _check_report(response: str) -> None:
    """Raise for ``RPRT <code>`` replies carrying a non-zero code."""
    if not response.startswith("RPRT"):
        return
    parts = response.split()
    if len(parts) < 2:
        return
    try:
        code = int(parts[1])
    except ValueError:
        return
    if code != 0:
        raise RadioError(RadioErrorKind.COMMAND_FAILED, f"rigctld error code: {code}")
