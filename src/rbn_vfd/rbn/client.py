"""Threaded telnet client for the Reverse Beacon Network spot feed.

The caller talks to the worker thread through two bounded queues: commands
(:class:`Connect`, :class:`Disconnect`) go in, events (:class:`StatusChanged`,
:class:`SpotReceived`, :class:`RawLine`, :class:`Disconnected`) come out and
are drained with :meth:`RbnClient.poll_event` on the caller's own schedule.
"""

from __future__ import annotations

import logging
import queue
import socket
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from rbn_vfd.models.spot import RawSpot
from rbn_vfd.rbn.parser import parse_spot_line

RBN_HOST = "rbn.telegraphy.de"
RBN_PORT = 7000
LOGIN_PROMPT = "please enter your callsign"

_READ_CHUNK_BYTES = 1024

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class RbnClientError(RuntimeError):
    pass


class ClientState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    AWAITING_LOGIN = "awaiting_login"
    LOGGED_IN = "logged_in"


@dataclass(frozen=True, slots=True)
class Connect:
    identity: str


@dataclass(frozen=True, slots=True)
class Disconnect:
    pass


@dataclass(frozen=True, slots=True)
class _Shutdown:
    pass


@dataclass(frozen=True, slots=True)
class StatusChanged:
    text: str


@dataclass(frozen=True, slots=True)
class SpotReceived:
    spot: RawSpot


@dataclass(frozen=True, slots=True)
class Disconnected:
    pass


@dataclass(frozen=True, slots=True)
class RawLine:
    """Diagnostic copy of a line received (``is_inbound``) or sent."""

    text: str
    is_inbound: bool


Command = Union[Connect, Disconnect, _Shutdown]
Event = Union[StatusChanged, SpotReceived, Disconnected, RawLine]


@dataclass(slots=True)
class RbnClientConfig:
    host: str = RBN_HOST
    port: int = RBN_PORT
    connect_timeout: float = 10.0
    # Upper bound on how long a pending Disconnect waits behind a read.
    poll_interval: float = 0.2
    command_queue_size: int = 16
    event_queue_size: int = 256
    event_put_timeout: float = 1.0


class _SessionEnded(Exception):
    """Internal signal that the current connection is finished."""

    def __init__(self, status: str, *, shutdown: bool = False) -> None:
        super().__init__(status)
        self.status = status
        self.shutdown = shutdown


class RbnClient:
    def __init__(self, config: RbnClientConfig | None = None) -> None:
        self._config = config or RbnClientConfig()
        self._commands: "queue.Queue[Command]" = queue.Queue(
            maxsize=self._config.command_queue_size
        )
        self._events: "queue.Queue[Event]" = queue.Queue(
            maxsize=self._config.event_queue_size
        )
        self._state = ClientState.IDLE
        self._thread: threading.Thread | None = None
        self._thread_lock = threading.Lock()

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def connect(self, identity: str) -> None:
        """Queue a connect request; returns immediately."""
        self._send(Connect(identity))

    def disconnect(self) -> None:
        """Queue a disconnect request; a no-op for the worker when idle."""
        self._send(Disconnect())

    def poll_event(self) -> Optional[Event]:
        try:
            return self._events.get_nowait()
        except queue.Empty:
            return None

    def drain_events(self) -> list[Event]:
        events: list[Event] = []
        while True:
            event = self.poll_event()
            if event is None:
                return events
            events.append(event)

    def close(self, timeout: float = 2.0) -> None:
        """Stop the worker thread, dropping any open connection."""
        thread = self._thread
        if thread is None:
            return
        try:
            self._commands.put(_Shutdown(), timeout=timeout)
        except queue.Full:
            logger.debug("Command queue full while closing RBN client")
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.debug("RBN worker thread still running after timeout")
        else:
            self._thread = None

    def __enter__(self) -> "RbnClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _send(self, command: Command) -> None:
        self._ensure_worker()
        try:
            self._commands.put(command, timeout=self._config.poll_interval)
        except queue.Full as exc:
            raise RbnClientError("RBN command queue is full") from exc

    def _ensure_worker(self) -> None:
        with self._thread_lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._thread = threading.Thread(
                target=self._run, name="rbn-client", daemon=True
            )
            self._thread.start()

    # Worker thread -----------------------------------------------------

    def _run(self) -> None:
        while True:
            command = self._commands.get()
            if isinstance(command, _Shutdown):
                return
            if isinstance(command, Disconnect):
                continue
            if self._session(command.identity):
                return

    def _session(self, identity: str) -> bool:
        """Run one connection attempt; return True if shutdown was requested."""
        host, port = self._config.host, self._config.port
        self._state = ClientState.CONNECTING
        self._emit(StatusChanged(f"Connecting to {host}:{port}..."))
        logger.info("Connecting to RBN %s:%s as %s", host, port, identity)
        try:
            sock = socket.create_connection(
                (host, port), timeout=self._config.connect_timeout
            )
        except OSError as exc:
            logger.warning("RBN connection to %s:%s failed: %s", host, port, exc)
            self._emit(StatusChanged(f"Connection failed: {exc}"))
            self._finish()
            return False

        self._state = ClientState.AWAITING_LOGIN
        self._emit(StatusChanged("Connected, waiting for login prompt..."))
        shutdown = False
        try:
            sock.settimeout(self._config.poll_interval)
            self._pump(sock, identity)
        except _SessionEnded as ended:
            shutdown = ended.shutdown
            logger.info("RBN session ended: %s", ended.status)
            self._emit(StatusChanged(ended.status))
        finally:
            try:
                sock.close()
            except OSError:
                pass
            self._finish()
        return shutdown

    def _pump(self, sock: socket.socket, identity: str) -> None:
        buffer = bytearray()
        while True:
            self._check_commands()
            try:
                chunk = sock.recv(_READ_CHUNK_BYTES)
            except socket.timeout:
                continue
            except OSError as exc:
                raise _SessionEnded(f"Read error: {exc}") from exc
            if not chunk:
                raise _SessionEnded("Connection closed by server")
            buffer.extend(chunk)

            for line in _extract_lines(buffer):
                self._handle_line(line)

            if self._state is not ClientState.LOGGED_IN and _has_login_prompt(buffer):
                self._login(sock, identity, buffer)

    def _check_commands(self) -> None:
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return
            if isinstance(command, _Shutdown):
                raise _SessionEnded("Disconnected", shutdown=True)
            if isinstance(command, Disconnect):
                raise _SessionEnded("Disconnected")
            logger.debug("Ignoring connect request; session already active")

    def _handle_line(self, line: str) -> None:
        logger.debug("<< %s", line.rstrip("\r\n"))
        self._emit(RawLine(line, True))
        spot = parse_spot_line(line)
        if spot is not None:
            self._emit(SpotReceived(spot))

    def _login(self, sock: socket.socket, identity: str, buffer: bytearray) -> None:
        if buffer:
            self._emit(RawLine(_decode(buffer), True))
            buffer.clear()
        payload = f"{identity}\r\n"
        try:
            sock.sendall(payload.encode("ascii", errors="replace"))
        except OSError as exc:
            raise _SessionEnded(f"Write error: {exc}") from exc
        logger.debug(">> %s", identity)
        self._emit(RawLine(payload, False))
        self._state = ClientState.LOGGED_IN
        logger.info("Logged in to RBN as %s", identity)
        self._emit(StatusChanged(f"Logged in as {identity}"))

    def _finish(self) -> None:
        self._state = ClientState.IDLE
        self._emit(Disconnected())

    def _emit(self, event: Event) -> None:
        try:
            self._events.put(event, timeout=self._config.event_put_timeout)
        except queue.Full:
            logger.debug("Event queue full; dropping %s", type(event).__name__)


def _extract_lines(buffer: bytearray) -> list[str]:
    """Remove and return every newline-terminated line held in ``buffer``.

    Bytes after the last line feed stay in the buffer for the next read.
    """
    lines: list[str] = []
    while True:
        end = buffer.find(b"\n")
        if end == -1:
            return lines
        lines.append(_decode(buffer[: end + 1]))
        del buffer[: end + 1]


def _has_login_prompt(buffer: bytearray) -> bool:
    return LOGIN_PROMPT in _decode(buffer).lower()


def _decode(data: bytes | bytearray) -> str:
    return bytes(data).decode("utf-8", errors="replace")
