"""Application controller tying the feed, spot store, VFD and radio together.

Front ends (the terminal runner, tests) call :meth:`RbnVfdApp.process_events`
and :meth:`RbnVfdApp.tick` from their own loop and read ``status_message``,
``raw_data_log`` and the display preview back.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, Optional

from rbn_vfd.config import AppConfig
from rbn_vfd.display.scheduler import VfdScheduler
from rbn_vfd.display.sink import DisplaySinkError, SerialDisplaySink
from rbn_vfd.models.spot import AggregatedSpot
from rbn_vfd.radio import RadioController, RadioError, RadioMode, create_controller
from rbn_vfd.rbn.client import (
    Disconnected,
    RawLine,
    RbnClient,
    RbnClientConfig,
    RbnClientError,
    SpotReceived,
    StatusChanged,
)
from rbn_vfd.spots.store import SpotStore

RAW_DATA_LOG_MAX_LINES = 500
PURGE_INTERVAL = 5.0

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class RbnVfdApp:
    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        client_factory: Optional[Callable[[RbnClientConfig], RbnClient]] = None,
        display: SerialDisplaySink | None = None,
        radio: RadioController | None = None,
        store: SpotStore | None = None,
        scheduler: VfdScheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or AppConfig()
        self._client_factory = client_factory or RbnClient
        self._clock = clock
        self._wall_clock = wall_clock
        self.store = store or SpotStore(
            self.config.min_snr, self.config.max_age_minutes, clock=clock
        )
        self.display = display or SerialDisplaySink()
        self.scheduler = scheduler or VfdScheduler(
            scroll_interval=self.config.scroll_interval_seconds,
            random_char_percent=self.config.random_char_percent,
            force_random_mode=self.config.force_random_mode,
        )
        self.radio = radio or create_controller(self.config.radio)
        self.client: RbnClient | None = None
        self.is_connected = False
        self.status_message = "Ready"
        self.raw_data_log: deque[str] = deque(maxlen=RAW_DATA_LOG_MAX_LINES)
        self.selected_spot: AggregatedSpot | None = None
        self.radio_error: str | None = None
        self.spots: list[AggregatedSpot] = []
        self._last_purge = clock()

    # Feed -----------------------------------------------------------------

    def connect_rbn(self, callsign: str | None = None) -> bool:
        identity = (callsign if callsign is not None else self.config.callsign).strip().upper()
        if not identity:
            self.status_message = "Please enter a callsign"
            return False
        self.config.callsign = identity
        if self.client is None:
            self.client = self._client_factory(
                RbnClientConfig(host=self.config.rbn_host, port=self.config.rbn_port)
            )
        try:
            self.client.connect(identity)
        except RbnClientError as exc:
            self.status_message = str(exc)
            return False
        self.is_connected = True
        self.status_message = "Connecting..."
        return True

    def disconnect_rbn(self) -> None:
        if self.client is not None:
            try:
                self.client.disconnect()
            except RbnClientError as exc:
                logger.warning("Unable to queue disconnect: %s", exc)
        self.is_connected = False
        self.status_message = "Disconnected"

    def process_events(self) -> int:
        """Drain pending feed events; return how many were handled."""
        if self.client is None:
            return 0
        events = self.client.drain_events()
        for event in events:
            if isinstance(event, StatusChanged):
                self.status_message = event.text
            elif isinstance(event, SpotReceived):
                self.store.add(event.spot)
            elif isinstance(event, Disconnected):
                self.is_connected = False
            elif isinstance(event, RawLine):
                prefix = "<<" if event.is_inbound else ">>"
                self.raw_data_log.append(f"{prefix} {event.text.rstrip()}")
        return len(events)

    # Display --------------------------------------------------------------

    def open_display(self, port_name: str | None = None) -> bool:
        port = (port_name if port_name is not None else self.config.serial_port).strip()
        if not port:
            self.status_message = "No serial port selected"
            return False
        try:
            self.display.open(port)
        except DisplaySinkError as exc:
            self.status_message = f"Failed to open VFD: {exc}"
            return False
        self.config.serial_port = port
        self.scheduler.attach(self.display)
        self.status_message = f"VFD opened on {port}"
        return True

    def close_display(self) -> None:
        self.scheduler.detach()
        self.display.close()
        self.status_message = "VFD closed"

    def blank_display(self) -> None:
        error = self.scheduler.blank()
        self.status_message = error or "Display blanked"

    def tick(self) -> None:
        """Purge periodically, refresh the filtered snapshot and render it."""
        now = self._clock()
        if now - self._last_purge >= PURGE_INTERVAL:
            self.store.purge(now)
            self._last_purge = now
        self.spots = self.store.query(now)
        error = self.scheduler.tick(self.spots, now, self._wall_clock())
        if error is not None:
            self.status_message = error

    # Settings -------------------------------------------------------------

    def apply_config(self) -> None:
        """Push filter and display settings from ``config`` to the services."""
        self.store.set_min_snr(self.config.min_snr)
        self.store.set_max_age_minutes(self.config.max_age_minutes)
        self.scheduler.set_scroll_interval(self.config.scroll_interval_seconds)
        self.scheduler.set_random_char_percent(self.config.random_char_percent)
        self.scheduler.set_force_random_mode(self.config.force_random_mode)

    def replace_radio(self) -> None:
        """Rebuild the radio controller after ``config.radio`` changed."""
        self.radio.disconnect()
        self.radio = create_controller(self.config.radio)

    # Radio ----------------------------------------------------------------

    def select_spot(self, spot: AggregatedSpot | None) -> None:
        self.selected_spot = spot

    def connect_radio(self) -> bool:
        try:
            self.radio.connect()
        except RadioError as exc:
            self.radio_error = str(exc)
            return False
        self.radio_error = None
        self.status_message = f"{self.radio.backend_name} connected"
        return True

    def tune_to_selected(self) -> bool:
        spot = self.selected_spot
        if spot is None:
            return False
        mode = RadioMode.from_rbn_mode(spot.mode)
        try:
            self.radio.tune(spot.frequency_khz, mode)
        except RadioError as exc:
            logger.warning("Tune failed: %s", exc)
            self.radio_error = str(exc)
            return False
        self.radio_error = None
        self.status_message = f"Tuned to {spot.frequency_khz:.1f} kHz {mode.to_rigctld_mode()}"
        return True

    def radio_status(self) -> str:
        if self.radio.is_connected():
            return f"{self.radio.backend_name} connected"
        if self.config.radio.enabled:
            return f"{self.radio.backend_name} disconnected"
        return "Not configured"

    def shutdown(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
        self.is_connected = False
        if self.scheduler.sink is not None:
            self.close_display()
        self.radio.disconnect()
