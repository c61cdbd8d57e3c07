"""Runtime loop: RBN feed → spot store → VFD, with keyboard controls."""

from __future__ import annotations

import logging
import signal
import threading
import time
from argparse import Namespace
from queue import Queue
from typing import Any, Optional

from rbn_vfd import __version__
from rbn_vfd import config as config_module
from rbn_vfd.app import RbnVfdApp
from rbn_vfd.config_layering import load_layered_config
from rbn_vfd.term import (
    color_text,
    process_commands,
    start_keyboard_listener,
    status_label,
    supports_color,
)

TICK_INTERVAL = 0.1
TABLE_INTERVAL = 5.0
STATS_INTERVAL = 60.0

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def build_config(args: Namespace) -> config_module.AppConfig:
    """Merge config file, environment and command line into an AppConfig."""
    config_path = config_module.resolve_config_path(getattr(args, "config", None))
    data = load_layered_config(config_path, _cli_overrides(args))
    return config_module.AppConfig.from_dict(data)


def _cli_overrides(args: Namespace) -> dict[str, Any]:
    mapping = {
        "callsign": ("connection", "callsign"),
        "rbn_host": ("connection", "host"),
        "rbn_port": ("connection", "port"),
        "serial_port": ("display", "serial_port"),
        "random_char_percent": ("display", "random_char_percent"),
        "force_random": ("display", "force_random_mode"),
        "min_snr": ("filters", "min_snr"),
        "max_age": ("filters", "max_age_minutes"),
        "scroll": ("filters", "scroll_interval_seconds"),
    }
    overrides: dict[str, Any] = {}
    for attr, (section, key) in mapping.items():
        value = getattr(args, attr, None)
        if value is None:
            continue
        overrides.setdefault(section, {})[key] = value
    return overrides


def run_display(args: Namespace) -> int:
    """Run the feed/display loop until interrupted."""
    try:
        app_config = build_config(args)
    except ValueError as exc:
        logger.error("Config invalid: %s", exc)
        return 1

    if not app_config.callsign:
        logger.error(
            "No callsign configured; pass --callsign or run `rbn-vfd config init`."
        )
        return 1

    logger.info(
        "rbn-vfd v%s: starting (callsign=%s, rbn=%s:%s)",
        __version__,
        app_config.callsign,
        app_config.rbn_host,
        app_config.rbn_port,
    )

    app = RbnVfdApp(app_config)
    use_color = supports_color() and not getattr(args, "no_color", False)
    quiet = bool(getattr(args, "quiet", False))

    if getattr(args, "no_display", False):
        logger.info("Display disabled; spots are shown in the terminal only")
    elif not app.open_display():
        logger.warning("%s", app.status_message)

    if app_config.radio.enabled and not app.connect_radio():
        logger.warning("Radio: %s", app.radio_error)

    stop_event = threading.Event()
    command_queue: "Queue[str]" = Queue()
    keyboard_thread = start_keyboard_listener(stop_event, command_queue)
    selection = _Selection(app)
    handlers = {
        "j": selection.next,
        "k": selection.previous,
        "t": lambda: _tune(app, use_color),
        "b": app.blank_display,
        "r": lambda: _reload(app, args),
        "q": stop_event.set,
    }

    previous_signals = {
        signal.SIGINT: signal.getsignal(signal.SIGINT),
        signal.SIGTERM: signal.getsignal(signal.SIGTERM),
    }

    def _restore_signals() -> None:
        for sig, previous in previous_signals.items():
            signal.signal(sig, previous)

    def _handle_shutdown(signum, frame):  # type: ignore[no-untyped-def]
        stop_event.set()

    for sig in previous_signals:
        signal.signal(sig, _handle_shutdown)

    if keyboard_thread is not None:
        logger.info("Keys: j/k select, t tune, b blank display, r reload config, q quit")

    app.connect_rbn()
    duration = getattr(args, "duration", None)
    deadline = time.monotonic() + duration if duration else None
    next_table = time.monotonic() + TABLE_INTERVAL
    next_stats = time.monotonic() + STATS_INTERVAL
    last_status: Optional[str] = None

    try:
        while not stop_event.is_set():
            app.process_events()
            app.tick()
            process_commands(command_queue, handlers)

            if app.status_message != last_status:
                last_status = app.status_message
                logger.info("%s %s", status_label("info", enabled=use_color), last_status)

            if app.client is not None and not app.is_connected:
                logger.warning("RBN connection lost; stopping")
                break

            now = time.monotonic()
            if not quiet and now >= next_table:
                _print_spots(app, selection.index, use_color)
                next_table = now + TABLE_INTERVAL
            if now >= next_stats:
                logger.info(
                    "[stats] spots=%s raw_lines=%s connected=%s",
                    app.store.count(),
                    len(app.raw_data_log),
                    app.is_connected,
                )
                next_stats = now + STATS_INTERVAL
            if deadline is not None and now >= deadline:
                break
            stop_event.wait(TICK_INTERVAL)
    finally:
        stop_event.set()
        app.disconnect_rbn()
        app.shutdown()
        if keyboard_thread is not None and keyboard_thread.is_alive():
            keyboard_thread.join(timeout=1)
        _restore_signals()

    logger.info("Stopped with %s active spot(s)", app.store.count())
    return 0


class _Selection:
    """Cursor over the current spot snapshot for keyboard tuning."""

    def __init__(self, app: RbnVfdApp) -> None:
        self._app = app
        self.index = 0

    def next(self) -> None:
        self._move(1)

    def previous(self) -> None:
        self._move(-1)

    def _move(self, step: int) -> None:
        spots = self._app.spots
        if not spots:
            self._app.select_spot(None)
            return
        self.index = (self.index + step) % len(spots)
        spot = spots[self.index]
        self._app.select_spot(spot)
        logger.info("Selected %s", spot.to_display_string().rstrip())


def _tune(app: RbnVfdApp, use_color: bool) -> None:
    if app.selected_spot is None:
        logger.info("%s No spot selected", status_label("warning", enabled=use_color))
        return
    if not app.radio.is_connected() and app.config.radio.enabled:
        app.connect_radio()
    if app.tune_to_selected():
        logger.info("%s %s", status_label("ok", enabled=use_color), app.status_message)
    else:
        logger.warning("%s %s", status_label("error", enabled=use_color), app.radio_error)


def _reload(app: RbnVfdApp, args: Namespace) -> bool:
    """Re-read the layered config and push filter, display and radio changes."""
    try:
        new_config = build_config(args)
    except ValueError as exc:
        logger.warning("Config reload failed: %s", exc)
        return False
    radio_changed = new_config.radio != app.config.radio
    new_config.callsign = app.config.callsign
    app.config = new_config
    app.apply_config()
    if radio_changed:
        app.replace_radio()
        if new_config.radio.enabled and not app.connect_radio():
            logger.warning("Radio: %s", app.radio_error)
    logger.info("Configuration reloaded")
    return True


def _print_spots(app: RbnVfdApp, selected: int, use_color: bool) -> None:
    line1, line2 = app.scheduler.preview()
    print(color_text(f"VFD |{line1}|", color="bold", enabled=use_color))
    print(color_text(f"    |{line2}|", color="bold", enabled=use_color))
    if not app.spots:
        print("  (no spots)")
        return
    max_age = app.store.max_age_seconds
    for idx, spot in enumerate(app.spots):
        marker = ">" if idx == selected and app.selected_spot is not None else " "
        age = int(spot.age_fraction(max_age) * 100)
        print(
            f"{marker} {spot.to_display_string()}  "
            f"{spot.highest_snr:3d} dB  x{spot.spot_count:<3d} {spot.mode:<5} {age:3d}%"
        )
