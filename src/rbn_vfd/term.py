"""Terminal helpers for optional colorized output and keyboard input."""

from __future__ import annotations

import logging
import os
import sys
import threading
from queue import Empty, Queue
from typing import Callable, Literal

ColorLevel = Literal["ok", "warning", "error", "info"]

_ANSI = {
    "reset": "\x1b[0m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "red": "\x1b[31m",
    "blue": "\x1b[34m",
    "bold": "\x1b[1m",
}

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def supports_color() -> bool:
    if os.getenv("NO_COLOR"):
        return False
    return sys.stdout.isatty()


def _color_wrap(text: str, code: str, enabled: bool) -> str:
    if not enabled or code not in _ANSI:
        return text
    return f"{_ANSI[code]}{text}{_ANSI['reset']}"


def status_label(level: ColorLevel, *, enabled: bool = True) -> str:
    normalized = level.lower()
    if normalized == "ok":
        return _color_wrap("[OK     ]", "green", enabled)
    if normalized == "warning":
        return _color_wrap("[WARNING]", "yellow", enabled)
    if normalized == "error":
        return _color_wrap("[ERROR  ]", "red", enabled)
    return _color_wrap("[INFO   ]", "blue", enabled)


def color_text(text: str, *, color: str = "blue", enabled: bool = True) -> str:
    return _color_wrap(text, color, enabled)


def start_keyboard_listener(
    stop_event: threading.Event,
    command_queue: Queue[str],
    *,
    name: str = "rbn-vfd-keyboard",
) -> threading.Thread | None:
    """Start a background thread that reads single keypresses from stdin.

    Returns None if stdin is not a TTY or the terminal cannot be put into
    cbreak mode. Terminal settings are restored when the thread exits.
    """
    if not sys.stdin.isatty():
        return None

    try:
        import select
        import termios
        import tty
    except ImportError:
        return None

    try:
        fd = sys.stdin.fileno()
    except (OSError, ValueError):
        return None

    try:
        old_settings = termios.tcgetattr(fd)
    except termios.error:
        return None

    try:
        tty.setcbreak(fd)
    except termios.error:
        return None

    def worker() -> None:
        try:
            while not stop_event.is_set():
                try:
                    readable, _, _ = select.select([sys.stdin], [], [], 0.1)
                except (OSError, ValueError):
                    break
                if sys.stdin in readable:
                    try:
                        ch = sys.stdin.read(1)
                    except (OSError, ValueError):
                        break
                    if ch:
                        command_queue.put(ch)
        finally:
            try:
                termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
            except termios.error:
                pass

    thread = threading.Thread(target=worker, name=name, daemon=True)
    thread.start()
    return thread


def process_commands(
    queue: Queue[str],
    handlers: dict[str, Callable[[], None]],
) -> int:
    """Drain ``queue`` and dispatch each key to its handler.

    Keys are matched case-insensitively; unknown keys are ignored. A failing
    handler is logged and does not stop the remaining keys. Returns the number
    of keys dispatched.
    """
    dispatched = 0
    while True:
        try:
            cmd = queue.get_nowait()
        except Empty:
            return dispatched
        fn = handlers.get(cmd.lower())
        if fn is None:
            continue
        dispatched += 1
        try:
            fn()
        except Exception:
            logger.exception("Keyboard command %r failed", cmd)
