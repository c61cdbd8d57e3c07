"""VFD output: byte sinks and the tick-driven content scheduler."""

from .scheduler import DisplayMode, DisplayState, VfdScheduler
from .sink import (
    CLEAR_DISPLAY,
    DISPLAY_LINES,
    DISPLAY_WIDTH,
    DisplaySink,
    DisplaySinkError,
    NullDisplaySink,
    SerialDisplaySink,
    available_ports,
)

__all__ = [
    "CLEAR_DISPLAY",
    "DISPLAY_LINES",
    "DISPLAY_WIDTH",
    "DisplayMode",
    "DisplaySink",
    "DisplaySinkError",
    "DisplayState",
    "NullDisplaySink",
    "SerialDisplaySink",
    "VfdScheduler",
    "available_ports",
]
