"""Decide what the 2x20 VFD shows on each tick.

With spots available the display rotates through them every
``scroll_interval`` seconds. With none (or when idle mode is forced) it
shows a single random character that blinks once per wall-clock second
for the configured duty cycle.
"""

from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from rbn_vfd.display.sink import (
    CLEAR_DISPLAY,
    DISPLAY_LINES,
    DISPLAY_WIDTH,
    DisplaySink,
    DisplaySinkError,
    encode_frame,
    format_line,
)
from rbn_vfd.models.spot import AggregatedSpot

DEFAULT_SCROLL_INTERVAL = 3.0
DEFAULT_RANDOM_CHAR_PERCENT = 20
GLYPHS = string.ascii_uppercase + string.digits

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

BLANK_LINE = " " * DISPLAY_WIDTH


class DisplayMode(Enum):
    SPOT_ROTATION = "spot_rotation"
    IDLE_ANIMATION = "idle_animation"


@dataclass(slots=True)
class IdleGlyph:
    character: str = " "
    row: int = 0
    column: int = 0
    second: Optional[int] = None
    showing: bool = False
    shown_second: Optional[int] = None


@dataclass(slots=True)
class DisplayState:
    lines: list[str] = field(default_factory=lambda: [BLANK_LINE, BLANK_LINE])
    scroll_index: int = 0
    last_advance: Optional[float] = None
    mode: Optional[DisplayMode] = None
    glyph: IdleGlyph = field(default_factory=IdleGlyph)


class VfdScheduler:
    """Drive a :class:`DisplaySink` from the current spot snapshot.

    :meth:`tick` takes the monotonic time and the wall-clock time as explicit
    arguments so callers capture both once per tick. A failed sink write is
    returned as a status string and leaves the state untouched, so the next
    tick retries.
    """

    def __init__(
        self,
        sink: DisplaySink | None = None,
        *,
        scroll_interval: float = DEFAULT_SCROLL_INTERVAL,
        random_char_percent: int = DEFAULT_RANDOM_CHAR_PERCENT,
        force_random_mode: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        self._sink = sink
        self._scroll_interval = float(scroll_interval)
        self._random_char_percent = _clamp_percent(random_char_percent)
        self._force_random_mode = force_random_mode
        self._rng = rng or random.Random()
        self._state = DisplayState()

    @property
    def state(self) -> DisplayState:
        return self._state

    @property
    def sink(self) -> DisplaySink | None:
        return self._sink

    @property
    def scroll_interval(self) -> float:
        return self._scroll_interval

    @property
    def random_char_percent(self) -> int:
        return self._random_char_percent

    @property
    def force_random_mode(self) -> bool:
        return self._force_random_mode

    def attach(self, sink: DisplaySink) -> None:
        self._sink = sink
        self._state = DisplayState()

    def detach(self) -> None:
        self._sink = None
        self._state.lines = [BLANK_LINE, BLANK_LINE]

    def set_scroll_interval(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("scroll interval must not be negative")
        self._scroll_interval = float(seconds)

    def set_random_char_percent(self, percent: int) -> None:
        self._random_char_percent = _clamp_percent(percent)

    def set_force_random_mode(self, enabled: bool) -> None:
        self._force_random_mode = bool(enabled)

    def is_in_random_mode(self) -> bool:
        return self._force_random_mode

    def preview(self) -> tuple[str, str]:
        return self._state.lines[0], self._state.lines[1]

    def blank(self) -> Optional[str]:
        """Clear the display now."""
        if self._sink is None:
            return None
        error = self._write(CLEAR_DISPLAY)
        if error is None:
            self._state.lines = [BLANK_LINE, BLANK_LINE]
        return error

    def tick(
        self,
        spots: Sequence[AggregatedSpot],
        now: float,
        wall_time: float,
    ) -> Optional[str]:
        """Advance the display; return a status message if the sink failed."""
        if self._sink is None:
            return None
        if self._force_random_mode or not spots:
            mode = DisplayMode.IDLE_ANIMATION
        else:
            mode = DisplayMode.SPOT_ROTATION

        if mode is not self._state.mode:
            error = self._enter_mode(mode)
            if error is not None:
                return error

        if mode is DisplayMode.IDLE_ANIMATION:
            return self._tick_idle(wall_time)
        return self._tick_rotation(spots, now)

    def _enter_mode(self, mode: DisplayMode) -> Optional[str]:
        if mode is DisplayMode.IDLE_ANIMATION:
            error = self.blank()
            if error is not None:
                return error
            self._state.glyph.showing = False
            self._state.glyph.shown_second = None
        logger.debug("Display mode -> %s", mode.value)
        self._state.mode = mode
        self._state.last_advance = None
        return None

    def _tick_rotation(self, spots: Sequence[AggregatedSpot], now: float) -> Optional[str]:
        state = self._state
        if state.last_advance is not None and now - state.last_advance < self._scroll_interval:
            return None

        count = len(spots)
        advance_cursor = False
        if count == 1:
            line1, line2 = spots[0].to_display_string(), ""
        elif count == 2:
            line1, line2 = spots[0].to_display_string(), spots[1].to_display_string()
        else:
            first = state.scroll_index % count
            line1 = spots[first].to_display_string()
            line2 = spots[(first + 1) % count].to_display_string()
            advance_cursor = True

        error = self._render(line1, line2)
        if error is not None:
            return error
        state.last_advance = now
        if advance_cursor:
            state.scroll_index = (state.scroll_index + 1) % count
        return None

    def _tick_idle(self, wall_time: float) -> Optional[str]:
        glyph = self._state.glyph
        second = int(wall_time // 1)
        ms_in_second = int((wall_time - second) * 1000)
        threshold_ms = self._random_char_percent * 10
        should_show = self._random_char_percent > 0 and ms_in_second < threshold_ms

        if second != glyph.second:
            glyph.second = second
            glyph.character = self._rng.choice(GLYPHS)
            glyph.column = self._rng.randrange(DISPLAY_WIDTH)
            glyph.row = self._rng.randrange(DISPLAY_LINES)

        if should_show and (not glyph.showing or glyph.shown_second != second):
            rows = [BLANK_LINE, BLANK_LINE]
            row = rows[glyph.row]
            rows[glyph.row] = row[: glyph.column] + glyph.character + row[glyph.column + 1 :]
            error = self._render(rows[0], rows[1])
            if error is not None:
                return error
            glyph.showing = True
            glyph.shown_second = second
        elif not should_show and glyph.showing:
            error = self.blank()
            if error is not None:
                return error
            glyph.showing = False
        return None

    def _render(self, line1: str, line2: str) -> Optional[str]:
        error = self._write(encode_frame(line1, line2))
        if error is None:
            self._state.lines = [format_line(line1), format_line(line2)]
        return error

    def _write(self, data: bytes) -> Optional[str]:
        if self._sink is None:
            return None
        try:
            self._sink.write(data)
        except (DisplaySinkError, OSError) as exc:
            logger.warning("VFD write failed: %s", exc)
            return f"Display write failed: {exc}"
        return None


def _clamp_percent(percent: int) -> int:
    return max(0, min(100, int(percent)))
