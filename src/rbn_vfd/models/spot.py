"""Spot records produced by the RBN feed and the aggregated display view."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field

DISPLAY_TEXT_WIDTH = 20


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not to even)."""
    return int(math.floor(value + 0.5))


def spot_key(callsign: str, frequency_khz: float) -> tuple[str, int]:
    """Return the aggregation key: spotted callsign plus the nearest whole kHz."""
    return callsign, round_half_up(frequency_khz)


@dataclass(frozen=True, slots=True)
class RawSpot:
    """One report from the feed. Never mutated once parsed."""

    spotter_callsign: str
    spotted_callsign: str
    frequency_khz: float
    snr: int
    speed_wpm: int
    mode: str
    timestamp: float = field(default_factory=time.monotonic)

    @property
    def key(self) -> tuple[str, int]:
        return spot_key(self.spotted_callsign, self.frequency_khz)


@dataclass(slots=True)
class AggregatedSpot:
    """Running statistics for every raw spot sharing a callsign/kHz key."""

    callsign: str
    frequency_khz: float
    center_frequency_khz: float
    highest_snr: int
    average_speed: float
    spot_count: int
    last_seen: float
    mode: str = "CW"

    @classmethod
    def from_raw(cls, raw: RawSpot) -> AggregatedSpot:
        return cls(
            callsign=raw.spotted_callsign,
            frequency_khz=raw.frequency_khz,
            center_frequency_khz=float(round_half_up(raw.frequency_khz)),
            highest_snr=raw.snr,
            average_speed=float(raw.speed_wpm),
            spot_count=1,
            last_seen=raw.timestamp,
            mode=raw.mode,
        )

    def update(self, raw: RawSpot) -> None:
        """Fold ``raw`` into the running means and the SNR maximum."""
        self.spot_count += 1
        self.average_speed += (raw.speed_wpm - self.average_speed) / self.spot_count
        self.frequency_khz += (raw.frequency_khz - self.frequency_khz) / self.spot_count
        if raw.snr > self.highest_snr:
            self.highest_snr = raw.snr
        self.last_seen = raw.timestamp
        self.mode = raw.mode

    @property
    def key(self) -> tuple[str, int]:
        return self.callsign, int(self.center_frequency_khz)

    def age_seconds(self, now: float | None = None) -> float:
        current = time.monotonic() if now is None else now
        return max(0.0, current - self.last_seen)

    def age_fraction(self, max_age: float, now: float | None = None) -> float:
        """Return 0.0 for a fresh spot up to 1.0 once ``max_age`` has elapsed."""
        if max_age <= 0:
            return 1.0
        return min(1.0, self.age_seconds(now) / max_age)

    def to_display_string(self) -> str:
        """Format as ``FFFFF.F WW CCCCCCCCC`` (exactly 20 characters).

        A frequency or speed wider than its field shortens the callsign.
        """
        speed = round_half_up(self.average_speed)
        prefix = f"{self.frequency_khz:7.1f} {speed:2d} "
        width = max(0, DISPLAY_TEXT_WIDTH - len(prefix))
        call = self.callsign[:width]
        return f"{prefix}{call:<{width}}"[:DISPLAY_TEXT_WIDTH]
