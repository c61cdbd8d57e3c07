"""Thread-safe store of aggregated spots keyed by callsign and whole kHz."""

from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Callable, Optional

from rbn_vfd.models.spot import AggregatedSpot, RawSpot

DEFAULT_MIN_SNR = 10
DEFAULT_MAX_AGE_MINUTES = 10

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class SpotStore:
    """Deduplicate raw spots into :class:`AggregatedSpot` entries.

    ``add`` drops spots below the minimum SNR; ``purge`` evicts entries not
    seen for longer than the maximum age. An entry whose age equals the
    maximum exactly is kept. Every public method holds a single lock for its
    read-modify-write, so the feed thread and the render loop may share one
    instance.
    """

    def __init__(
        self,
        min_snr: int = DEFAULT_MIN_SNR,
        max_age_minutes: float = DEFAULT_MAX_AGE_MINUTES,
        *,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._spots: dict[tuple[str, int], AggregatedSpot] = {}
        self._min_snr = int(min_snr)
        self._max_age = float(max_age_minutes) * 60.0
        self._clock = clock or time.monotonic

    @property
    def min_snr(self) -> int:
        with self._lock:
            return self._min_snr

    @property
    def max_age_seconds(self) -> float:
        with self._lock:
            return self._max_age

    def set_min_snr(self, snr: int) -> None:
        with self._lock:
            self._min_snr = int(snr)

    def set_max_age_minutes(self, minutes: float) -> None:
        self.set_max_age_seconds(float(minutes) * 60.0)

    def set_max_age_seconds(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("max age must not be negative")
        with self._lock:
            self._max_age = float(seconds)

    def add(self, raw: RawSpot) -> bool:
        """Aggregate ``raw``; return False when it fell below the SNR filter."""
        key = raw.key
        with self._lock:
            if raw.snr < self._min_snr:
                return False
            existing = self._spots.get(key)
            if existing is None:
                self._spots[key] = AggregatedSpot.from_raw(raw)
            else:
                existing.update(raw)
        return True

    def purge(self, now: float | None = None) -> int:
        """Remove stale entries and return how many were dropped."""
        current = self._clock() if now is None else now
        with self._lock:
            cutoff = current - self._max_age
            stale = [key for key, spot in self._spots.items() if spot.last_seen < cutoff]
            for key in stale:
                del self._spots[key]
        if stale:
            logger.debug("Purged %d stale spot(s)", len(stale))
        return len(stale)

    def query(self, now: float | None = None) -> list[AggregatedSpot]:
        """Return copies of the entries passing the current filters.

        Ordered by ascending frequency, then callsign.
        """
        current = self._clock() if now is None else now
        with self._lock:
            cutoff = current - self._max_age
            snapshot = [
                copy.copy(spot)
                for spot in self._spots.values()
                if spot.highest_snr >= self._min_snr and spot.last_seen >= cutoff
            ]
        snapshot.sort(key=lambda spot: (spot.frequency_khz, spot.callsign))
        return snapshot

    def spots_by_recency(self, now: float | None = None) -> list[AggregatedSpot]:
        """Same filtered snapshot as :meth:`query`, most recently seen first."""
        spots = self.query(now)
        spots.sort(key=lambda spot: (-spot.last_seen, spot.callsign))
        return spots

    def count(self) -> int:
        with self._lock:
            return len(self._spots)

    def clear(self) -> None:
        with self._lock:
            self._spots.clear()


__all__ = ["SpotStore", "DEFAULT_MIN_SNR", "DEFAULT_MAX_AGE_MINUTES"]
