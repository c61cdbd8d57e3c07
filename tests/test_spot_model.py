"""Tests for the spot data model."""

from __future__ import annotations

import pytest

from rbn_vfd.models.spot import AggregatedSpot, RawSpot, round_half_up, spot_key
from rbn_vfd.rbn.parser import parse_spot_line


def _raw(**overrides) -> RawSpot:
    values = dict(
        spotter_callsign="W1AW",
        spotted_callsign="WO6W",
        frequency_khz=14033.0,
        snr=24,
        speed_wpm=22,
        mode="CW",
        timestamp=100.0,
    )
    values.update(overrides)
    return RawSpot(**values)


def test_display_string_matches_vfd_layout() -> None:
    raw = parse_spot_line("DX de W1AW-#: 14033.0 WO6W CW 24 dB 22 WPM\r\n")
    assert raw is not None

    text = AggregatedSpot.from_raw(raw).to_display_string()

    assert text == "14033.0 22 WO6W     "
    assert len(text) == 20


def test_display_string_truncates_long_callsign() -> None:
    spot = AggregatedSpot.from_raw(
        _raw(spotted_callsign="VK2ABC/QRP", frequency_khz=7001.3, speed_wpm=8)
    )

    text = spot.to_display_string()

    assert text == " 7001.3  8 VK2ABC/QR"
    assert len(text) == 20


def test_display_string_shortens_callsign_for_wide_frequency() -> None:
    spot = AggregatedSpot.from_raw(
        _raw(spotted_callsign="VK2ABC/QRP", frequency_khz=144050.0, speed_wpm=22)
    )

    text = spot.to_display_string()

    assert text == "144050.0 22 VK2ABC/Q"
    assert len(text) == 20


def test_display_string_rounds_average_speed_half_up() -> None:
    spot = AggregatedSpot.from_raw(_raw(speed_wpm=22))
    spot.update(_raw(speed_wpm=23))

    assert spot.average_speed == pytest.approx(22.5)
    assert spot.to_display_string()[8:10] == "23"


def test_update_uses_incremental_means_and_max_snr() -> None:
    spot = AggregatedSpot.from_raw(_raw(frequency_khz=14033.0, speed_wpm=20, snr=10))
    spot.update(_raw(frequency_khz=14033.2, speed_wpm=26, snr=30, timestamp=101.0))
    spot.update(_raw(frequency_khz=14032.9, speed_wpm=23, snr=15, timestamp=102.0))

    assert spot.spot_count == 3
    assert spot.frequency_khz == pytest.approx((14033.0 + 14033.2 + 14032.9) / 3)
    assert spot.average_speed == pytest.approx(23.0)
    assert spot.highest_snr == 30
    assert spot.last_seen == 102.0


def test_update_carries_latest_mode() -> None:
    spot = AggregatedSpot.from_raw(_raw(mode="CW"))
    spot.update(_raw(mode="RTTY"))

    assert spot.mode == "RTTY"


def test_spot_key_rounds_half_up() -> None:
    assert spot_key("WO6W", 14033.4) == ("WO6W", 14033)
    assert spot_key("WO6W", 14032.5) == ("WO6W", 14033)
    assert spot_key("WO6W", 14033.5) == ("WO6W", 14034)
    assert round_half_up(2.5) == 3


def test_age_helpers_use_supplied_clock() -> None:
    spot = AggregatedSpot.from_raw(_raw(timestamp=100.0))

    assert spot.age_seconds(now=130.0) == pytest.approx(30.0)
    assert spot.age_fraction(60.0, now=130.0) == pytest.approx(0.5)
    assert spot.age_fraction(60.0, now=1000.0) == 1.0
    assert spot.key == ("WO6W", 14033)
