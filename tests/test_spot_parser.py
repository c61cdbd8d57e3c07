"""Tests for RBN spot line parsing."""

from __future__ import annotations

import pytest

from rbn_vfd.rbn.parser import parse_spot_line


def test_parse_spot_line_extracts_fields() -> None:
    spot = parse_spot_line(
        "DX de W1AW-#: 14033.0 WO6W CW 24 dB 22 WPM\r\n", timestamp=5.0
    )

    assert spot is not None
    assert spot.spotter_callsign == "W1AW"
    assert spot.spotted_callsign == "WO6W"
    assert spot.frequency_khz == pytest.approx(14033.0)
    assert spot.mode == "CW"
    assert spot.snr == 24
    assert spot.speed_wpm == 22
    assert spot.timestamp == 5.0


def test_parse_spot_line_real_feed_spacing() -> None:
    line = "DX de DK9IP-#:    7026.3  OK1FFU       CW    12 dB  27 WPM  CQ      1905Z\r\n"

    spot = parse_spot_line(line)

    assert spot is not None
    assert spot.spotter_callsign == "DK9IP"
    assert spot.spotted_callsign == "OK1FFU"
    assert spot.frequency_khz == pytest.approx(7026.3)
    assert (spot.snr, spot.speed_wpm) == (12, 27)


def test_parse_spot_line_integer_frequency() -> None:
    spot = parse_spot_line("DX de KM3T: 3525 N0XYZ CW 8 dB 18 WPM\n")

    assert spot is not None
    assert spot.spotter_callsign == "KM3T"
    assert spot.frequency_khz == pytest.approx(3525.0)


@pytest.mark.parametrize(
    "line",
    [
        "",
        "Welcome to the RBN telnet server\r\n",
        "please enter your callsign: ",
        "dx de W1AW-#: 14033.0 WO6W CW 24 dB 22 WPM",
        "To ALL de SKIMMER: hello",
    ],
)
def test_parse_spot_line_ignores_other_lines(line: str) -> None:
    assert parse_spot_line(line) is None


@pytest.mark.parametrize(
    "line",
    [
        "DX de W1AW-#: 14033.0 WO6W CW",
        "DX de W1AW-#: abc WO6W CW 24 dB 22 WPM",
        "DX de W1AW-#: 14033.0 WO6W CW -3 dB 22 WPM",
        "DX de W1AW-#: 14033.0 WO6W CW 24 dB fast WPM",
        "DX de W1AW-# 14033.0 WO6W CW 24 dB 22 WPM",
    ],
)
def test_parse_spot_line_drops_malformed_spots(line: str) -> None:
    assert parse_spot_line(line) is None
