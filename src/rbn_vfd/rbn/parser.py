"""Parse ``DX de`` spot lines from the RBN telnet feed."""

from __future__ import annotations

import re
import time

from rbn_vfd.models.spot import RawSpot

SPOT_PREFIX = "DX de "

# DX de W1AW-#:  14033.0  WO6W  CW  24 dB  22 WPM  CQ  1234Z
_SPOT_RE = re.compile(
    r"DX de (\S+):\s+(\d+\.?\d*)\s+(\S+)\s+(\w+)\s+(\d+)\s+dB\s+(\d+)\s+WPM"
)
_SPOTTER_SUFFIX = "-#:"


def parse_spot_line(line: str, *, timestamp: float | None = None) -> RawSpot | None:
    """Return a :class:`RawSpot` for a spot line, or ``None``.

    Lines without the ``DX de`` prefix, and prefixed lines that do not match
    the spot grammar, are not errors; they simply yield ``None``.
    """
    if not line.startswith(SPOT_PREFIX):
        return None
    match = _SPOT_RE.match(line)
    if match is None:
        return None
    spotter, freq_text, spotted, mode, snr_text, speed_text = match.groups()
    try:
        frequency_khz = float(freq_text)
        snr = int(snr_text)
        speed_wpm = int(speed_text)
    except ValueError:
        return None
    return RawSpot(
        spotter_callsign=spotter.rstrip(_SPOTTER_SUFFIX),
        spotted_callsign=spotted,
        frequency_khz=frequency_khz,
        snr=snr,
        speed_wpm=speed_wpm,
        mode=mode,
        timestamp=time.monotonic() if timestamp is None else timestamp,
    )
