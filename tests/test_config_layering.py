"""Tests for configuration layering."""

from __future__ import annotations

from pathlib import Path

import pytest

from rbn_vfd.config_layering import (
    _deep_merge,
    _extract_env_overrides,
    _parse_env_value,
    load_layered_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    import os

    for key in list(os.environ):
        if key.startswith("RBN_VFD_"):
            monkeypatch.delenv(key, raising=False)


def test_load_layered_config_file_only(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('[connection]\ncallsign = "W6JSV"\n', encoding="utf-8")

    result = load_layered_config(path)

    assert result == {"connection": {"callsign": "W6JSV"}}


def test_load_layered_config_missing_file(tmp_path: Path) -> None:
    assert load_layered_config(tmp_path / "absent.toml") == {}


def test_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[filters]\nmin_snr = 10\nmax_age_minutes = 5\n", encoding="utf-8")
    monkeypatch.setenv("RBN_VFD_FILTERS__MIN_SNR", "18")

    result = load_layered_config(path)

    assert result == {"filters": {"min_snr": 18, "max_age_minutes": 5}}


def test_cli_overrides_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RBN_VFD_CONNECTION__CALLSIGN", "ENV1")

    result = load_layered_config(
        tmp_path / "absent.toml", {"connection": {"callsign": "CLI1"}}
    )

    assert result == {"connection": {"callsign": "CLI1"}}


def test_reserved_env_vars_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RBN_VFD_CONFIG_PATH", str(tmp_path / "x.toml"))
    monkeypatch.setenv("RBN_VFD_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("RBN_VFD_LOG_LEVEL", "debug")

    assert _extract_env_overrides() == {}


def test_extract_env_overrides_sections(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RBN_VFD_DISPLAY__FORCE_RANDOM_MODE", "true")
    monkeypatch.setenv("RBN_VFD_RADIO__RIGCTLD_HOST", "shack-pi")
    monkeypatch.setenv("RBN_VFD_VERSION", "1")

    assert _extract_env_overrides() == {
        "display": {"force_random_mode": True},
        "radio": {"rigctld_host": "shack-pi"},
        "version": 1,
    }


def test_deep_merge_nested() -> None:
    base = {"filters": {"min_snr": 10, "max_age_minutes": 10}, "version": 1}
    override = {"filters": {"min_snr": 20}}

    assert _deep_merge(base, override) == {
        "filters": {"min_snr": 20, "max_age_minutes": 10},
        "version": 1,
    }
    assert base["filters"]["min_snr"] == 10


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("TRUE", True), ("false", False), ("42", 42), ("2.5", 2.5), ("COM3", "COM3")],
)
def test_parse_env_value(raw: str, expected) -> None:
    assert _parse_env_value(raw) == expected
