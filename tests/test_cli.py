"""Tests for the CLI entry points."""

from __future__ import annotations

import logging
import socket
from argparse import Namespace

import pytest

import rbn_vfd.cli as cli
from rbn_vfd import __version__
from rbn_vfd.app import RbnVfdApp
from rbn_vfd.cli import main
from rbn_vfd.commands import run as run_module
from rbn_vfd.config import CONFIG_ENV_VAR, AppConfig, RadioConfig, load_config, save_config
from rbn_vfd.rbn.client import RbnClientConfig


@pytest.fixture
def isolated(monkeypatch, tmp_path):
    import os

    for key in list(os.environ):
        if key.startswith("RBN_VFD_"):
            monkeypatch.delenv(key, raising=False)
    path = tmp_path / "config.toml"
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    monkeypatch.setenv("RBN_VFD_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setattr(cli, "_configure_logging", lambda level: None)
    return path


def test_cli_version_flag(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])

    assert excinfo.value.code == 0
    assert f"rbn-vfd {__version__}" in capsys.readouterr().out


def test_resolve_log_level_prefers_argument(monkeypatch) -> None:
    monkeypatch.setenv("RBN_VFD_LOG_LEVEL", "error")
    assert cli._resolve_log_level(" 42 ") == 42
    assert cli._resolve_log_level("debug") == logging.DEBUG


def test_resolve_log_level_falls_back_to_env(monkeypatch) -> None:
    monkeypatch.setenv("RBN_VFD_LOG_LEVEL", "warning")
    assert cli._resolve_log_level(None) == logging.WARNING

    monkeypatch.delenv("RBN_VFD_LOG_LEVEL")
    assert cli._resolve_log_level("bogus") == logging.INFO


def test_configure_logging_handles_oserror(monkeypatch) -> None:
    monkeypatch.delenv("RBN_VFD_LOG_LEVEL", raising=False)

    class BrokenPath:
        def __truediv__(self, _name: str):  # pragma: no cover - simple helper
            return self

        def mkdir(self, *_, **__):
            raise OSError("boom")

    monkeypatch.setattr(cli.config_module, "get_data_dir", lambda: BrokenPath())

    calls: dict[str, object] = {}
    monkeypatch.setattr(cli.logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

    cli._configure_logging("debug")

    handlers = calls.get("handlers")
    assert isinstance(handlers, list)
    assert len(handlers) == 1
    assert calls.get("level") == logging.DEBUG
    assert calls.get("force") is True


def test_config_init_and_show(isolated, capsys) -> None:
    assert main(["config", "init", "--callsign", "w6jsv", "--serial-port", "COM3"]) == 0

    cfg = load_config(isolated)
    assert cfg.callsign == "W6JSV"
    assert cfg.serial_port == "COM3"

    assert main(["config", "show"]) == 0
    out = capsys.readouterr().out
    assert str(isolated) in out
    assert "W6JSV" in out


def test_config_init_refuses_overwrite(isolated) -> None:
    save_config(AppConfig(callsign="K1ABC"), isolated)

    assert main(["config", "init", "--callsign", "W6JSV"]) == 1
    assert load_config(isolated).callsign == "K1ABC"

    assert main(["config", "init", "--callsign", "W6JSV", "--force"]) == 0
    assert load_config(isolated).callsign == "W6JSV"


def test_config_reset_restores_filters(isolated) -> None:
    save_config(AppConfig(callsign="W6JSV", min_snr=30, scroll_interval_seconds=9), isolated)

    assert main(["config", "reset"]) == 0

    cfg = load_config(isolated)
    assert cfg.callsign == "W6JSV"
    assert cfg.min_snr == 10
    assert cfg.scroll_interval_seconds == 3


def test_config_show_reports_invalid_file(isolated) -> None:
    isolated.write_text("version = 7\n", encoding="utf-8")

    assert main(["config", "show"]) == 1


def test_config_ports_lists_devices(isolated, monkeypatch, capsys) -> None:
    monkeypatch.setattr(
        "rbn_vfd.commands.config.available_ports", lambda: ["/dev/ttyUSB0", "/dev/ttyACM0"]
    )

    assert main(["config", "ports"]) == 0
    assert capsys.readouterr().out.splitlines() == ["/dev/ttyUSB0", "/dev/ttyACM0"]


def test_build_config_layers_cli_over_file(isolated, monkeypatch) -> None:
    save_config(AppConfig(callsign="K1ABC", min_snr=12, max_age_minutes=7), isolated)
    monkeypatch.setenv("RBN_VFD_FILTERS__MAX_AGE_MINUTES", "4")
    args = Namespace(config=None, callsign="w6jsv", min_snr=None, max_age=None, scroll=5)

    cfg = run_module.build_config(args)

    assert cfg.callsign == "W6JSV"
    assert cfg.min_snr == 12
    assert cfg.max_age_minutes == 4
    assert cfg.scroll_interval_seconds == 5


def test_run_requires_callsign(isolated) -> None:
    assert main(["run", "--no-display", "--duration", "0.1"]) == 1


class _FakeClient:
    def __init__(self, config: RbnClientConfig) -> None:
        self.config = config
        self.identities: list[str] = []
        self.closed = False

    def connect(self, identity: str) -> None:
        self.identities.append(identity)

    def disconnect(self) -> None:
        pass

    def drain_events(self) -> list:
        return []

    def close(self) -> None:
        self.closed = True


def test_run_loop_stops_after_duration(isolated, monkeypatch) -> None:
    created: list[RbnVfdApp] = []

    def _factory(config: AppConfig) -> RbnVfdApp:
        app = RbnVfdApp(config, client_factory=_FakeClient)
        created.append(app)
        return app

    monkeypatch.setattr(run_module, "RbnVfdApp", _factory)

    code = main(
        ["run", "--callsign", "w6jsv", "--no-display", "--quiet", "--duration", "0.3"]
    )

    assert code == 0
    app = created[0]
    assert app.config.callsign == "W6JSV"
    assert app.client is None
    assert app.is_connected is False


def test_reload_pushes_new_settings_to_running_app(isolated) -> None:
    save_config(AppConfig(callsign="W6JSV", min_snr=10), isolated)
    app = RbnVfdApp(run_module.build_config(Namespace(config=None)), client_factory=_FakeClient)

    unused = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    unused.bind(("127.0.0.1", 0))
    closed_port = unused.getsockname()[1]
    unused.close()
    save_config(
        AppConfig(
            callsign="K1ABC",
            min_snr=25,
            max_age_minutes=2,
            scroll_interval_seconds=7,
            random_char_percent=60,
            radio=RadioConfig(enabled=True, rigctld_host="127.0.0.1", rigctld_port=closed_port),
        ),
        isolated,
    )

    assert run_module._reload(app, Namespace(config=None)) is True

    assert app.config.callsign == "W6JSV"
    assert app.store.min_snr == 25
    assert app.store.max_age_seconds == 120.0
    assert app.scheduler.scroll_interval == 7.0
    assert app.scheduler.random_char_percent == 60
    assert app.radio.backend_name == "rigctld"
    assert app.radio_error is not None
    assert app.radio_error.startswith("Connection failed")


def test_reload_keeps_settings_when_config_invalid(isolated) -> None:
    save_config(AppConfig(callsign="W6JSV", min_snr=15), isolated)
    app = RbnVfdApp(run_module.build_config(Namespace(config=None)), client_factory=_FakeClient)
    isolated.write_text("version = 9\n", encoding="utf-8")

    assert run_module._reload(app, Namespace(config=None)) is False
    assert app.store.min_snr == 15
