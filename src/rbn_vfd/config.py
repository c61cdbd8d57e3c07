"""Configuration loading and persistence helpers."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w  # type: ignore[import]

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

from rbn_vfd.rbn.client import RBN_HOST, RBN_PORT

CONFIG_VERSION = 1
CONFIG_ENV_VAR = "RBN_VFD_CONFIG_PATH"
CONFIG_DIR_NAME = "rbn-vfd"
CONFIG_FILENAME = "config.toml"


def _xdg_path(env_var: str, default: Path) -> Path:
    value = os.environ.get(env_var)
    if value:
        return Path(value).expanduser()
    return default


def get_config_dir() -> Path:
    """Return the directory containing configuration files."""
    default = Path.home() / ".config"
    return _xdg_path("XDG_CONFIG_HOME", default) / CONFIG_DIR_NAME


def get_data_dir() -> Path:
    """Return the directory for runtime data/log files."""
    override = os.environ.get("RBN_VFD_DATA_DIR")
    if override:
        return Path(override).expanduser()
    default = Path.home() / ".local" / "share"
    return _xdg_path("XDG_DATA_HOME", default) / CONFIG_DIR_NAME


def get_logs_dir() -> Path:
    return get_data_dir() / "logs"


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Resolve the configuration file path, honouring overrides."""
    if path is not None:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / CONFIG_FILENAME


@dataclass(slots=True)
class RadioConfig:
    """CAT control settings."""

    enabled: bool = False
    backend: str = "rigctld"
    rigctld_host: str = "localhost"
    rigctld_port: int = 4532


@dataclass(slots=True)
class AppConfig:
    """Feed identity, display port, filters and radio settings."""

    callsign: str = ""
    serial_port: str = ""
    min_snr: int = 10
    max_age_minutes: int = 10
    scroll_interval_seconds: int = 3
    random_char_percent: int = 20
    force_random_mode: bool = False
    rbn_host: str = RBN_HOST
    rbn_port: int = RBN_PORT
    radio: RadioConfig = field(default_factory=RadioConfig)

    def __post_init__(self) -> None:
        self.random_char_percent = max(0, min(100, int(self.random_char_percent)))

    def reset_filters(self) -> None:
        """Restore filter and display timing defaults; keep identity and ports."""
        defaults = AppConfig()
        self.min_snr = defaults.min_snr
        self.max_age_minutes = defaults.max_age_minutes
        self.scroll_interval_seconds = defaults.scroll_interval_seconds
        self.random_char_percent = defaults.random_char_percent

    def to_dict(self) -> dict[str, Any]:
        """Convert the configuration to a TOML-serialisable dictionary."""
        return {
            "version": CONFIG_VERSION,
            "connection": {
                "callsign": self.callsign,
                "host": self.rbn_host,
                "port": self.rbn_port,
            },
            "display": {
                "serial_port": self.serial_port,
                "random_char_percent": self.random_char_percent,
                "force_random_mode": self.force_random_mode,
            },
            "filters": {
                "min_snr": self.min_snr,
                "max_age_minutes": self.max_age_minutes,
                "scroll_interval_seconds": self.scroll_interval_seconds,
            },
            "radio": {
                "enabled": self.radio.enabled,
                "backend": self.radio.backend,
                "rigctld_host": self.radio.rigctld_host,
                "rigctld_port": self.radio.rigctld_port,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        """Construct from a dictionary (typically parsed from TOML).

        Missing keys fall back to defaults.
        """
        version = data.get("version", CONFIG_VERSION)
        if version != CONFIG_VERSION:
            raise ValueError(f"Unsupported config version: {version}")

        connection = _section(data, "connection")
        display = _section(data, "display")
        filters = _section(data, "filters")
        radio = _section(data, "radio")
        defaults = cls()
        radio_defaults = RadioConfig()

        try:
            return cls(
                callsign=str(connection.get("callsign", defaults.callsign)).strip().upper(),
                rbn_host=str(connection.get("host", defaults.rbn_host)),
                rbn_port=int(connection.get("port", defaults.rbn_port)),
                serial_port=str(display.get("serial_port", defaults.serial_port)),
                random_char_percent=int(
                    display.get("random_char_percent", defaults.random_char_percent)
                ),
                force_random_mode=_as_bool(
                    display.get("force_random_mode", defaults.force_random_mode)
                ),
                min_snr=int(filters.get("min_snr", defaults.min_snr)),
                max_age_minutes=int(filters.get("max_age_minutes", defaults.max_age_minutes)),
                scroll_interval_seconds=int(
                    filters.get("scroll_interval_seconds", defaults.scroll_interval_seconds)
                ),
                radio=RadioConfig(
                    enabled=_as_bool(radio.get("enabled", radio_defaults.enabled)),
                    backend=str(radio.get("backend", radio_defaults.backend)),
                    rigctld_host=str(radio.get("rigctld_host", radio_defaults.rigctld_host)),
                    rigctld_port=int(radio.get("rigctld_port", radio_defaults.rigctld_port)),
                ),
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid configuration value: {exc}") from exc


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section [{name}] must be a table")
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off", ""}:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load persisted configuration."""
    config_path = resolve_config_path(path)
    with config_path.open("rb") as handle:
        try:
            data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(f"Config file {config_path} is not valid TOML: {exc}") from exc
    return AppConfig.from_dict(data)


def load_config_or_default(path: str | Path | None = None) -> AppConfig:
    """Like :func:`load_config` but a missing file yields defaults."""
    try:
        return load_config(path)
    except FileNotFoundError:
        return AppConfig()


def save_config(config: AppConfig, path: str | Path | None = None) -> Path:
    """Persist configuration to disk and return the file path."""
    config_path = resolve_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    toml_text = tomli_w.dumps(config.to_dict())
    config_path.write_text(toml_text, encoding="utf-8")
    try:
        os.chmod(config_path, stat.S_IRUSR | stat.S_IWUSR)
    except PermissionError:  # pragma: no cover - some FS disallow chmod
        pass
    return config_path


def config_summary(config: AppConfig) -> str:
    """Generate a human-readable summary of key settings."""
    radio = "disabled"
    if config.radio.enabled:
        radio = f"{config.radio.backend} @ {config.radio.rigctld_host}:{config.radio.rigctld_port}"
    return (
        f"  Callsign : {config.callsign or 'not set'}\n"
        f"  RBN      : {config.rbn_host}:{config.rbn_port}\n"
        f"  VFD port : {config.serial_port or 'not set'}\n"
        f"  Filters  : min SNR {config.min_snr} dB, max age {config.max_age_minutes} min\n"
        f"  Display  : scroll {config.scroll_interval_seconds}s, "
        f"idle duty {config.random_char_percent}%"
        f"{' (forced idle)' if config.force_random_mode else ''}\n"
        f"  Radio    : {radio}"
    )
