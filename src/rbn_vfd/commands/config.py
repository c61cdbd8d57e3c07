"""``rbn-vfd config`` subcommands."""

from __future__ import annotations

import logging
from argparse import Namespace

from rbn_vfd import config as config_module
from rbn_vfd.config_layering import load_layered_config
from rbn_vfd.display.sink import available_ports

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def run_config(args: Namespace) -> int:
    action = getattr(args, "action", None)
    if action == "show":
        return _show(args)
    if action == "init":
        return _init(args)
    if action == "reset":
        return _reset(args)
    if action == "ports":
        return _ports()
    logger.error("Unknown config action: %s", action)
    return 2


def _show(args: Namespace) -> int:
    config_path = config_module.resolve_config_path(getattr(args, "config", None))
    try:
        cfg = config_module.AppConfig.from_dict(load_layered_config(config_path))
    except ValueError as exc:
        logger.error("Config invalid: %s", exc)
        return 1
    source = str(config_path) if config_path.exists() else "defaults (no config file)"
    print(f"Configuration ({source}):")
    print(config_module.config_summary(cfg))
    return 0


def _init(args: Namespace) -> int:
    config_path = config_module.resolve_config_path(getattr(args, "config", None))
    if config_path.exists() and not getattr(args, "force", False):
        logger.error("Config already exists at %s; pass --force to overwrite.", config_path)
        return 1
    cfg = config_module.AppConfig(
        callsign=(getattr(args, "callsign", None) or "").strip().upper(),
        serial_port=getattr(args, "serial_port", None) or "",
    )
    written = config_module.save_config(cfg, config_path)
    logger.info("Wrote configuration to %s", written)
    return 0


def _reset(args: Namespace) -> int:
    config_path = config_module.resolve_config_path(getattr(args, "config", None))
    try:
        cfg = config_module.load_config_or_default(config_path)
    except ValueError as exc:
        logger.error("Config invalid: %s", exc)
        return 1
    cfg.reset_filters()
    written = config_module.save_config(cfg, config_path)
    logger.info("Filters reset to defaults in %s", written)
    return 0


def _ports() -> int:
    ports = available_ports()
    if not ports:
        print("No serial ports found")
        return 0
    for port in ports:
        print(port)
    return 0
