"""Command line entry point for rbn-vfd."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time

from rbn_vfd import __version__
from rbn_vfd import config as config_module

_LOG_LEVEL_ENV = "RBN_VFD_LOG_LEVEL"


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", help="Path to config.toml")
    p.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Logging level",
    )
    p.add_argument("--no-color", action="store_true", help="Disable ANSI colors")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rbn-vfd",
        description="Show Reverse Beacon Network spots on a 2x20 VFD",
    )
    parser.add_argument("--version", action="version", version=f"rbn-vfd {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Connect to RBN and drive the display")
    _add_common_flags(run)
    run.add_argument("--callsign", help="Callsign used to log in to the RBN feed")
    run.add_argument("--serial-port", help="Serial port of the VFD (e.g. /dev/ttyUSB0)")
    run.add_argument("--no-display", action="store_true", help="Run without opening the VFD")
    run.add_argument("--rbn-host", help="RBN telnet host")
    run.add_argument("--rbn-port", type=int, help="RBN telnet port")
    run.add_argument("--min-snr", type=int, help="Drop spots below this SNR (dB)")
    run.add_argument("--max-age", type=int, help="Forget spots after this many minutes")
    run.add_argument("--scroll", type=int, help="Seconds between display rotations")
    run.add_argument(
        "--random-char-percent",
        type=int,
        help="Idle animation duty cycle, 0-100",
    )
    run.add_argument(
        "--force-random",
        action="store_true",
        default=None,
        help="Always show the idle animation",
    )
    run.add_argument("--duration", type=float, help="Stop after this many seconds")
    run.add_argument("--quiet", action="store_true", help="Suppress the spot table")

    cfg = subparsers.add_parser("config", help="Inspect or write the config file")
    _add_common_flags(cfg)
    cfg_sub = cfg.add_subparsers(dest="action", required=True)
    cfg_sub.add_parser("show", help="Print the effective configuration")
    init = cfg_sub.add_parser("init", help="Write a config file with defaults")
    init.add_argument("--callsign", help="Callsign to store")
    init.add_argument("--serial-port", help="Serial port to store")
    init.add_argument("--force", action="store_true", help="Overwrite an existing file")
    cfg_sub.add_parser("reset", help="Reset filters and display timing to defaults")
    cfg_sub.add_parser("ports", help="List serial ports")

    return parser


def _resolve_log_level(candidate: str | None) -> int:
    aliases = {
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
    }
    for value in (candidate, os.getenv(_LOG_LEVEL_ENV)):
        if not value:
            continue
        stripped = value.strip()
        if not stripped:
            continue
        lower = stripped.lower()
        if lower in aliases:
            return aliases[lower]
        if stripped.isdigit():
            return int(stripped)
    return logging.INFO


def _configure_logging(level_name: str | None) -> None:
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("%(message)s"))
    handlers: list[logging.Handler] = [stream_handler]

    try:
        log_dir = config_module.get_logs_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "rbn-vfd.log", encoding="utf-8")
        file_formatter = logging.Formatter(
            "%(asctime)sZ %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
        file_formatter.converter = time.gmtime
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)
    except OSError:
        pass

    logging.basicConfig(level=_resolve_log_level(level_name), handlers=handlers, force=True)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(getattr(args, "log_level", None))

    if args.command == "run":
        from rbn_vfd.commands.run import run_display

        return run_display(args)
    if args.command == "config":
        from rbn_vfd.commands.config import run_config

        return run_config(args)
    parser.error("Unknown command")
    return 2


if __name__ == "__main__":
    sys.exit(main())
