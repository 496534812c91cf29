"""CLI argument parsing and main entry point.

Provides two subcommands:

* ``health-sentinel run``: run the monitor (headless, or behind the status API).
* ``health-sentinel check``: validate a config file and print the targets.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Optional

import uvicorn

from health_sentinel.config.loader import load_sentinel_config
from health_sentinel.config.schema import SentinelConfig
from health_sentinel.constants import (
    CONFIG_ENV_VAR,
    DEFAULT_LOG_LEVEL,
    SERVER_NAME,
    SERVER_VERSION,
)
from health_sentinel.display.logging_config import setup_logging
from health_sentinel.errors import ConfigurationError
from health_sentinel.runtime.service import SentinelService, build_provider
from health_sentinel.server.app import create_app

module_logger = logging.getLogger(__name__)

# Config file search order (first match wins)
_CONFIG_SEARCH_ORDER = ("config.yaml", "config.yml")


def _resolve_config_path(config_path: Optional[str]) -> str:
    """CLI flag, then ``HEALTH_SENTINEL_CONFIG``, then ``./config.y(a)ml``."""
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR)
    if config_path is None:
        for name in _CONFIG_SEARCH_ORDER:
            candidate = os.path.join(os.getcwd(), name)
            if os.path.isfile(candidate):
                return candidate
        config_path = os.path.join(os.getcwd(), _CONFIG_SEARCH_ORDER[0])
    return os.path.abspath(config_path)


# ── ``health-sentinel run`` ─────────────────────────────────────────────


async def _run_headless(service: SentinelService) -> None:
    """Run the monitor until SIGINT/SIGTERM."""
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_requested.set)

    await service.start()
    try:
        await stop_requested.wait()
        module_logger.info("Stop signal received; finishing the current round.")
    finally:
        await service.stop()


async def _run_server(service: SentinelService, config: SentinelConfig, log_lvl: str) -> None:
    """Serve the status API; its lifespan starts and stops the monitor."""
    uvicorn_cfg = uvicorn.Config(
        app=create_app(service),
        host=config.server.host,
        port=config.server.port,
        log_config=None,
        log_level=log_lvl.lower() if log_lvl == "DEBUG" else "warning",
    )
    module_logger.info(
        "Starting status API: http://%s:%s",
        config.server.host,
        config.server.port,
    )
    await uvicorn.Server(uvicorn_cfg).serve()


def _cmd_run(args: argparse.Namespace) -> None:
    """Entry-point for ``health-sentinel run``."""
    log_fpath, log_lvl = setup_logging(args.log_level, console=not args.quiet)
    module_logger.info(
        "---- %s v%s starting (log level: %s, log file: %s) ----",
        SERVER_NAME,
        SERVER_VERSION,
        log_lvl,
        log_fpath,
    )

    cfg_path = _resolve_config_path(args.config)
    module_logger.info("Configuration file path resolved to: %s", cfg_path)
    try:
        config = load_sentinel_config(cfg_path)
        SentinelService.init_telemetry(config)
        service = SentinelService(config)
    except ConfigurationError as exc:
        module_logger.error("Startup failed: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        if config.server.enabled:
            asyncio.run(_run_server(service, config, log_lvl))
        else:
            asyncio.run(_run_headless(service))
    except KeyboardInterrupt:
        module_logger.info("%s interrupted by KeyboardInterrupt.", SERVER_NAME)
    finally:
        module_logger.info("%s has shut down.", SERVER_NAME)


# ── ``health-sentinel check`` ───────────────────────────────────────────


def _cmd_check(args: argparse.Namespace) -> None:
    """Entry-point for ``health-sentinel check``."""
    cfg_path = _resolve_config_path(args.config)
    try:
        config = load_sentinel_config(cfg_path)
        provider = build_provider(config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    monitor_cfg = config.monitor
    targets = list(provider.current_targets())
    print(f"Configuration OK: {cfg_path}")
    print(
        f"  thresholds: unhealthy={monitor_cfg.unhealthy_threshold} "
        f"healthy={monitor_cfg.healthy_threshold}"
    )
    print(f"  probe: timeout={monitor_cfg.probe_timeout}s interval={monitor_cfg.probe_interval}s")
    print(f"  targets ({len(targets)}):")
    for target in targets:
        print(f"    - {target}")


# ── CLI parser construction ──────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with run/check subcommands."""
    parser = argparse.ArgumentParser(
        description=f"{SERVER_NAME} v{SERVER_VERSION}",
    )
    subparsers = parser.add_subparsers(dest="command")

    # ── run ─────────────────────────────────────────────────────
    sp_run = subparsers.add_parser("run", help="Run the health monitor")
    sp_run.add_argument(
        "--config",
        default=None,
        help=f"Path to the YAML config file (default: ${CONFIG_ENV_VAR} or ./config.yaml)",
    )
    sp_run.add_argument(
        "--log-level",
        default=DEFAULT_LOG_LEVEL.lower(),
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )
    sp_run.add_argument(
        "--quiet",
        action="store_true",
        help="Log to the log file only, not to stderr",
    )
    sp_run.set_defaults(func=_cmd_run)

    # ── check ───────────────────────────────────────────────────
    sp_check = subparsers.add_parser("check", help="Validate a config file and list targets")
    sp_check.add_argument("--config", default=None, help="Path to the YAML config file")
    sp_check.set_defaults(func=_cmd_check)

    return parser


def main() -> None:
    """Program entry point: parse arguments and dispatch to subcommand."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    else:
        args.func(args)
