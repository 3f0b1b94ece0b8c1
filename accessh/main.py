"""Accessh entry point.

Runs the SSH server when `settings.ssh.enabled` is set, otherwise one
session on the local terminal.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import asyncssh
from dotenv import load_dotenv

from accessh import __version__
from accessh.config import AccesshConfig, ConfigError, ConfigSource, resolve_config_path
from accessh.local.app import AccesshApp
from accessh.locations import build_location_table
from accessh.logging_config import setup_logging
from accessh.paths import LOCAL_LOG_PATH
from accessh.ssh.supervisor import run_ssh_server

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="accessh", description="Interactive directory of service locations")
    parser.add_argument("--config", help="Path to the config document (default: $ACCESSH_CONFIG or config.json)")
    parser.add_argument("--log-level", help="Log level (default: $ACCESSH_LOG_LEVEL or INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def _load(source: ConfigSource) -> tuple[Optional[AccesshConfig], Optional[ConfigError]]:
    try:
        return source.load(), None
    except ConfigError as e:
        logger.error("Could not load config: %s", e)
        return None, e


def run_local(config: Optional[AccesshConfig], load_error: Optional[ConfigError], log_level: Optional[str]) -> int:
    log_file = Path(os.getenv("ACCESSH_LOG_FILE") or LOCAL_LOG_PATH).expanduser()
    setup_logging(log_level, log_file=log_file)
    app = AccesshApp(build_location_table(config), load_error=load_error)
    try:
        app.run()
    except Exception:  # noqa: BLE001
        logger.exception("Error running program")
        return 1
    return app.return_code or 0


def run_server(config: AccesshConfig, source: ConfigSource) -> int:
    try:
        asyncio.run(run_ssh_server(source, config.settings.ssh))
    except (OSError, asyncssh.Error, asyncssh.KeyImportError) as e:
        logger.error("Could not start server: %s", e)
        return 1
    return 0


def _main_impl(argv: list[str]) -> int:
    load_dotenv()
    args = _parse_args(argv)
    setup_logging(args.log_level)

    source = ConfigSource(resolve_config_path(args.config))
    config, load_error = _load(source)

    if config is not None and config.settings.ssh.enabled:
        return run_server(config, source)
    return run_local(config, load_error, args.log_level)


def main() -> None:
    try:
        sys.exit(_main_impl(sys.argv[1:]))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
