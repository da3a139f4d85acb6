"""``magnetio`` console script: load config, set up logging, serve the addon."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from magnetio.infrastructure.config import load_config
from magnetio.infrastructure.logging.setup import configure_logging
from magnetio.interfaces.app import create_app

log = structlog.get_logger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9516

# argparse dest -> AppConfig key, for flags that feed the CLI config layer
_CONFIG_FLAGS = {
    "data_dir": "data_dir",
    "log_level": "log_level",
    "log_format": "log_format",
}


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="magnetio", description="Stremio addon for debrid-cached torrents."
    )

    server = parser.add_argument_group("server")
    server.add_argument("--host", help=f"Bind address (env HOST, {DEFAULT_HOST}).")
    server.add_argument(
        "--port", type=int, help=f"Bind port (env PORT, {DEFAULT_PORT})."
    )

    sources = parser.add_argument_group("config sources")
    sources.add_argument("--config", type=Path, help="YAML config file.")
    sources.add_argument("--dotenv", type=Path, help=".env file with MAGNETIO_*.")

    overrides = parser.add_argument_group("overrides (highest precedence)")
    overrides.add_argument("--data-dir", help="Partition directory.")
    overrides.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    overrides.add_argument("--log-format", choices=["json", "console"])

    return parser.parse_args(None if argv is None else list(argv))


def build_cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flags the user actually passed, keyed by config name."""
    return {
        key: getattr(args, dest)
        for dest, key in _CONFIG_FLAGS.items()
        if getattr(args, dest)
    }


def _bind_address(args: argparse.Namespace) -> tuple[str, int]:
    host = args.host or os.environ.get("HOST") or DEFAULT_HOST
    port = args.port or int(os.environ.get("PORT") or DEFAULT_PORT)
    return host, port


def start(argv: Iterable[str] | None = None) -> None:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    host, port = _bind_address(args)

    config = load_config(
        config_path=args.config,
        dotenv_path=args.dotenv,
        cli_overrides=build_cli_overrides(args),
    )
    log_config = configure_logging(config)
    log.info(
        "addon_starting",
        host=host,
        port=port,
        environment=config.environment,
        data_dir=str(config.data_dir),
    )

    # The app middleware writes a key-free access line; uvicorn's would not.
    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_config=log_config,
        access_log=False,
    )


if __name__ == "__main__":
    raise SystemExit(start())
