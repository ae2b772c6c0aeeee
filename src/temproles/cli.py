"""CLI for the temproles bot."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence
import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv

from temproles import __version__
from temproles.config.settings import SettingsError, load_settings, settings_summary
from temproles.discord.client import StartupError
from temproles.runtime.app import run_runtime


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Temporary reaction roles bot")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to JSON config file. Environment variables override file values.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="dotenv file loaded before reading settings (default: .env).",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Validate settings and print a redacted summary.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"temproles {__version__}",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.env_file is not None and args.env_file.expanduser().is_file():
        load_dotenv(args.env_file.expanduser())

    try:
        settings = load_settings(config_path=args.config)
    except SettingsError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    if args.check:
        print(json.dumps(settings_summary(settings), indent=2, sort_keys=True))
        return 0

    try:
        asyncio.run(run_runtime(settings=settings))
    except SettingsError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except StartupError as exc:
        print(f"Startup error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        # KeyboardInterrupt is expected during local runs.
        return 130

    return 0
