#!/usr/bin/env python3
"""edgectl: certificate registry and deploy CLI."""

from __future__ import annotations

import argparse
import logging as std_logging

from tools.edgectl.commands import cert, deploy
from tools.edgectl.core import logging
from tools.edgectl.core.errors import EdgectlError
from tools.edgectl.core.runner import CommandRunner, RunnerError
from tools.edgectl.core.settings import EdgectlSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="edgectl",
        description="Manage mTLS certificates and deploy projects",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print commands without executing side effects",
    )
    parser.add_argument(
        "--account-id",
        help="Account to operate on (default: EDGECTL_ACCOUNT_ID)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", required=True)
    cert.register_parser(subparsers)
    deploy.register_parser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    try:
        settings = EdgectlSettings()
        std_logging.basicConfig(
            level=std_logging.DEBUG if args.verbose else settings.log_level.upper(),
            format="%(levelname)s %(name)s: %(message)s",
        )
        runner = CommandRunner(dry_run=bool(args.dry_run))
        return int(args.func(args, runner, settings))
    except (EdgectlError, RunnerError) as exc:
        logging.error(f"Error: {exc}")
        return 1
    except (ValueError, FileNotFoundError) as exc:
        logging.error(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
