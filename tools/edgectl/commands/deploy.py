"""CLI parser and handler for `edgectl deploy`."""

from __future__ import annotations

import argparse
from pathlib import Path

from tools.edgectl.core import logging, prompt
from tools.edgectl.core.context import (
    DEFAULT_DEPLOY_SCRIPT,
    PLATFORM_WORKERS,
    PLATFORMS,
    DeployContext,
    ProjectInfo,
)
from tools.edgectl.core.deploy import offer_to_deploy, run_deploy
from tools.edgectl.core.poll import maybe_open_browser
from tools.edgectl.core.runner import CommandRunner
from tools.edgectl.core.settings import EdgectlSettings


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "deploy",
        help="Deploy the project and wait until it is reachable",
    )
    parser.add_argument(
        "--project-dir",
        default=".",
        help="Project root containing wrangler.jsonc/wrangler.json/wrangler.toml",
    )
    parser.add_argument(
        "--platform",
        choices=PLATFORMS,
        default=PLATFORM_WORKERS,
        help="Target platform (pages skips the binding check)",
    )
    parser.add_argument(
        "--deploy-script",
        default=DEFAULT_DEPLOY_SCRIPT,
        help="Package script that performs the deploy (default: deploy)",
    )
    parser.add_argument("--commit-message", help="Commit message for pages deployments")
    parser.add_argument(
        "--open",
        action="store_true",
        dest="open_browser",
        help="Open the deployed URL in a browser once it is live",
    )
    parser.add_argument(
        "--deploy",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Deploy without asking (--no-deploy to skip)",
    )
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner, settings: EdgectlSettings) -> int:
    project = ProjectInfo(
        path=Path(args.project_dir).expanduser().resolve(),
        platform=args.platform,
        deploy_script=args.deploy_script,
    )
    ctx = DeployContext(
        project=project,
        account_id=getattr(args, "account_id", None) or settings.account_id,
        commit_message=args.commit_message,
        open_browser=bool(args.open_browser),
        deploy=args.deploy,
    )

    if not offer_to_deploy(ctx, settings, prompt.confirm):
        logging.info("Skipping deployment.")
        return 0

    url = run_deploy(ctx, runner, settings)
    if url is None:
        return 0

    logging.info(f"Deployed to {logging.highlight(url)}")
    maybe_open_browser(ctx, settings)
    return 0
