"""
Where: tools/edgectl/core/deploy.py
What: Run the project's deploy script and recover the deployed URL.
Why: The deploy script reports its result through a side-channel NDJSON file;
     reading it back and normalizing the URL lives here.
"""

from __future__ import annotations

import json
import logging as std_logging
import re
import tempfile
from pathlib import Path
from typing import Any, Callable

from tools.edgectl.core import logging
from tools.edgectl.core.context import DeployContext
from tools.edgectl.core.deployability import is_deployable
from tools.edgectl.core.errors import (
    DeploySubprocessError,
    DeployUrlExtractionError,
    PreconditionError,
)
from tools.edgectl.core.project_config import select_config_format
from tools.edgectl.core.runner import CommandRunner, RunnerError, quote_cmd
from tools.edgectl.core.settings import EdgectlSettings

logger = std_logging.getLogger(__name__)

ENV_ACCOUNT_ID = "CLOUDFLARE_ACCOUNT_ID"
ENV_NODE_ENV = "NODE_ENV"
ENV_OUTPUT_FILE = "WRANGLER_OUTPUT_FILE_PATH"

OUTPUT_DIR_PREFIX = "edgectl-deploy-"
OUTPUT_FILENAME = "output.json"

DEPLOYED_URL_PATTERN = re.compile(r"https://.+\.(pages|workers)\.dev")
PAGES_SUFFIX = ".pages.dev"


def base_deploy_command(ctx: DeployContext, settings: EdgectlSettings) -> list[str]:
    return [settings.package_manager, "run", ctx.project.deploy_script]


def build_deploy_command(
    ctx: DeployContext, settings: EdgectlSettings, *, inside_git_repo: bool
) -> list[str]:
    cmd = base_deploy_command(ctx, settings)
    # Assumes pages deploy scripts end in `wrangler pages deploy`.
    if ctx.project.is_static and ctx.commit_message and not inside_git_repo:
        if settings.package_manager == "npm":
            cmd.append("--")
        cmd.extend(["--commit-message", json.dumps(ctx.commit_message)])
    return cmd


def is_inside_git_repo(runner: CommandRunner, path: Path) -> bool:
    try:
        result = runner.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            cwd=path,
            capture_output=True,
            check=False,
            run_in_dry_run=True,
        )
    except RunnerError:
        logger.debug("git not available; treating %s as outside a work tree", path)
        return False
    return result.ok and result.stdout.strip() == "true"


def run_deploy(
    ctx: DeployContext, runner: CommandRunner, settings: EdgectlSettings
) -> str | None:
    """Deploy the project and record the normalized URL on ``ctx.deployment``.

    Returns the URL, or None in dry-run mode where nothing is executed.
    """

    if not ctx.account_id:
        raise PreconditionError("Failed to read account id.")

    base_cmd = base_deploy_command(ctx, settings)
    inside_git_repo = is_inside_git_repo(runner, ctx.project.path)
    deploy_cmd = build_deploy_command(ctx, settings, inside_git_repo=inside_git_repo)

    with tempfile.TemporaryDirectory(prefix=OUTPUT_DIR_PREFIX) as output_dir:
        output_file = Path(output_dir) / OUTPUT_FILENAME
        env = {
            ENV_ACCOUNT_ID: ctx.account_id,
            ENV_NODE_ENV: "production",
            ENV_OUTPUT_FILE: str(output_file),
        }

        logging.step("Deploying your application")
        result = runner.run(
            deploy_cmd,
            cwd=ctx.project.path,
            env=env,
            stream_output=True,
            check=False,
        )
        if not result.ok:
            raise DeploySubprocessError(result.returncode, quote_cmd(deploy_cmd))
        if runner.dry_run:
            return None

        url = extract_deployment_url(output_file)

    logging.success(f"deployed {logging.dim(f'via `{quote_cmd(base_cmd)}`')}")
    ctx.deployment.url = normalize_deployment_url(url)
    return ctx.deployment.url


def extract_deployment_url(output_file: Path) -> str:
    """Read the deploy output records and return the deployed URL.

    A ``deploy`` record's first target wins over a ``pages-deploy`` record's
    url. Every failure mode collapses into DeployUrlExtractionError.
    """

    try:
        records = _read_output_records(output_file)
        url = _first_deploy_target(records)
        if url is None:
            url = _first_pages_url(records)
        match = DEPLOYED_URL_PATTERN.search(url) if isinstance(url, str) else None
    except (OSError, ValueError):
        raise DeployUrlExtractionError() from None
    if match is None:
        raise DeployUrlExtractionError()
    return match.group(0)


def normalize_deployment_url(url: str) -> str:
    """Drop the preview hash from ``<hash>.<project>.pages.dev`` URLs."""

    if not url.endswith(PAGES_SUFFIX):
        return url
    proto, _, hostname = url.partition("://")
    return f"{proto}://{'.'.join(hostname.split('.')[-3:])}"


def _read_output_records(output_file: Path) -> list[Any]:
    lines = output_file.read_text(encoding="utf-8").split("\n")
    return [json.loads(line) for line in lines if line.strip()]


def _first_record(records: list[Any], record_type: str) -> dict[str, Any] | None:
    for record in records:
        if isinstance(record, dict) and record.get("type") == record_type:
            return record
    return None


def _first_deploy_target(records: list[Any]) -> Any:
    record = _first_record(records, "deploy")
    if record is None:
        return None
    targets = record.get("targets")
    if isinstance(targets, list) and targets:
        return targets[0]
    return None


def _first_pages_url(records: list[Any]) -> Any:
    record = _first_record(records, "pages-deploy")
    return record.get("url") if record is not None else None


def offer_to_deploy(
    ctx: DeployContext,
    settings: EdgectlSettings,
    confirm: Callable[[str], bool],
) -> bool:
    """Settle ``ctx.deploy``, forcing it off when bindings need provisioning."""

    if not is_deployable(ctx):
        ctx.deploy = False
        selected = select_config_format(ctx.project.path)
        config_name = selected[1].name if selected else "wrangler.toml"
        logging.warning(
            f"Bindings must be configured in {logging.highlight(f'`{config_name}`')} "
            "before your application can be deployed"
        )

    if ctx.deploy is None:
        label = f"deploy via `{quote_cmd(base_deploy_command(ctx, settings))}`"
        ctx.deploy = bool(confirm(f"Do you want to deploy your application? ({label})"))
    return bool(ctx.deploy)
