# Where: tools/edgectl/core/context.py
# What: Per-invocation deployment context.
# Why: Pass account and project state explicitly instead of through process globals.
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

PLATFORM_WORKERS = "workers"
PLATFORM_PAGES = "pages"
PLATFORMS = (PLATFORM_WORKERS, PLATFORM_PAGES)

DEFAULT_DEPLOY_SCRIPT = "deploy"


@dataclass(frozen=True)
class ProjectInfo:
    path: Path
    platform: str = PLATFORM_WORKERS
    deploy_script: str = DEFAULT_DEPLOY_SCRIPT

    def __post_init__(self) -> None:
        if self.platform not in PLATFORMS:
            raise ValueError(f"unsupported platform: {self.platform}")

    @property
    def is_static(self) -> bool:
        return self.platform == PLATFORM_PAGES


@dataclass
class Deployment:
    # Written by the deploy runner, read by the availability poller.
    url: str | None = None


@dataclass
class DeployContext:
    project: ProjectInfo
    account_id: str | None = None
    commit_message: str | None = None
    open_browser: bool = False
    deploy: bool | None = None
    deployment: Deployment = field(default_factory=Deployment)
