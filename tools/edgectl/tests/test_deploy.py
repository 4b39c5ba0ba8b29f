from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from tools.edgectl.core.context import DeployContext, ProjectInfo
from tools.edgectl.core.deploy import (
    build_deploy_command,
    extract_deployment_url,
    normalize_deployment_url,
    offer_to_deploy,
    run_deploy,
)
from tools.edgectl.core.errors import (
    DeploySubprocessError,
    DeployUrlExtractionError,
    PreconditionError,
)
from tools.edgectl.core.runner import CompletedCommand
from tools.edgectl.core.settings import EdgectlSettings


@dataclass
class FakeRunner:
    dry_run: bool = False
    output: str = ""
    returncode: int = 0
    inside_git: bool = False

    def __post_init__(self) -> None:
        self.commands: list[list[str]] = []
        self.envs: list[dict[str, str] | None] = []
        self.output_paths: list[Path] = []
        self.messages: list[str] = []

    def emit(self, message: str) -> None:
        self.messages.append(message)

    def run(
        self,
        cmd,
        *,
        cwd=None,
        env=None,
        capture_output: bool = False,
        check: bool = True,
        stream_output: bool = False,
        run_in_dry_run: bool = False,
    ) -> CompletedCommand:
        del cwd, capture_output, check, stream_output
        command = [str(token) for token in cmd]
        self.commands.append(command)
        self.envs.append(dict(env) if env else None)
        if command[:2] == ["git", "rev-parse"]:
            return CompletedCommand(tuple(command), 0, "true\n" if self.inside_git else "", "")
        if self.dry_run and not run_in_dry_run:
            return CompletedCommand(tuple(command), 0)
        assert env is not None
        output_path = Path(env["WRANGLER_OUTPUT_FILE_PATH"])
        self.output_paths.append(output_path)
        output_path.write_text(self.output, encoding="utf-8")
        return CompletedCommand(tuple(command), self.returncode)


@pytest.fixture
def settings() -> EdgectlSettings:
    return EdgectlSettings(package_manager="npm", _env_file=None)


def make_ctx(tmp_path: Path, **kwargs) -> DeployContext:
    platform = kwargs.pop("platform", "workers")
    kwargs.setdefault("account_id", "acc-123")
    return DeployContext(project=ProjectInfo(path=tmp_path, platform=platform), **kwargs)


def ndjson(*records) -> str:
    return "\n".join(json.dumps(record) for record in records) + "\n"


def test_run_deploy_requires_account(tmp_path: Path, settings) -> None:
    runner = FakeRunner()
    ctx = make_ctx(tmp_path, account_id=None)

    with pytest.raises(PreconditionError):
        run_deploy(ctx, runner, settings)

    assert runner.commands == []


def test_run_deploy_extracts_workers_url(tmp_path: Path, settings) -> None:
    runner = FakeRunner(output=ndjson({"type": "deploy", "targets": ["https://foo.workers.dev"]}))
    ctx = make_ctx(tmp_path)

    url = run_deploy(ctx, runner, settings)

    assert url == "https://foo.workers.dev"
    assert ctx.deployment.url == "https://foo.workers.dev"
    assert runner.commands[-1] == ["npm", "run", "deploy"]
    env = runner.envs[-1]
    assert env is not None
    assert env["CLOUDFLARE_ACCOUNT_ID"] == "acc-123"
    assert env["NODE_ENV"] == "production"
    assert env["WRANGLER_OUTPUT_FILE_PATH"].endswith("output.json")


def test_run_deploy_normalizes_pages_url(tmp_path: Path, settings) -> None:
    runner = FakeRunner(
        output=ndjson(
            {"type": "version-upload"},
            {"type": "pages-deploy", "url": "https://abcd1234.myproj.pages.dev"},
        )
    )
    ctx = make_ctx(tmp_path, platform="pages")

    assert run_deploy(ctx, runner, settings) == "https://myproj.pages.dev"
    assert ctx.deployment.url == "https://myproj.pages.dev"


def test_run_deploy_removes_output_dir_and_uses_fresh_paths(tmp_path: Path, settings) -> None:
    runner = FakeRunner(output=ndjson({"type": "deploy", "targets": ["https://foo.workers.dev"]}))

    run_deploy(make_ctx(tmp_path), runner, settings)
    run_deploy(make_ctx(tmp_path), runner, settings)

    first, second = runner.output_paths
    assert first.parent != second.parent
    assert first.parent.name.startswith("edgectl-deploy-")
    assert not first.parent.exists()
    assert not second.parent.exists()


def test_run_deploy_cleans_up_on_failure(tmp_path: Path, settings) -> None:
    runner = FakeRunner(output="", returncode=3)

    with pytest.raises(DeploySubprocessError) as exc_info:
        run_deploy(make_ctx(tmp_path), runner, settings)

    assert exc_info.value.returncode == 3
    assert "npm run deploy" in str(exc_info.value)
    assert not runner.output_paths[0].parent.exists()


@pytest.mark.parametrize("output", ["", "\n\n", "not json\n", '{"type": "deploy"'])
def test_run_deploy_without_url_fails(tmp_path: Path, settings, output: str) -> None:
    runner = FakeRunner(output=output)
    ctx = make_ctx(tmp_path)

    with pytest.raises(DeployUrlExtractionError) as exc_info:
        run_deploy(ctx, runner, settings)

    assert str(exc_info.value) == "Failed to find deployment url."
    assert exc_info.value.__cause__ is None
    assert ctx.deployment.url is None


def test_run_deploy_dry_run_skips_extraction(tmp_path: Path, settings) -> None:
    runner = FakeRunner(dry_run=True)
    ctx = make_ctx(tmp_path)

    assert run_deploy(ctx, runner, settings) is None
    assert ctx.deployment.url is None
    assert runner.output_paths == []


def test_build_deploy_command_adds_commit_message_for_pages(tmp_path: Path, settings) -> None:
    ctx = make_ctx(tmp_path, platform="pages", commit_message='fix "quotes"')

    cmd = build_deploy_command(ctx, settings, inside_git_repo=False)

    assert cmd == ["npm", "run", "deploy", "--", "--commit-message", '"fix \\"quotes\\""']


def test_build_deploy_command_skips_separator_for_other_managers(tmp_path: Path) -> None:
    settings = EdgectlSettings(package_manager="pnpm", _env_file=None)
    ctx = make_ctx(tmp_path, platform="pages", commit_message="init")

    cmd = build_deploy_command(ctx, settings, inside_git_repo=False)

    assert cmd == ["pnpm", "run", "deploy", "--commit-message", '"init"']


@pytest.mark.parametrize(
    ("platform", "message", "inside_git"),
    [
        ("workers", "init", False),
        ("pages", None, False),
        ("pages", "init", True),
    ],
)
def test_build_deploy_command_omits_commit_message(
    tmp_path: Path, settings, platform: str, message: str | None, inside_git: bool
) -> None:
    ctx = make_ctx(tmp_path, platform=platform, commit_message=message)

    assert build_deploy_command(ctx, settings, inside_git_repo=inside_git) == [
        "npm",
        "run",
        "deploy",
    ]


def test_run_deploy_checks_git_work_tree(tmp_path: Path, settings) -> None:
    runner = FakeRunner(
        output=ndjson({"type": "pages-deploy", "url": "https://myproj.pages.dev"}),
        inside_git=True,
    )
    ctx = make_ctx(tmp_path, platform="pages", commit_message="init")
    ctx.project = ProjectInfo(path=tmp_path, platform="pages", deploy_script="ship")

    run_deploy(ctx, runner, settings)

    assert runner.commands[0] == ["git", "rev-parse", "--is-inside-work-tree"]
    assert runner.commands[-1] == ["npm", "run", "ship"]


def write_output(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "output.json"
    path.write_text(text, encoding="utf-8")
    return path


def test_extract_prefers_deploy_record(tmp_path: Path) -> None:
    path = write_output(
        tmp_path,
        ndjson(
            {"type": "pages-deploy", "url": "https://abc.proj.pages.dev"},
            {"type": "deploy", "targets": ["https://foo.workers.dev", "https://bar.workers.dev"]},
        ),
    )

    assert extract_deployment_url(path) == "https://foo.workers.dev"


def test_extract_falls_back_when_deploy_has_no_targets(tmp_path: Path) -> None:
    path = write_output(
        tmp_path,
        ndjson(
            {"type": "deploy", "targets": []},
            {"type": "pages-deploy", "url": "https://abc.proj.pages.dev"},
        ),
    )

    assert extract_deployment_url(path) == "https://abc.proj.pages.dev"


def test_extract_rejects_other_domains(tmp_path: Path) -> None:
    path = write_output(tmp_path, ndjson({"type": "deploy", "targets": ["https://example.com"]}))

    with pytest.raises(DeployUrlExtractionError, match=r"^Failed to find deployment url\.$"):
        extract_deployment_url(path)


def test_extract_missing_file(tmp_path: Path) -> None:
    with pytest.raises(DeployUrlExtractionError):
        extract_deployment_url(tmp_path / "missing.json")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://abcd1234.myproj.pages.dev", "https://myproj.pages.dev"),
        ("https://myproj.pages.dev", "https://myproj.pages.dev"),
        ("https://foo.bar.workers.dev", "https://foo.bar.workers.dev"),
    ],
)
def test_normalize_deployment_url(url: str, expected: str) -> None:
    normalized = normalize_deployment_url(url)

    assert normalized == expected
    assert normalize_deployment_url(normalized) == normalized


def test_offer_to_deploy_forces_off_when_bindings_exist(tmp_path: Path, settings) -> None:
    (tmp_path / "wrangler.toml").write_text('[[d1_databases]]\nbinding = "DB"\n', encoding="utf-8")
    ctx = make_ctx(tmp_path, deploy=True)
    asked: list[str] = []

    assert offer_to_deploy(ctx, settings, lambda q: asked.append(q) or True) is False
    assert ctx.deploy is False
    assert asked == []


def test_offer_to_deploy_asks_when_undecided(tmp_path: Path, settings) -> None:
    ctx = make_ctx(tmp_path, platform="pages")
    asked: list[str] = []

    def confirm(question: str) -> bool:
        asked.append(question)
        return True

    assert offer_to_deploy(ctx, settings, confirm) is True
    assert ctx.deploy is True
    assert "deploy via `npm run deploy`" in asked[0]


def test_offer_to_deploy_respects_explicit_choice(tmp_path: Path, settings) -> None:
    ctx = make_ctx(tmp_path, platform="pages", deploy=False)

    assert offer_to_deploy(ctx, settings, lambda q: True) is False
