"""Subprocess execution for edgectl commands."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletedCommand:
    """Normalized command execution result."""

    cmd: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class RunnerError(RuntimeError):
    """Raised when a command cannot be started or fails under check=True."""


def quote_cmd(cmd: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(token)) for token in cmd)


class CommandRunner:
    """Subprocess wrapper with dry-run support.

    Streamed commands echo every output line through the printer so the
    operator sees progress; captured commands stay silent.
    """

    def __init__(
        self,
        *,
        dry_run: bool = False,
        printer: Callable[[str], None] | None = None,
    ) -> None:
        self.dry_run = dry_run
        self._printer = printer or print

    def emit(self, message: str) -> None:
        self._printer(message)

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        capture_output: bool = False,
        check: bool = True,
        stream_output: bool = False,
        run_in_dry_run: bool = False,
    ) -> CompletedCommand:
        tokens = tuple(str(token) for token in cmd)
        rendered = quote_cmd(tokens)
        if self.dry_run and not run_in_dry_run:
            self.emit(f"[dry-run] $ {rendered}")
            return CompletedCommand(tokens, 0)

        run_env = os.environ.copy()
        if env:
            run_env.update({str(key): str(value) for key, value in env.items()})
        logger.debug("running %s (cwd=%s)", rendered, cwd)

        try:
            if stream_output:
                result = self._run_streamed(tokens, cwd=cwd, env=run_env)
            else:
                result = self._run_captured(
                    tokens, cwd=cwd, env=run_env, capture_output=capture_output
                )
        except FileNotFoundError as exc:
            raise RunnerError(f"required command not found: {tokens[0]}") from exc

        if check and not result.ok:
            detail = (result.stderr or result.stdout).strip()
            message = f"command failed with exit code {result.returncode}: {rendered}"
            raise RunnerError(f"{message}\n{detail}" if detail else message)
        return result

    def _run_streamed(
        self, tokens: tuple[str, ...], *, cwd: Path | None, env: dict[str, str]
    ) -> CompletedCommand:
        proc = subprocess.Popen(
            list(tokens),
            cwd=str(cwd) if cwd else None,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
            errors="replace",
        )
        assert proc.stdout is not None
        captured: list[str] = []
        for raw_line in proc.stdout:
            line = raw_line.rstrip("\n")
            captured.append(line)
            self.emit(line)
        rc = proc.wait()
        return CompletedCommand(tokens, rc, "\n".join(captured), "")

    def _run_captured(
        self,
        tokens: tuple[str, ...],
        *,
        cwd: Path | None,
        env: dict[str, str],
        capture_output: bool,
    ) -> CompletedCommand:
        completed = subprocess.run(
            list(tokens),
            cwd=str(cwd) if cwd else None,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE if capture_output else None,
            stderr=subprocess.PIPE if capture_output else None,
            text=True,
            check=False,
            errors="replace",
        )
        return CompletedCommand(
            tokens,
            completed.returncode,
            completed.stdout or "",
            completed.stderr or "",
        )
