"""Parse the project's deploy configuration into a generic tree.

Two mutually exclusive formats are supported. Selection is a strategy
lookup: the first format with an existing file wins, JSONC before TOML.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import json5
import toml

from tools.edgectl.core.errors import ConfigParseError, FileReadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigFormat:
    name: str
    filenames: tuple[str, ...]
    loads: Callable[[str], Any]

    def locate(self, project_path: Path) -> Path | None:
        for filename in self.filenames:
            candidate = project_path / filename
            if candidate.is_file():
                return candidate
        return None

    def parse(self, path: Path) -> Any:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FileReadError(path) from exc
        try:
            return self.loads(text)
        except ValueError as exc:
            raise ConfigParseError(path, exc) from exc


def _loads_toml(text: str) -> Any:
    return toml.loads(text.replace("\r\n", "\n"))


JsoncConfigFormat = ConfigFormat(
    name="jsonc",
    filenames=("wrangler.jsonc", "wrangler.json"),
    loads=json5.loads,
)
TomlConfigFormat = ConfigFormat(
    name="toml",
    filenames=("wrangler.toml",),
    loads=_loads_toml,
)

CONFIG_FORMATS: tuple[ConfigFormat, ...] = (JsoncConfigFormat, TomlConfigFormat)


def select_config_format(project_path: Path) -> tuple[ConfigFormat, Path] | None:
    for fmt in CONFIG_FORMATS:
        path = fmt.locate(project_path)
        if path is not None:
            return fmt, path
    return None


def read_project_config(project_path: Path) -> Any:
    selected = select_config_format(project_path)
    if selected is None:
        raise FileReadError(project_path / TomlConfigFormat.filenames[0])
    fmt, path = selected
    logger.debug("reading %s project configuration from %s", fmt.name, path)
    return fmt.parse(path)
