"""Error taxonomy for edgectl commands."""

from __future__ import annotations

from pathlib import Path


class EdgectlError(RuntimeError):
    """Base class for failures surfaced to the operator."""


class FileReadError(EdgectlError):
    """Raised when an input file cannot be read."""

    def __init__(self, path: str | Path):
        self.path = str(path)
        super().__init__(f"Could not read file: {self.path}")


class TransportError(EdgectlError):
    """Raised when the registry answers with a non-2xx or unsuccessful envelope."""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        message = f"registry request failed ({status_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class NotFoundError(EdgectlError):
    """Raised when a certificate does not exist."""


class AmbiguousNameError(EdgectlError):
    """Raised when a name matches more than one certificate."""


class SelectorError(EdgectlError):
    """Raised when --id/--name selectors are missing or combined."""


class PreconditionError(EdgectlError):
    """Raised when required session state is missing."""


class DeploySubprocessError(EdgectlError):
    """Raised when the deploy command exits non-zero."""

    def __init__(self, returncode: int, command: str):
        self.returncode = returncode
        self.command = command
        super().__init__(f"deploy command failed with exit code {returncode}: {command}")


class DeployUrlExtractionError(EdgectlError):
    """Raised when the deploy output does not contain a usable URL."""

    def __init__(self) -> None:
        super().__init__("Failed to find deployment url.")


class ConfigParseError(EdgectlError):
    """Raised when the project configuration cannot be parsed."""

    def __init__(self, path: str | Path, cause: Exception):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Failed to parse {self.path}: {cause}")
