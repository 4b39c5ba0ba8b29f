"""Yes/no confirmation prompts."""

from __future__ import annotations

import questionary


def confirm(message: str, *, default: bool = False) -> bool:
    """Ask a yes/no question; a cancelled prompt counts as no."""

    answer = questionary.confirm(message, default=default).ask()
    return bool(answer)
