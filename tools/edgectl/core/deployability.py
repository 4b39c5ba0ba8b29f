"""Decide whether a project can be deployed without manual provisioning."""

from __future__ import annotations

from typing import Any

from tools.edgectl.core.context import DeployContext
from tools.edgectl.core.project_config import read_project_config

BINDING_KEYS = frozenset({"binding", "bindings"})
SKIPPED_KEYS = frozenset({"assets"})


def is_deployable(ctx: DeployContext) -> bool:
    """Static-asset projects always deploy; others must declare no bindings."""

    if ctx.project.is_static:
        return True
    tree = read_project_config(ctx.project.path)
    return not has_binding(tree)


def has_binding(node: Any) -> bool:
    """Search ``node`` for a ``binding``/``bindings`` key.

    Traversal rule: keys are visited in insertion order, ``assets`` is
    skipped, a binding key answers True, and the first other key is
    descended into and its answer returned. Siblings after that first key
    are never inspected. Lists behave like mappings keyed by index, so only
    their first element is searched.
    """

    if isinstance(node, dict):
        items = node.items()
    elif isinstance(node, list):
        items = enumerate(node)
    else:
        return False

    for key, value in items:
        if key in SKIPPED_KEYS:
            continue
        if key in BINDING_KEYS:
            return True
        return has_binding(value)
    return False
