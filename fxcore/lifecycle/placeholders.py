"""``${{ NAME }}`` placeholder discovery and substitution.

Placeholders appear anywhere inside a step's ``with`` configuration: in plain
string values, inside longer strings, and in nested mappings and lists. Keys
are never substituted. Non-string scalars pass through unchanged.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Tuple

PLACEHOLDER_PATTERN = re.compile(r"\$\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def _collect(value: Any, names: List[str]) -> None:
    if isinstance(value, str):
        for match in PLACEHOLDER_PATTERN.finditer(value):
            if match.group(1) not in names:
                names.append(match.group(1))
    elif isinstance(value, Mapping):
        for item in value.values():
            _collect(item, names)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _collect(item, names)


def find_placeholders(value: Any) -> List[str]:
    """Return placeholder names referenced in ``value`` in first-seen order."""
    names: List[str] = []
    _collect(value, names)
    return names


def find_unresolved(value: Any, env: Mapping[str, str]) -> List[str]:
    """Return referenced placeholder names that ``env`` leaves unset or empty."""
    return [name for name in find_placeholders(value) if not env.get(name)]


def substitute(value: Any, env: Mapping[str, str]) -> Tuple[Any, List[str]]:
    """Replace bound placeholders in ``value``.

    Unbound placeholders are left in place and reported. An empty value
    counts as unbound.

    Args:
        value: A ``with`` configuration (any YAML-shaped value)
        env: Variables available for substitution

    Returns:
        Tuple of (substituted copy of ``value``, unresolved names in order)
    """
    unresolved: List[str] = []

    def replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        value = env.get(name)
        if value:
            return str(value)
        if name not in unresolved:
            unresolved.append(name)
        return match.group(0)

    def walk(item: Any) -> Any:
        if isinstance(item, str):
            return PLACEHOLDER_PATTERN.sub(replace, item)
        if isinstance(item, Mapping):
            return {key: walk(child) for key, child in item.items()}
        if isinstance(item, (list, tuple)):
            return [walk(child) for child in item]
        return item

    return walk(value), unresolved


def substitute_env_block(block: Dict[str, str], env: Mapping[str, str]) -> Tuple[Dict[str, str], List[str]]:
    """Substitute placeholders in a step's ``env`` block."""
    resolved, unresolved = substitute(dict(block), env)
    return {key: str(value) for key, value in resolved.items()}, unresolved
