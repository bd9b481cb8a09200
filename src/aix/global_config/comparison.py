"""Equality checks used to decide whether a shared global entry already matches."""

from __future__ import annotations

from typing import Any, Mapping


def deep_equal(left: Any, right: Any) -> bool:
    """Structural equality where bools never equal ints and key order is ignored."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if len(left) != len(right):
            return False
        return all(key in right and deep_equal(value, right[key]) for key, value in left.items())
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (Mapping, list, tuple)) or isinstance(right, (Mapping, list, tuple)):
        return False
    if left is None or right is None:
        return left is right
    if type(left) is not type(right) and not (
        isinstance(left, (int, float)) and isinstance(right, (int, float))
    ):
        return False
    return left == right


def mcp_configs_match(local: Mapping[str, Any], existing: Mapping[str, Any]) -> bool:
    return deep_equal(local, existing)


def _normalize_whitespace(text: str) -> str:
    return str(text or "").strip().replace("\r\n", "\n")


def prompts_match(local: str, existing: str) -> bool:
    return _normalize_whitespace(local) == _normalize_whitespace(existing)
