"""Deep JSON merge with per-path strategies, and document-level merging.

Section maps of a document (`skills`, `rules`, `prompts`, `mcp`) hold one of
three item kinds: an object descriptor, a string shorthand, or `False`, which
means the entry is explicitly removed. `classify_item` turns a raw value into
the matching variant so callers branch on the kind instead of on raw types.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

MERGE = "merge"
REPLACE = "replace"
KEEP = "keep"
MERGE_STRATEGIES = (MERGE, REPLACE, KEEP)

ITEM_SECTIONS = ("skills", "rules", "prompts", "mcp")
SCOPE_SECTIONS = ("rules", "prompts", "mcp", "skills", "editors")


@dataclass(frozen=True)
class MergeContext:
    key: str
    path: List[str]
    old_value: Any
    new_value: Any


MergeResolver = Callable[[MergeContext], Optional[str]]


@dataclass(frozen=True)
class ObjectItem:
    value: Dict[str, Any]


@dataclass(frozen=True)
class ShorthandItem:
    ref: str


@dataclass(frozen=True)
class DeletedItem:
    pass


SectionItem = Union[ObjectItem, ShorthandItem, DeletedItem]


def classify_item(value: Any) -> SectionItem:
    if value is False:
        return DeletedItem()
    if isinstance(value, str):
        return ShorthandItem(ref=value)
    if isinstance(value, dict):
        return ObjectItem(value=value)
    raise TypeError("unsupported section item: {0!r}".format(value))


def is_plain_object(value: Any) -> bool:
    return isinstance(value, dict)


def _default_strategy(old_value: Any, new_value: Any) -> str:
    if is_plain_object(old_value) and is_plain_object(new_value):
        return MERGE
    return REPLACE


def deep_merge_json(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
    resolver: Optional[MergeResolver] = None,
) -> Dict[str, Any]:
    """Merge `override` into a copy of `base`; neither input is modified."""
    return _merge_recursive(base, override, [], resolver)


def _merge_recursive(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
    path: List[str],
    resolver: Optional[MergeResolver],
) -> Dict[str, Any]:
    result = {key: copy.deepcopy(value) for key, value in base.items()}

    for key, new_value in override.items():
        old_value = result.get(key)
        strategy = None
        if resolver is not None:
            strategy = resolver(MergeContext(key=key, path=list(path), old_value=old_value, new_value=new_value))
        if strategy is None:
            strategy = _default_strategy(old_value, new_value)

        if strategy == KEEP:
            continue
        if strategy == MERGE and is_plain_object(new_value) and is_plain_object(old_value):
            result[key] = _merge_recursive(old_value, new_value, path + [key], resolver)
            continue
        result[key] = copy.deepcopy(new_value)

    return result


def _matches_pattern(path: str, pattern: str) -> bool:
    path_parts = path.split(".")
    pattern_parts = pattern.split(".")
    if len(path_parts) != len(pattern_parts):
        return False
    return all(part == "*" or part == path_parts[index] for index, part in enumerate(pattern_parts))


def create_path_resolver(rules: Mapping[str, str]) -> MergeResolver:
    """Resolve strategies by dot-joined key path; `*` matches exactly one segment."""
    for pattern, strategy in rules.items():
        if strategy not in MERGE_STRATEGIES:
            raise ValueError("unknown merge strategy for {0}: {1}".format(pattern, strategy))
    table = dict(rules)

    def resolve(context: MergeContext) -> Optional[str]:
        full_path = ".".join(list(context.path) + [context.key])
        if full_path in table:
            return table[full_path]
        for pattern, strategy in table.items():
            if _matches_pattern(full_path, pattern):
                return strategy
        return None

    return resolve


MCP_CONFIG_MERGE_RESOLVER = create_path_resolver(
    {
        "mcpServers.*": REPLACE,
        "context_servers.*": REPLACE,
        "servers.*": REPLACE,
    }
)


def _without_deleted(items: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        key: value
        for key, value in items.items()
        if not isinstance(classify_item(value), DeletedItem)
    }


def _merge_section(local: Optional[Mapping[str, Any]], remote: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if remote is None:
        return _without_deleted(local or {})
    if local is None:
        return _without_deleted(remote)

    merged = dict(local)
    for key, value in remote.items():
        item = classify_item(value)
        if isinstance(item, DeletedItem):
            merged.pop(key, None)
        else:
            merged[key] = value
    return _without_deleted(merged)


def normalize_editors(editors: Any) -> Dict[str, Any]:
    """Expand the list form of the `editors` section into a mapping."""
    if not editors:
        return {}
    if isinstance(editors, list):
        result: Dict[str, Any] = {}
        for item in editors:
            if isinstance(item, str):
                result[item] = {"enabled": True}
            elif isinstance(item, dict):
                result.update(item)
        return result
    if isinstance(editors, dict):
        return dict(editors)
    raise TypeError("unsupported editors section: {0!r}".format(editors))


def merge_configs(local: Mapping[str, Any], remote: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge a remote (or override) document over a local one.

    Only sections the remote side declares take part in the per-key merge;
    any other section is copied from `local` as is, `False` entries included.
    """
    result: Dict[str, Any] = dict(local)

    for section in ITEM_SECTIONS:
        if remote.get(section) is None:
            continue
        result[section] = _merge_section(local.get(section), remote.get(section))

    if remote.get("editors") is not None:
        result["editors"] = deep_merge_json(
            normalize_editors(local.get("editors")),
            normalize_editors(remote.get("editors")),
        )

    for key in ("$schema", "extends"):
        if remote.get(key) is not None:
            result[key] = remote[key]

    return result


def filter_config_by_scopes(config: Mapping[str, Any], scopes: Sequence[str]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for scope in scopes:
        if scope not in SCOPE_SECTIONS:
            continue
        if config.get(scope) is not None:
            result[scope] = config[scope]
    return result
