"""Resolve the `rules` section into loaded rule content."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from aix.editors.types import ACTIVATION_MODES, EditorRule, RuleActivation
from aix.loaders.sources import ContentLoader, LocalContentLoader, SourceResolutionError, normalize_source_ref
from aix.merge import DeletedItem, ShorthandItem, classify_item


@dataclass
class LoadedRule:
    name: str
    content: str
    source: str
    activation: str = "always"
    description: Optional[str] = None
    globs: List[str] = field(default_factory=list)
    source_path: Optional[str] = None

    def to_editor_rule(self) -> EditorRule:
        return EditorRule(
            name=self.name,
            content=self.content,
            activation=RuleActivation(
                type=self.activation,
                description=self.description,
                globs=list(self.globs),
            ),
            source_path=self.source_path,
        )


def _source_kind(ref: Mapping[str, Any]) -> str:
    if ref.get("git"):
        return "git"
    if ref.get("npm"):
        return "npm"
    return ""


def load_rule(
    name: str,
    value: Any,
    base_dir: Path,
    loader: Optional[ContentLoader] = None,
) -> LoadedRule:
    item = classify_item(value)
    if isinstance(item, DeletedItem):
        raise SourceResolutionError("rule '{0}' is disabled".format(name))
    ref: Dict[str, Any] = normalize_source_ref(item.ref) if isinstance(item, ShorthandItem) else dict(item.value)

    activation = str(ref.get("activation") or "always").strip().lower()
    if activation not in ACTIVATION_MODES:
        raise SourceResolutionError("rule '{0}' has unknown activation '{1}'".format(name, activation))
    globs = ref.get("globs") or []
    if isinstance(globs, str):
        globs = [part.strip() for part in globs.split(",") if part.strip()]

    rule = LoadedRule(
        name=name,
        content="",
        source="inline",
        activation=activation,
        description=ref.get("description"),
        globs=[str(glob) for glob in globs],
    )

    if ref.get("content"):
        rule.content = str(ref["content"])
        return rule

    active_loader = loader or LocalContentLoader()
    if ref.get("path"):
        loaded = active_loader.load(ref, kind="rule", base_dir=base_dir)
        rule.source = "file"
    elif _source_kind(ref):
        loaded = active_loader.load(ref, kind="rule", base_dir=base_dir)
        rule.source = _source_kind(ref)
    else:
        raise SourceResolutionError("invalid rule '{0}': no content source found".format(name))

    rule.content = loaded.content
    rule.source_path = loaded.source_path
    return rule


def load_rules(
    rules: Optional[Mapping[str, Any]],
    base_dir: Path,
    loader: Optional[ContentLoader] = None,
) -> List[LoadedRule]:
    out: List[LoadedRule] = []
    for name, value in (rules or {}).items():
        if isinstance(classify_item(value), DeletedItem):
            continue
        out.append(load_rule(name, value, base_dir, loader))
    return out


def load_editor_rules(
    rules: Optional[Mapping[str, Any]],
    base_dir: Path,
    loader: Optional[ContentLoader] = None,
) -> List[EditorRule]:
    return [rule.to_editor_rule() for rule in load_rules(rules, base_dir, loader)]
