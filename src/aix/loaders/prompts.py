"""Resolve the `prompts` section into loaded prompt content."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from aix.editors.types import EditorPrompt
from aix.loaders.frontmatter import split_frontmatter
from aix.loaders.sources import ContentLoader, LocalContentLoader, SourceResolutionError, normalize_source_ref
from aix.merge import DeletedItem, ShorthandItem, classify_item


@dataclass
class LoadedPrompt:
    name: str
    content: str
    description: Optional[str] = None
    argument_hint: Optional[str] = None
    source_path: Optional[str] = None

    def to_editor_prompt(self) -> EditorPrompt:
        return EditorPrompt(
            name=self.name,
            content=self.content,
            description=self.description,
            argument_hint=self.argument_hint,
            source_path=self.source_path,
        )


def parse_prompt_frontmatter(raw: str) -> Dict[str, Any]:
    """Split a prompt file into content plus `description` / `argument_hint`."""
    metadata, body = split_frontmatter(raw)
    if metadata is None:
        return {"content": raw.strip(), "description": None, "argument_hint": None}
    description = metadata.get("description")
    hint = metadata.get("argument-hint", metadata.get("argumentHint"))
    return {
        "content": body.strip(),
        "description": str(description) if description is not None else None,
        "argument_hint": str(hint) if hint is not None else None,
    }


def load_prompt(
    name: str,
    value: Any,
    base_dir: Path,
    loader: Optional[ContentLoader] = None,
) -> LoadedPrompt:
    item = classify_item(value)
    if isinstance(item, DeletedItem):
        raise SourceResolutionError("prompt '{0}' is disabled".format(name))
    ref: Dict[str, Any] = normalize_source_ref(item.ref) if isinstance(item, ShorthandItem) else dict(item.value)

    prompt = LoadedPrompt(
        name=name,
        content="",
        description=ref.get("description"),
        argument_hint=ref.get("argumentHint"),
    )

    if ref.get("content"):
        prompt.content = str(ref["content"])
        return prompt

    if not (ref.get("path") or ref.get("git") or ref.get("npm")):
        raise SourceResolutionError("invalid prompt '{0}': no content source found".format(name))

    loaded = (loader or LocalContentLoader()).load(ref, kind="prompt", base_dir=base_dir)
    parsed = parse_prompt_frontmatter(loaded.content)
    prompt.content = parsed["content"]
    if prompt.description is None:
        prompt.description = parsed["description"]
    if prompt.argument_hint is None:
        prompt.argument_hint = parsed["argument_hint"]
    prompt.source_path = loaded.source_path
    return prompt


def load_prompts(
    prompts: Optional[Mapping[str, Any]],
    base_dir: Path,
    loader: Optional[ContentLoader] = None,
) -> List[LoadedPrompt]:
    out: List[LoadedPrompt] = []
    for name, value in (prompts or {}).items():
        if isinstance(classify_item(value), DeletedItem):
            continue
        out.append(load_prompt(name, value, base_dir, loader))
    return out


def load_editor_prompts(
    prompts: Optional[Mapping[str, Any]],
    base_dir: Path,
    loader: Optional[ContentLoader] = None,
) -> List[EditorPrompt]:
    return [prompt.to_editor_prompt() for prompt in load_prompts(prompts, base_dir, loader)]
