"""SKILL.md parsing and resolution of the `skills` section."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from aix.loaders.frontmatter import FrontmatterError, split_frontmatter
from aix.loaders.sources import ContentLoader, LocalContentLoader, SourceResolutionError, normalize_source_ref
from aix.merge import DeletedItem, ShorthandItem, classify_item

SKILL_FILE_NAME = "SKILL.md"
DEFAULT_MAX_WORKERS = 3


class SkillParseError(ValueError):
    """Raised when a SKILL.md file is missing or malformed."""


@dataclass(frozen=True)
class SkillFrontmatter:
    name: str
    description: str
    license: Optional[str] = None
    compatibility: Optional[str] = None
    allowed_tools: List[str] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SkillFrontmatter":
        name = str(payload.get("name") or "").strip()
        if not name:
            raise SkillParseError("skill name is required")
        description = str(payload.get("description") or "").strip()
        if not description:
            raise SkillParseError("skill description is required")

        raw_tools = payload.get("allowed-tools") or []
        if isinstance(raw_tools, str):
            raw_tools = raw_tools.split()
        if not isinstance(raw_tools, list):
            raise SkillParseError("allowed-tools must be a list or a space separated string")

        metadata = payload.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise SkillParseError("metadata must be a mapping")

        license_value = payload.get("license")
        compatibility = payload.get("compatibility")
        return cls(
            name=name,
            description=description,
            license=str(license_value) if license_value is not None else None,
            compatibility=str(compatibility) if compatibility is not None else None,
            allowed_tools=[str(item) for item in raw_tools],
            metadata={str(key): str(value) for key, value in metadata.items()},
        )


@dataclass(frozen=True)
class ParsedSkill:
    frontmatter: SkillFrontmatter
    body: str
    base_path: Path
    source: str


def parse_skill_md(skill_dir: Path, source: str) -> ParsedSkill:
    skill_md = Path(skill_dir) / SKILL_FILE_NAME
    try:
        raw = skill_md.read_text(encoding="utf-8")
    except OSError as exc:
        raise SkillParseError("cannot read {0}: {1}".format(skill_md, exc)) from exc

    try:
        metadata, body = split_frontmatter(raw)
    except FrontmatterError as exc:
        raise SkillParseError("invalid SKILL.md format in {0}: {1}".format(skill_md, exc)) from exc
    if metadata is None:
        raise SkillParseError("invalid SKILL.md format: missing frontmatter in {0}".format(skill_md))

    return ParsedSkill(
        frontmatter=SkillFrontmatter.from_dict(metadata),
        body=body.strip(),
        base_path=Path(skill_dir),
        source=source,
    )


def _skill_ref(value: Any) -> Dict[str, Any]:
    item = classify_item(value)
    if isinstance(item, ShorthandItem):
        text = item.ref
        if text.startswith(("./", "../", "/", "file:")):
            return {"path": text[5:] if text.startswith("file:") else text}
        return normalize_source_ref(text)
    return dict(item.value)


def _source_of(ref: Mapping[str, Any]) -> str:
    if ref.get("path"):
        return "local"
    if ref.get("git"):
        return "git"
    return "npm"


def resolve_skill(
    name: str,
    value: Any,
    base_dir: Path,
    loader: Optional[ContentLoader] = None,
) -> ParsedSkill:
    ref = _skill_ref(value)
    if not (ref.get("path") or ref.get("git") or ref.get("npm")):
        raise SourceResolutionError("invalid skill '{0}': no source found".format(name))
    try:
        skill_dir = (loader or LocalContentLoader()).fetch_directory(ref, kind="skill", base_dir=base_dir)
        return parse_skill_md(skill_dir, _source_of(ref))
    except (SourceResolutionError, SkillParseError) as exc:
        raise SourceResolutionError("failed to resolve skill '{0}': {1}".format(name, exc)) from exc


def resolve_all_skills(
    skills: Optional[Mapping[str, Any]],
    base_dir: Path,
    loader: Optional[ContentLoader] = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> Dict[str, ParsedSkill]:
    """Resolve every enabled skill on a bounded pool; order follows the input."""
    entries: List[Tuple[str, Any]] = [
        (name, value)
        for name, value in (skills or {}).items()
        if not isinstance(classify_item(value), DeletedItem)
    ]
    if not entries:
        return {}

    with ThreadPoolExecutor(max_workers=max(1, int(max_workers))) as pool:
        resolved = list(
            pool.map(lambda entry: resolve_skill(entry[0], entry[1], base_dir, loader), entries)
        )
    return {name: skill for (name, _), skill in zip(entries, resolved)}
