"""Content resolution for rules, prompts and skills."""

from .prompts import LoadedPrompt, load_editor_prompts, load_prompts
from .rules import LoadedRule, load_editor_rules, load_rules
from .skills import ParsedSkill, SkillFrontmatter, SkillParseError, parse_skill_md, resolve_all_skills
from .sources import ContentLoader, LoadedContent, LocalContentLoader, SourceResolutionError

__all__ = [
    "ContentLoader",
    "LoadedContent",
    "LoadedPrompt",
    "LoadedRule",
    "LocalContentLoader",
    "ParsedSkill",
    "SkillFrontmatter",
    "SkillParseError",
    "SourceResolutionError",
    "load_editor_prompts",
    "load_editor_rules",
    "load_prompts",
    "load_rules",
    "parse_skill_md",
    "resolve_all_skills",
]
