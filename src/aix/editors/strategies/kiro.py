"""Kiro formatters: steering files, `settings/mcp.json`, one file per hook and skills as Powers."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from aix.editors.types import (
    ACTION_CREATE,
    ACTION_UNCHANGED,
    ACTION_UPDATE,
    CATEGORY_SKILL,
    EditorPrompt,
    EditorRule,
    FileChange,
    HooksConfig,
)
from aix.editors.strategies.base import HooksStrategy, MarkdownSupport, PromptsStrategy, RulesStrategy, SkillsStrategy
from aix.editors.strategies.shared import StandardMcpStrategy, _aix_skill_change
from aix.loaders.skills import SKILL_FILE_NAME, ParsedSkill

KIRO_EVENT_MAP = {
    "post_file_write": "fileEdited",
    "pre_prompt": "promptSubmit",
    "agent_stop": "agentStop",
}
KIRO_POWERS_DIR = Path(".kiro") / "powers"
POWER_FILE_NAME = "POWER.md"
SCRIPT_EXTENSIONS = (".sh", ".bash", ".zsh", ".py", ".rb", ".js", ".ts", ".mjs")
MAX_POWER_KEYWORDS = 5

_NAME_SPLIT_RE = re.compile(r"[-_]")
_NON_WORD_RE = re.compile(r"[^a-z0-9]")


class KiroRulesStrategy(RulesStrategy):
    """Steering files whose `inclusion` field carries the activation mode."""

    def rules_dir(self) -> str:
        return "steering"

    def file_extension(self) -> str:
        return ".md"

    def format_rule(self, rule: EditorRule) -> str:
        activation = rule.activation
        lines = ["---"]
        if activation.type == "glob":
            lines.append("inclusion: fileMatch")
            if activation.globs:
                lines.append('fileMatchPattern: "{0}"'.format(",".join(activation.globs)))
        elif activation.type == "manual":
            lines.append("inclusion: manual")
        else:
            lines.append("inclusion: always")
            if activation.type == "auto" and activation.description:
                lines.append('description: "{0}"'.format(activation.description))
        lines.extend(["---", "", rule.content])
        return "\n".join(lines)


class KiroMcpStrategy(StandardMcpStrategy):
    def config_path(self) -> str:
        return "settings/mcp.json"


class KiroPromptsStrategy(PromptsStrategy):
    """Prompts become manual-inclusion steering files, offered as slash commands."""

    def is_supported(self) -> bool:
        return True

    def prompts_dir(self) -> str:
        return "steering"

    def file_extension(self) -> str:
        return ".md"

    def format_prompt(self, prompt: EditorPrompt) -> str:
        lines = ["---", "inclusion: manual"]
        if prompt.description:
            lines.append('description: "{0}"'.format(prompt.description))
        if prompt.argument_hint:
            lines.append('argumentHint: "{0}"'.format(prompt.argument_hint))
        lines.extend(["---", "", prompt.content])
        return "\n".join(lines)


class KiroHooksStrategy(HooksStrategy):
    """Formats every hook as a named entry; the adapter writes one file per entry under `hooks/`."""

    event_map = KIRO_EVENT_MAP

    def is_supported(self) -> bool:
        return True

    def config_path(self) -> str:
        return "hooks"

    def unsupported_events(self, hooks: HooksConfig) -> List[str]:
        return [event for event in (hooks or {}) if event not in self.event_map]

    def format_config(self, hooks: HooksConfig) -> str:
        out: Dict[str, Any] = {}
        for event, matchers in (hooks or {}).items():
            kiro_event = self.event_map.get(event)
            if not kiro_event:
                continue
            for matcher in matchers or []:
                when: Dict[str, Any] = {"type": kiro_event}
                if matcher.get("matcher"):
                    when["patterns"] = [matcher["matcher"]]
                for index, hook in enumerate(matcher.get("hooks") or []):
                    hook_name = "{0}-hook-{1}".format(event, index)
                    out[hook_name] = {
                        "name": hook_name,
                        "version": "1.0.0",
                        "description": "Hook for {0}".format(event),
                        "when": dict(when),
                        "then": {"type": "runCommand", "command": hook.get("command")},
                    }
        return MarkdownSupport.dump_json({"hooks": out})


def power_keywords(name: str, description: Optional[str]) -> List[str]:
    keywords: List[str] = []
    for part in _NAME_SPLIT_RE.split(name):
        if len(part) > 2 and part.lower() not in keywords:
            keywords.append(part.lower())
    for word in (description or "").lower().split():
        cleaned = _NON_WORD_RE.sub("", word)
        if len(cleaned) > 3 and cleaned not in keywords:
            keywords.append(cleaned)
    return keywords[:MAX_POWER_KEYWORDS]


def format_power_md(name: str, skill: ParsedSkill) -> str:
    description = skill.frontmatter.description or "{0} skill converted to Kiro Power".format(name)
    lines = [
        "---",
        "name: {0}".format(name),
        "description: {0}".format(description),
        "keywords: {0}".format(", ".join(power_keywords(name, skill.frontmatter.description))),
        "---",
        "",
        "# Onboarding",
        "",
        "This Power was converted from the Agent Skill: {0}".format(name),
        "",
        "## Setup",
        "",
        "To install this Power:",
        "1. Open Kiro IDE",
        "2. Navigate to Powers settings",
        "3. Install from local directory: `.kiro/powers/{0}/`".format(name),
        "",
        "# Workflows",
        "",
        skill.body or "Use this Power for {0}-related tasks.".format(name),
    ]
    return "\n".join(lines)


def _content_action(path: Path, content: str) -> str:
    try:
        existing = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ACTION_CREATE
    return ACTION_UNCHANGED if existing == content else ACTION_UPDATE


class KiroSkillsStrategy(SkillsStrategy):
    """Keeps the `.aix/skills` copy and converts each skill into a Power under `.kiro/powers`.

    Top-level files other than SKILL.md are copied next to POWER.md; scripts
    are made executable. Files that are not UTF-8 text are left out.
    """

    def is_native(self) -> bool:
        return False

    def install_skills(self, skills: Mapping[str, ParsedSkill], project_root: Path) -> List[FileChange]:
        changes: List[FileChange] = []
        for name, skill in skills.items():
            changes.append(_aix_skill_change(name, skill, project_root))

            power_dir = Path(project_root) / KIRO_POWERS_DIR / name
            power_md = power_dir / POWER_FILE_NAME
            content = format_power_md(name, skill)
            changes.append(
                FileChange(path=power_md, action=_content_action(power_md, content), category=CATEGORY_SKILL, content=content)
            )
            changes.extend(self._resource_changes(Path(skill.base_path), power_dir))
        return changes

    @staticmethod
    def _resource_changes(skill_dir: Path, power_dir: Path) -> List[FileChange]:
        changes: List[FileChange] = []
        for child in sorted(skill_dir.iterdir(), key=lambda item: item.name):
            if child.name == SKILL_FILE_NAME:
                continue
            target = power_dir / child.name
            if child.is_dir():
                changes.append(
                    FileChange(
                        path=target,
                        action=ACTION_UPDATE if target.exists() else ACTION_CREATE,
                        category=CATEGORY_SKILL,
                        content="[directory copied from skill]",
                        is_directory=True,
                        source_dir=child,
                    )
                )
            elif child.is_file():
                try:
                    text = child.read_text(encoding="utf-8")
                except UnicodeDecodeError:
                    continue
                changes.append(
                    FileChange(
                        path=target,
                        action=_content_action(target, text),
                        category=CATEGORY_SKILL,
                        content=text,
                        mode=0o755 if child.name.endswith(SCRIPT_EXTENSIONS) else None,
                    )
                )
        return changes

    def generate_skill_rules(self, skills: Mapping[str, ParsedSkill]) -> List[EditorRule]:
        return []
