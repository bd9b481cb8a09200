"""Capability contracts each editor composes: rules, MCP, skills, prompts, hooks."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from aix.editors.types import EditorPrompt, EditorRule, FileChange, HooksConfig
from aix.loaders.skills import ParsedSkill

_HEADING_RE = re.compile(r"^#\s")

McpServers = Dict[str, Dict[str, Any]]


class MarkdownSupport:
    """Shared pure helpers for markdown formatters."""

    @staticmethod
    def starts_with_heading(content: str) -> bool:
        return bool(_HEADING_RE.match(str(content or "").strip()))

    @staticmethod
    def frontmatter_lines(fields: Sequence[Tuple[str, str]]) -> List[str]:
        if not fields:
            return []
        lines = ["---"]
        for key, value in fields:
            lines.append("{0}: {1}".format(key, value))
        lines.extend(["---", ""])
        return lines

    @staticmethod
    def dump_json(payload: Mapping[str, Any]) -> str:
        return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


class RulesStrategy(ABC):
    @abstractmethod
    def rules_dir(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def file_extension(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def format_rule(self, rule: EditorRule) -> str:
        raise NotImplementedError


class McpStrategy(ABC):
    @abstractmethod
    def is_supported(self) -> bool:
        raise NotImplementedError

    def is_global_only(self) -> bool:
        return False

    def is_project_root_config(self) -> bool:
        """True when `config_path()` is relative to the project root, not the config dir."""
        return False

    @abstractmethod
    def config_path(self) -> str:
        raise NotImplementedError

    def global_config_path(self) -> Optional[str]:
        """Home-relative path of the machine-wide MCP file, if the editor has one."""
        return None

    @abstractmethod
    def format_config(self, mcp: McpServers) -> str:
        raise NotImplementedError

    def parse_global_config(self, content: str) -> Tuple[McpServers, List[str]]:
        return {}, []


class SkillsStrategy(ABC):
    @abstractmethod
    def is_native(self) -> bool:
        raise NotImplementedError

    def skills_dir(self) -> str:
        return ".aix/skills"

    @abstractmethod
    def install_skills(self, skills: Mapping[str, ParsedSkill], project_root: Path) -> List[FileChange]:
        """Plan the directory changes that install `skills`; nothing is written here."""
        raise NotImplementedError

    @abstractmethod
    def generate_skill_rules(self, skills: Mapping[str, ParsedSkill]) -> List[EditorRule]:
        raise NotImplementedError


class PromptsStrategy(ABC):
    @abstractmethod
    def is_supported(self) -> bool:
        raise NotImplementedError

    def is_global_only(self) -> bool:
        return False

    @abstractmethod
    def prompts_dir(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def file_extension(self) -> str:
        raise NotImplementedError

    def global_prompts_path(self) -> Optional[str]:
        return None

    @abstractmethod
    def format_prompt(self, prompt: EditorPrompt) -> str:
        raise NotImplementedError


class HooksStrategy(ABC):
    @abstractmethod
    def is_supported(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def config_path(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def format_config(self, hooks: HooksConfig) -> str:
        raise NotImplementedError

    @abstractmethod
    def unsupported_events(self, hooks: HooksConfig) -> List[str]:
        raise NotImplementedError


class EventTableHooksStrategy(HooksStrategy):
    """Hooks formatter driven by a fixed generic-event translation table."""

    event_map: Dict[str, str] = {}

    def is_supported(self) -> bool:
        return True

    def unsupported_events(self, hooks: HooksConfig) -> List[str]:
        return [event for event in (hooks or {}) if event not in self.event_map]

    def format_config(self, hooks: HooksConfig) -> str:
        out: Dict[str, List[Dict[str, Any]]] = {}
        for event, matchers in (hooks or {}).items():
            target = self.event_map.get(event)
            if not target:
                continue
            self._collect(out, target, event, list(matchers or []))
        return MarkdownSupport.dump_json({"hooks": out})

    @abstractmethod
    def _collect(
        self,
        out: Dict[str, List[Dict[str, Any]]],
        target: str,
        event: str,
        matchers: List[Dict[str, Any]],
    ) -> None:
        raise NotImplementedError
