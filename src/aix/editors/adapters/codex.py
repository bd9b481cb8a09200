"""Codex adapter: rules in `.codex/AGENTS.md`, MCP servers and prompts in the user's home."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from aix.editors.adapters.base import BaseEditorAdapter
from aix.editors.strategies.codex import CodexMcpStrategy, CodexPromptsStrategy, CodexRulesStrategy
from aix.editors.strategies.shared import NativeSkillsStrategy, NoHooksStrategy
from aix.editors.types import EditorRule, FileChange
from aix.kernel.debug_log import DebugLogWriter

AGENTS_FILE = "AGENTS.md"


class CodexAdapter(BaseEditorAdapter):
    name = "codex"
    config_dir = ".codex"
    global_data_dirs = {
        "darwin": [".codex"],
        "linux": [".codex"],
        "win32": [".codex"],
    }

    def __init__(self, *, debug_log: Optional[DebugLogWriter] = None) -> None:
        super().__init__(
            rules=CodexRulesStrategy(),
            mcp=CodexMcpStrategy(),
            skills=NativeSkillsStrategy(".codex/skills"),
            prompts=CodexPromptsStrategy(),
            hooks=NoHooksStrategy(),
            debug_log=debug_log,
        )

    def _plan_rules(self, rules: List[EditorRule], project_root: Path) -> List[FileChange]:
        if not rules:
            return []
        lines = ["# AGENTS.md", ""]
        for rule in rules:
            lines.extend([self.rules_strategy.format_rule(rule), ""])
        return self._plan_combined_rules(self.config_root(project_root) / AGENTS_FILE, "\n".join(lines))
