"""Zed adapter: all rules go to one project-root `.rules` file."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from aix.editors.adapters.base import BaseEditorAdapter
from aix.editors.strategies.shared import NoHooksStrategy, NoPromptsStrategy, PointerSkillsStrategy
from aix.editors.strategies.zed import ZedMcpStrategy, ZedRulesStrategy
from aix.editors.types import EditorRule, FileChange
from aix.kernel.debug_log import DebugLogWriter

ZED_RULES_FILE = ".rules"


class ZedAdapter(BaseEditorAdapter):
    name = "zed"
    config_dir = ".zed"
    global_data_dirs = {
        "darwin": ["Library/Application Support/Zed"],
        "linux": [".config/zed"],
        "win32": ["AppData/Roaming/Zed"],
    }

    def __init__(self, *, debug_log: Optional[DebugLogWriter] = None) -> None:
        super().__init__(
            rules=ZedRulesStrategy(),
            mcp=ZedMcpStrategy(),
            skills=PointerSkillsStrategy(),
            prompts=NoPromptsStrategy(),
            hooks=NoHooksStrategy(),
            debug_log=debug_log,
        )

    def _plan_rules(self, rules: List[EditorRule], project_root: Path) -> List[FileChange]:
        if not rules:
            return []
        lines: List[str] = []
        for rule in rules:
            lines.extend([self.rules_strategy.format_rule(rule), ""])
        return self._plan_combined_rules(Path(project_root) / ZED_RULES_FILE, "\n".join(lines))
