"""Kiro adapter: steering files, `.kiro/settings/mcp.json`, one JSON file per hook and Powers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from aix.editors.adapters.base import BaseEditorAdapter, determine_action, read_existing, sanitize_file_name
from aix.editors.strategies.base import MarkdownSupport
from aix.editors.strategies.kiro import (
    KiroHooksStrategy,
    KiroMcpStrategy,
    KiroPromptsStrategy,
    KiroRulesStrategy,
    KiroSkillsStrategy,
)
from aix.editors.types import CATEGORY_HOOK, ApplyOptions, FileChange
from aix.kernel.debug_log import DebugLogWriter


class KiroAdapter(BaseEditorAdapter):
    name = "kiro"
    config_dir = ".kiro"
    global_data_dirs = {
        "darwin": [".kiro"],
        "linux": [".kiro"],
        "win32": [".kiro"],
    }

    def __init__(self, *, debug_log: Optional[DebugLogWriter] = None) -> None:
        super().__init__(
            rules=KiroRulesStrategy(),
            mcp=KiroMcpStrategy(),
            skills=KiroSkillsStrategy(),
            prompts=KiroPromptsStrategy(),
            hooks=KiroHooksStrategy(),
            debug_log=debug_log,
        )

    def _plan_hooks(
        self,
        hooks: Optional[Dict[str, Any]],
        project_root: Path,
        options: ApplyOptions,
    ) -> List[FileChange]:
        if not hooks:
            return []
        formatted = json.loads(self.hooks_strategy.format_config(hooks)).get("hooks") or {}
        hooks_dir = self._join(self.config_root(project_root), self.hooks_strategy.config_path())
        changes: List[FileChange] = []
        for hook_name, hook in formatted.items():
            path = hooks_dir / (sanitize_file_name(hook_name) + ".json")
            content = MarkdownSupport.dump_json(hook)
            changes.append(
                FileChange(
                    path=path,
                    action=determine_action(read_existing(path), content),
                    category=CATEGORY_HOOK,
                    content=content,
                )
            )
        return changes
