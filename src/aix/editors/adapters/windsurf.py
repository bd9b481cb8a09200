"""Windsurf adapter. MCP servers go to the machine-wide Codeium config."""

from __future__ import annotations

from typing import Optional

from aix.editors.adapters.base import BaseEditorAdapter
from aix.editors.strategies.shared import NativeSkillsStrategy
from aix.editors.strategies.windsurf import (
    WindsurfHooksStrategy,
    WindsurfMcpStrategy,
    WindsurfPromptsStrategy,
    WindsurfRulesStrategy,
)
from aix.kernel.debug_log import DebugLogWriter


class WindsurfAdapter(BaseEditorAdapter):
    name = "windsurf"
    config_dir = ".windsurf"
    global_data_dirs = {
        "darwin": [".codeium/windsurf"],
        "linux": [".codeium/windsurf"],
        "win32": [".codeium/windsurf"],
    }

    def __init__(self, *, debug_log: Optional[DebugLogWriter] = None) -> None:
        super().__init__(
            rules=WindsurfRulesStrategy(),
            mcp=WindsurfMcpStrategy(),
            skills=NativeSkillsStrategy(".windsurf/skills"),
            prompts=WindsurfPromptsStrategy(),
            hooks=WindsurfHooksStrategy(),
            debug_log=debug_log,
        )
