"""Cursor adapter."""

from __future__ import annotations

from typing import Optional

from aix.editors.adapters.base import BaseEditorAdapter
from aix.editors.strategies.cursor import CursorHooksStrategy, CursorPromptsStrategy, CursorRulesStrategy
from aix.editors.strategies.shared import NativeSkillsStrategy, StandardMcpStrategy
from aix.kernel.debug_log import DebugLogWriter


class CursorAdapter(BaseEditorAdapter):
    name = "cursor"
    config_dir = ".cursor"
    global_data_dirs = {
        "darwin": ["Library/Application Support/Cursor"],
        "linux": [".config/Cursor"],
        "win32": ["AppData/Roaming/Cursor"],
    }

    def __init__(self, *, debug_log: Optional[DebugLogWriter] = None) -> None:
        super().__init__(
            rules=CursorRulesStrategy(),
            mcp=StandardMcpStrategy(),
            skills=NativeSkillsStrategy(".cursor/skills"),
            prompts=CursorPromptsStrategy(),
            hooks=CursorHooksStrategy(),
            debug_log=debug_log,
        )
