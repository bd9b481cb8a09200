"""Claude Code adapter."""

from __future__ import annotations

from typing import Optional

from aix.editors.adapters.base import BaseEditorAdapter
from aix.editors.strategies.claude_code import (
    ClaudeCodeHooksStrategy,
    ClaudeCodeMcpStrategy,
    ClaudeCodePromptsStrategy,
    ClaudeCodeRulesStrategy,
)
from aix.editors.strategies.shared import NativeSkillsStrategy
from aix.kernel.debug_log import DebugLogWriter


class ClaudeCodeAdapter(BaseEditorAdapter):
    name = "claude-code"
    config_dir = ".claude"
    global_data_dirs = {
        "darwin": ["Library/Application Support/Claude"],
        "linux": [".config/Claude"],
        "win32": ["AppData/Roaming/Claude"],
    }

    def __init__(self, *, debug_log: Optional[DebugLogWriter] = None) -> None:
        super().__init__(
            rules=ClaudeCodeRulesStrategy(),
            mcp=ClaudeCodeMcpStrategy(),
            skills=NativeSkillsStrategy(".claude/skills"),
            prompts=ClaudeCodePromptsStrategy(),
            hooks=ClaudeCodeHooksStrategy(),
            debug_log=debug_log,
        )
