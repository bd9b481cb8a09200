"""VS Code adapter; Copilot instructions, prompts, hooks and skills live under `.github`."""

from __future__ import annotations

from typing import Optional

from aix.editors.adapters.base import BaseEditorAdapter
from aix.editors.strategies.shared import NativeSkillsStrategy
from aix.editors.strategies.vscode import (
    CopilotRulesStrategy,
    VSCodeHooksStrategy,
    VSCodeMcpStrategy,
    VSCodePromptsStrategy,
)
from aix.kernel.debug_log import DebugLogWriter


class VSCodeAdapter(BaseEditorAdapter):
    name = "vscode"
    config_dir = ".vscode"
    global_data_dirs = {
        "darwin": ["Library/Application Support/Code"],
        "linux": [".config/Code"],
        "win32": ["AppData/Roaming/Code"],
    }

    def __init__(self, *, debug_log: Optional[DebugLogWriter] = None) -> None:
        super().__init__(
            rules=CopilotRulesStrategy(),
            mcp=VSCodeMcpStrategy(),
            skills=NativeSkillsStrategy(".github/skills"),
            prompts=VSCodePromptsStrategy(),
            hooks=VSCodeHooksStrategy(),
            debug_log=debug_log,
        )
