"""Editor adapters, one per supported target."""

from .base import BaseEditorAdapter, filter_mcp_config, sanitize_file_name
from .claude_code import ClaudeCodeAdapter
from .codex import CodexAdapter
from .copilot import CopilotAdapter
from .cursor import CursorAdapter
from .kiro import KiroAdapter
from .vscode import VSCodeAdapter
from .windsurf import WindsurfAdapter
from .zed import ZedAdapter

__all__ = [
    "BaseEditorAdapter",
    "ClaudeCodeAdapter",
    "CodexAdapter",
    "CopilotAdapter",
    "CursorAdapter",
    "KiroAdapter",
    "VSCodeAdapter",
    "WindsurfAdapter",
    "ZedAdapter",
    "filter_mcp_config",
    "sanitize_file_name",
]
