"""Claude Code formatters: `.claude/rules`, project-root `.mcp.json`, commands, settings hooks."""

from __future__ import annotations

from typing import Any, Dict, List

from aix.editors.types import EditorRule
from aix.editors.strategies.base import EventTableHooksStrategy, MarkdownSupport, McpServers, RulesStrategy
from aix.editors.strategies.shared import (
    DescribedPromptsStrategy,
    StandardMcpStrategy,
    ToolMatcherHooksStrategy,
    is_enabled,
)

CLAUDE_EVENT_MAP = {
    "pre_tool_use": "PreToolUse",
    "post_tool_use": "PostToolUse",
    "pre_file_read": "PreToolUse",
    "post_file_read": "PostToolUse",
    "pre_file_write": "PreToolUse",
    "post_file_write": "PostToolUse",
    "pre_command": "PreToolUse",
    "post_command": "PostToolUse",
    "pre_mcp_tool": "PreToolUse",
    "post_mcp_tool": "PostToolUse",
    "session_start": "SessionStart",
    "session_end": "SessionEnd",
    "agent_stop": "Stop",
    "pre_prompt": "UserPromptSubmit",
}


class ClaudeCodeRulesStrategy(RulesStrategy):
    def rules_dir(self) -> str:
        return "rules"

    def file_extension(self) -> str:
        return ".md"

    def format_rule(self, rule: EditorRule) -> str:
        activation = rule.activation
        lines: List[str] = []
        has_paths = activation.type == "glob" and bool(activation.globs)
        if activation.description or has_paths:
            lines.append("---")
            if activation.description:
                lines.append('description: "{0}"'.format(activation.description))
            if has_paths:
                lines.append("paths:")
                lines.extend("  - {0}".format(glob) for glob in activation.globs)
            lines.extend(["---", ""])

        if rule.name and not MarkdownSupport.starts_with_heading(rule.content):
            lines.extend(["# {0}".format(rule.name), ""])
        lines.append(rule.content)
        return "\n".join(lines)


class ClaudeCodeMcpStrategy(StandardMcpStrategy):
    """Servers carry an explicit `type`; the file sits at the project root."""

    def config_path(self) -> str:
        return ".mcp.json"

    def is_project_root_config(self) -> bool:
        return True

    def format_config(self, mcp: McpServers) -> str:
        servers: Dict[str, Any] = {}
        for name, config in mcp.items():
            if not is_enabled(config):
                continue
            if "command" in config:
                server: Dict[str, Any] = {"type": "stdio", "command": config["command"]}
                if config.get("args"):
                    server["args"] = list(config["args"])
                if config.get("env"):
                    server["env"] = dict(config["env"])
                servers[name] = server
            elif "url" in config:
                server = {"type": "http", "url": config["url"]}
                if config.get("headers"):
                    server["headers"] = dict(config["headers"])
                servers[name] = server
        return MarkdownSupport.dump_json({"mcpServers": servers})


class ClaudeCodePromptsStrategy(DescribedPromptsStrategy):
    def prompts_dir(self) -> str:
        return "commands"


class ClaudeCodeHooksStrategy(ToolMatcherHooksStrategy, EventTableHooksStrategy):
    event_map = CLAUDE_EVENT_MAP

    def config_path(self) -> str:
        return "settings.json"
