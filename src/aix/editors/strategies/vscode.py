"""VS Code / Copilot formatters: `.github` instructions, prompts and hooks plus `.vscode/mcp.json`."""

from __future__ import annotations

from typing import Any, Dict, List

from aix.editors.types import EditorRule
from aix.editors.strategies.base import EventTableHooksStrategy, MarkdownSupport, McpServers, McpStrategy, RulesStrategy
from aix.editors.strategies.claude_code import CLAUDE_EVENT_MAP
from aix.editors.strategies.shared import DescribedPromptsStrategy, ToolMatcherHooksStrategy, is_enabled

VSCODE_EVENT_MAP = {key: value for key, value in CLAUDE_EVENT_MAP.items() if key != "session_end"}


class CopilotRulesStrategy(RulesStrategy):
    """Instructions live in `.github/instructions`, a sibling of the `.vscode` dir."""

    def rules_dir(self) -> str:
        return "../.github/instructions"

    def file_extension(self) -> str:
        return ".instructions.md"

    def format_rule(self, rule: EditorRule) -> str:
        activation = rule.activation
        lines: List[str] = []
        if activation.type == "glob" and activation.globs:
            lines.extend(["---", 'applyTo: "{0}"'.format(", ".join(activation.globs)), "---", ""])
        if rule.name and not MarkdownSupport.starts_with_heading(rule.content):
            lines.extend(["# {0}".format(rule.name), ""])
        lines.append(rule.content)
        return "\n".join(lines)


class VSCodeMcpStrategy(McpStrategy):
    def is_supported(self) -> bool:
        return True

    def config_path(self) -> str:
        return "mcp.json"

    def format_config(self, mcp: McpServers) -> str:
        servers: Dict[str, Any] = {}
        for name, config in mcp.items():
            if not is_enabled(config):
                continue
            if "command" in config:
                servers[name] = {
                    "command": config["command"],
                    "args": list(config.get("args") or []),
                    "env": dict(config.get("env") or {}),
                }
            elif "url" in config:
                servers[name] = {"type": "http", "url": config["url"]}
        return MarkdownSupport.dump_json({"servers": servers})


class VSCodePromptsStrategy(DescribedPromptsStrategy):
    def prompts_dir(self) -> str:
        return "../.github/prompts"

    def file_extension(self) -> str:
        return ".prompt.md"


class VSCodeHooksStrategy(ToolMatcherHooksStrategy, EventTableHooksStrategy):
    event_map = VSCODE_EVENT_MAP

    def config_path(self) -> str:
        return "../.github/hooks/hooks.json"
