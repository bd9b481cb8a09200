"""Zed formatters: one project-root `.rules` file and `context_servers` in settings."""

from __future__ import annotations

from typing import Any, Dict, List

from aix.editors.types import EditorRule
from aix.editors.strategies.base import MarkdownSupport, McpServers, McpStrategy, RulesStrategy
from aix.editors.strategies.shared import is_enabled


class ZedRulesStrategy(RulesStrategy):
    def rules_dir(self) -> str:
        return ".."

    def file_extension(self) -> str:
        return ""

    def format_rule(self, rule: EditorRule) -> str:
        lines: List[str] = []
        if rule.name and not MarkdownSupport.starts_with_heading(rule.content):
            lines.extend(["# {0}".format(rule.name), ""])
        lines.append(rule.content)
        return "\n".join(lines)


class ZedMcpStrategy(McpStrategy):
    def is_supported(self) -> bool:
        return True

    def config_path(self) -> str:
        return "settings.json"

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
                servers[name] = {"url": config["url"]}
        return MarkdownSupport.dump_json({"context_servers": servers})
