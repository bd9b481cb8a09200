"""Windsurf formatters: trigger-based rules, workflows, hooks and the global MCP file."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from aix.editors.types import EditorPrompt, EditorRule
from aix.editors.strategies.base import (
    EventTableHooksStrategy,
    MarkdownSupport,
    McpServers,
    PromptsStrategy,
    RulesStrategy,
)
from aix.editors.strategies.shared import GlobalMcpStrategy, is_enabled, parse_mcp_servers

WINDSURF_GLOBAL_MCP_PATH = ".codeium/windsurf/mcp_config.json"

WINDSURF_EVENT_MAP = {
    "pre_file_read": "pre_read_code",
    "post_file_read": "post_read_code",
    "pre_file_write": "pre_write_code",
    "post_file_write": "post_write_code",
    "pre_command": "pre_run_command",
    "post_command": "post_run_command",
    "pre_mcp_tool": "pre_mcp_tool_use",
    "post_mcp_tool": "post_mcp_tool_use",
    "pre_prompt": "pre_user_prompt",
    "agent_stop": "post_cascade_response",
}

_TRIGGERS = {
    "always": "always_on",
    "auto": "model_decision",
    "glob": "glob",
    "manual": "manual",
}


class WindsurfRulesStrategy(RulesStrategy):
    def rules_dir(self) -> str:
        return "rules"

    def file_extension(self) -> str:
        return ".md"

    def format_rule(self, rule: EditorRule) -> str:
        activation = rule.activation
        lines = ["---"]
        trigger = _TRIGGERS.get(activation.type)
        if trigger:
            lines.append("trigger: {0}".format(trigger))
        if activation.type == "auto" and activation.description:
            lines.append("description: {0}".format(activation.description))
        if activation.type == "glob" and activation.globs:
            lines.append("globs: {0}".format(", ".join(activation.globs)))
        lines.extend(["---", ""])
        lines.append(rule.content)
        return "\n".join(lines)


def format_windsurf_mcp(mcp: McpServers) -> str:
    servers: Dict[str, Any] = {}
    for name, config in mcp.items():
        if not is_enabled(config):
            continue
        server: Dict[str, Any] = {}
        if "command" in config:
            server["command"] = config["command"]
            if config.get("args"):
                server["args"] = list(config["args"])
            if config.get("env"):
                server["env"] = dict(config["env"])
        elif "url" in config:
            server["url"] = config["url"]
        if isinstance(config.get("disabledTools"), list) and config["disabledTools"]:
            server["disabledTools"] = list(config["disabledTools"])
        servers[name] = server
    return MarkdownSupport.dump_json({"mcpServers": servers})


def parse_windsurf_mcp(content: str) -> Tuple[McpServers, List[str]]:
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        return {}, ["Failed to parse MCP config: {0}".format(exc)]
    if not isinstance(payload, dict):
        return {}, ["Failed to parse MCP config: root must be an object"]
    return parse_mcp_servers(payload.get("mcpServers") or {}, keep_disabled_tools=True)


class WindsurfMcpStrategy(GlobalMcpStrategy):
    def __init__(self) -> None:
        super().__init__(
            editor="windsurf",
            global_path=WINDSURF_GLOBAL_MCP_PATH,
            formatter=format_windsurf_mcp,
            parser=parse_windsurf_mcp,
        )


class WindsurfPromptsStrategy(PromptsStrategy):
    def is_supported(self) -> bool:
        return True

    def prompts_dir(self) -> str:
        return "workflows"

    def file_extension(self) -> str:
        return ".md"

    def format_prompt(self, prompt: EditorPrompt) -> str:
        lines = ["---"]
        if prompt.description:
            lines.append("description: {0}".format(prompt.description))
        lines.extend(["---", ""])
        if not MarkdownSupport.starts_with_heading(prompt.content):
            lines.extend(["# {0}".format(prompt.name), ""])
        lines.append(prompt.content)
        return "\n".join(lines)


class WindsurfHooksStrategy(EventTableHooksStrategy):
    event_map = WINDSURF_EVENT_MAP

    def config_path(self) -> str:
        return "hooks.json"

    def _collect(
        self,
        out: Dict[str, List[Dict[str, Any]]],
        target: str,
        event: str,
        matchers: List[Dict[str, Any]],
    ) -> None:
        bucket = out.setdefault(target, [])
        for matcher in matchers:
            for hook in matcher.get("hooks") or []:
                entry: Dict[str, Any] = {"command": hook.get("command")}
                if hook.get("show_output") is not None:
                    entry["show_output"] = hook["show_output"]
                if hook.get("working_directory"):
                    entry["working_directory"] = hook["working_directory"]
                bucket.append(entry)
