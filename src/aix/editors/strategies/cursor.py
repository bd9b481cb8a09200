"""Cursor formatters: `.mdc` rules, `mcp.json`, commands and `hooks.json`."""

from __future__ import annotations

from typing import Any, Dict, List

from aix.editors.types import EditorPrompt, EditorRule
from aix.editors.strategies.base import EventTableHooksStrategy, MarkdownSupport, PromptsStrategy, RulesStrategy

CURSOR_EVENT_MAP = {
    "pre_command": "beforeShellExecution",
    "post_command": "afterShellExecution",
    "pre_mcp_tool": "beforeMCPExecution",
    "post_mcp_tool": "afterMCPExecution",
    "post_file_write": "afterFileEdit",
    "pre_prompt": "beforeSubmitPrompt",
    "agent_stop": "stop",
}


class CursorRulesStrategy(RulesStrategy):
    def rules_dir(self) -> str:
        return "rules"

    def file_extension(self) -> str:
        return ".mdc"

    def format_rule(self, rule: EditorRule) -> str:
        activation = rule.activation
        lines = ["---"]
        if activation.description:
            lines.append('description: "{0}"'.format(activation.description))
        if activation.type == "glob" and activation.globs:
            lines.append("globs: {0}".format(", ".join(activation.globs)))
        lines.append("alwaysApply: {0}".format("true" if activation.type == "always" else "false"))
        lines.extend(["---", ""])

        if rule.name and not MarkdownSupport.starts_with_heading(rule.content):
            lines.extend(["# {0}".format(rule.name), ""])
        lines.append(rule.content)
        return "\n".join(lines)


class CursorPromptsStrategy(PromptsStrategy):
    def is_supported(self) -> bool:
        return True

    def prompts_dir(self) -> str:
        return "commands"

    def file_extension(self) -> str:
        return ".md"

    def format_prompt(self, prompt: EditorPrompt) -> str:
        lines: List[str] = []
        if not MarkdownSupport.starts_with_heading(prompt.content):
            lines.extend(["# {0}".format(prompt.name), ""])
            if prompt.description:
                lines.extend([prompt.description, ""])
        lines.append(prompt.content)
        return "\n".join(lines)


class CursorHooksStrategy(EventTableHooksStrategy):
    event_map = CURSOR_EVENT_MAP

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
                if hook.get("timeout"):
                    entry["timeout"] = hook["timeout"]
                bucket.append(entry)
