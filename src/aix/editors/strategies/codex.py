"""Codex formatters: a single AGENTS.md, global `config.toml` servers and global prompts."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import tomlkit

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

from aix.editors.types import EditorRule
from aix.editors.strategies.base import MarkdownSupport, McpServers, RulesStrategy
from aix.editors.strategies.shared import DescribedPromptsStrategy, GlobalMcpStrategy, is_enabled, parse_mcp_servers

CODEX_GLOBAL_MCP_PATH = ".codex/config.toml"
CODEX_GLOBAL_PROMPTS_PATH = ".codex/prompts"


class CodexRulesStrategy(RulesStrategy):
    def rules_dir(self) -> str:
        return ".."

    def file_extension(self) -> str:
        return ".md"

    def format_rule(self, rule: EditorRule) -> str:
        lines: List[str] = []
        if rule.name and not MarkdownSupport.starts_with_heading(rule.content):
            lines.extend(["## {0}".format(rule.name), ""])
        lines.append(rule.content)
        return "\n".join(lines)


def format_codex_mcp(mcp: McpServers) -> str:
    servers: Dict[str, Any] = {}
    for name, config in mcp.items():
        if not is_enabled(config):
            continue
        if "command" in config:
            server: Dict[str, Any] = {"command": config["command"]}
            if config.get("args"):
                server["args"] = list(config["args"])
            if config.get("env"):
                server["env"] = dict(config["env"])
            servers[name] = server
        elif "url" in config:
            servers[name] = {"url": config["url"]}
    if not servers:
        return ""
    return tomlkit.dumps({"mcp_servers": servers})


def parse_codex_mcp(content: str) -> Tuple[McpServers, List[str]]:
    try:
        payload = tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        return {}, ["Failed to parse TOML config: {0}".format(exc)]
    return parse_mcp_servers(payload.get("mcp_servers") or {})


class CodexMcpStrategy(GlobalMcpStrategy):
    def __init__(self) -> None:
        super().__init__(
            editor="codex",
            global_path=CODEX_GLOBAL_MCP_PATH,
            formatter=format_codex_mcp,
            parser=parse_codex_mcp,
        )


class CodexPromptsStrategy(DescribedPromptsStrategy):
    """Prompts are only read from the user's `~/.codex/prompts` directory."""

    def is_global_only(self) -> bool:
        return True

    def prompts_dir(self) -> str:
        return ""

    def global_prompts_path(self) -> str:
        return CODEX_GLOBAL_PROMPTS_PATH
