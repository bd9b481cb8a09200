"""Strategy variants shared by several editors."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from aix.editors.types import (
    ACTION_CREATE,
    ACTION_UPDATE,
    CATEGORY_SKILL,
    EditorPrompt,
    EditorRule,
    FileChange,
    HooksConfig,
    RuleActivation,
)
from aix.editors.strategies.base import (
    HooksStrategy,
    MarkdownSupport,
    McpServers,
    McpStrategy,
    PromptsStrategy,
    SkillsStrategy,
)
from aix.loaders.skills import ParsedSkill

AIX_SKILLS_DIR = Path(".aix") / "skills"

McpFormatter = Callable[[McpServers], str]
McpParser = Callable[[str], Tuple[McpServers, List[str]]]


def is_enabled(server: Mapping[str, Any]) -> bool:
    return server.get("enabled") is not False


def _aix_skill_change(name: str, skill: ParsedSkill, project_root: Path) -> FileChange:
    target = Path(project_root) / AIX_SKILLS_DIR / name
    return FileChange(
        path=target,
        action=ACTION_UPDATE if target.exists() else ACTION_CREATE,
        category=CATEGORY_SKILL,
        content="[skill directory: {0}]".format(skill.base_path),
        is_directory=True,
        source_dir=Path(skill.base_path),
    )


class NativeSkillsStrategy(SkillsStrategy):
    """Canonical copy under `.aix/skills` plus a relative link from the editor's skills dir."""

    def __init__(self, editor_skills_dir: str) -> None:
        self._editor_skills_dir = editor_skills_dir

    @property
    def editor_skills_dir(self) -> str:
        return self._editor_skills_dir

    def is_native(self) -> bool:
        return True

    def install_skills(self, skills: Mapping[str, ParsedSkill], project_root: Path) -> List[FileChange]:
        changes: List[FileChange] = []
        for name, skill in skills.items():
            copy_change = _aix_skill_change(name, skill, project_root)
            changes.append(copy_change)

            link_path = Path(project_root) / self._editor_skills_dir / name
            relative = os.path.relpath(str(copy_change.path), str(link_path.parent))
            exists = link_path.is_symlink() or link_path.exists()
            changes.append(
                FileChange(
                    path=link_path,
                    action=ACTION_UPDATE if exists else ACTION_CREATE,
                    category=CATEGORY_SKILL,
                    content="[symlink -> {0}]".format(relative),
                    is_directory=True,
                    link_target=relative,
                )
            )
        return changes

    def generate_skill_rules(self, skills: Mapping[str, ParsedSkill]) -> List[EditorRule]:
        return []


class PointerSkillsStrategy(SkillsStrategy):
    """Copy skills under `.aix/skills` and describe each one in an always-on rule."""

    def is_native(self) -> bool:
        return False

    def install_skills(self, skills: Mapping[str, ParsedSkill], project_root: Path) -> List[FileChange]:
        return [_aix_skill_change(name, skill, project_root) for name, skill in skills.items()]

    def generate_skill_rules(self, skills: Mapping[str, ParsedSkill]) -> List[EditorRule]:
        rules: List[EditorRule] = []
        for name, skill in skills.items():
            meta = skill.frontmatter
            sections = [meta.description or "No description provided"]
            if meta.compatibility:
                sections.extend(["", "**Compatibility**: {0}".format(meta.compatibility)])
            if meta.license:
                sections.extend(["", "**License**: {0}".format(meta.license)])
            if meta.allowed_tools:
                sections.extend(["", "**Allowed Tools**: {0}".format(" ".join(meta.allowed_tools))])
            if meta.metadata:
                sections.extend(["", "## Metadata"])
                for key, value in meta.metadata.items():
                    sections.append("- **{0}**: {1}".format(key, value))
            sections.extend(
                [
                    "",
                    "## Location",
                    "",
                    "This skill is installed at `.aix/skills/{0}/`. "
                    "Read the `SKILL.md` file there for full instructions.".format(name),
                    "",
                    "## Quick Reference",
                    "",
                    "- **Instructions**: `.aix/skills/{0}/SKILL.md`".format(name),
                    "- **Scripts**: `.aix/skills/{0}/scripts/` (if available)".format(name),
                    "- **References**: `.aix/skills/{0}/references/` (if available)".format(name),
                    "",
                    "When you need to use this skill, read the SKILL.md file for detailed instructions.",
                ]
            )
            rules.append(
                EditorRule(
                    name="skill-{0}".format(name),
                    content="\n".join(sections),
                    activation=RuleActivation(type="always"),
                )
            )
        return rules


def parse_mcp_servers(
    servers: Mapping[str, Any],
    *,
    label: str = "MCP server",
    keep_disabled_tools: bool = False,
) -> Tuple[McpServers, List[str]]:
    """Normalize a `name -> server` map read from a global config file."""
    mcp: McpServers = {}
    warnings: List[str] = []
    for name, raw in (servers or {}).items():
        server = raw if isinstance(raw, dict) else {}
        entry: Dict[str, Any] = {}
        if server.get("command"):
            entry["command"] = str(server["command"])
            args = server.get("args")
            if isinstance(args, list) and args:
                entry["args"] = [str(item) for item in args]
            env = server.get("env")
            if isinstance(env, dict) and env:
                entry["env"] = {str(key): str(value) for key, value in env.items()}
        elif server.get("url"):
            entry["url"] = str(server["url"])
        else:
            warnings.append('Skipping {0} "{1}": unknown format'.format(label, name))
            continue
        if keep_disabled_tools:
            if server.get("disabled") is True:
                entry["enabled"] = False
            tools = server.get("disabledTools")
            if isinstance(tools, list) and tools:
                entry["disabledTools"] = [str(item) for item in tools]
        mcp[name] = entry
    return mcp, warnings


def format_standard_servers(mcp: McpServers) -> Dict[str, Any]:
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
    return servers


class StandardMcpStrategy(McpStrategy):
    """`mcp.json` with an `mcpServers` map, written inside the editor config dir."""

    def is_supported(self) -> bool:
        return True

    def config_path(self) -> str:
        return "mcp.json"

    def format_config(self, mcp: McpServers) -> str:
        return MarkdownSupport.dump_json({"mcpServers": format_standard_servers(mcp)})

    def parse_global_config(self, content: str) -> Tuple[McpServers, List[str]]:
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            return {}, ["Failed to parse MCP config: {0}".format(exc)]
        if not isinstance(payload, dict):
            return {}, ["Failed to parse MCP config: root must be an object"]
        return parse_mcp_servers(payload.get("mcpServers") or {})


class GlobalMcpStrategy(McpStrategy):
    """MCP servers that live only in one machine-wide file under the home directory."""

    def __init__(
        self,
        *,
        editor: str,
        global_path: str,
        formatter: McpFormatter,
        parser: McpParser,
    ) -> None:
        self._editor = editor
        self._global_path = global_path
        self._formatter = formatter
        self._parser = parser

    @property
    def editor(self) -> str:
        return self._editor

    @property
    def file_format(self) -> str:
        return "toml" if self._global_path.endswith(".toml") else "json"

    def is_supported(self) -> bool:
        return True

    def is_global_only(self) -> bool:
        return True

    def config_path(self) -> str:
        return ""

    def global_config_path(self) -> Optional[str]:
        return self._global_path

    def format_config(self, mcp: McpServers) -> str:
        return self._formatter(mcp)

    def parse_global_config(self, content: str) -> Tuple[McpServers, List[str]]:
        return self._parser(content)


class NoMcpStrategy(McpStrategy):
    def is_supported(self) -> bool:
        return False

    def config_path(self) -> str:
        return ""

    def format_config(self, mcp: McpServers) -> str:
        return ""


class NoPromptsStrategy(PromptsStrategy):
    def is_supported(self) -> bool:
        return False

    def prompts_dir(self) -> str:
        return ""

    def file_extension(self) -> str:
        return ""

    def format_prompt(self, prompt: EditorPrompt) -> str:
        return ""


class NoHooksStrategy(HooksStrategy):
    def is_supported(self) -> bool:
        return False

    def config_path(self) -> str:
        return ""

    def format_config(self, hooks: HooksConfig) -> str:
        return ""

    def unsupported_events(self, hooks: HooksConfig) -> List[str]:
        return list(hooks or {})


class DescribedPromptsStrategy(PromptsStrategy):
    """Prompt files with optional `description` / `argument-hint` frontmatter."""

    def is_supported(self) -> bool:
        return True

    def file_extension(self) -> str:
        return ".md"

    def format_prompt(self, prompt: EditorPrompt) -> str:
        fields = []
        if prompt.description:
            fields.append(("description", prompt.description))
        if prompt.argument_hint:
            fields.append(("argument-hint", prompt.argument_hint))
        lines = MarkdownSupport.frontmatter_lines(fields)
        lines.append(prompt.content)
        return "\n".join(lines)


class ToolMatcherHooksStrategy:
    """Mixin for editors whose hooks are `{matcher, hooks: [{type, command}]}` buckets."""

    tool_matchers: Dict[str, str] = {
        "pre_command": "Bash",
        "post_command": "Bash",
        "pre_file_read": "Read",
        "post_file_read": "Read",
        "pre_file_write": "Write|Edit",
        "post_file_write": "Write|Edit",
        "pre_mcp_tool": "mcp__.*",
        "post_mcp_tool": "mcp__.*",
    }

    def _collect(
        self,
        out: Dict[str, List[Dict[str, Any]]],
        target: str,
        event: str,
        matchers: List[Dict[str, Any]],
    ) -> None:
        tool_matcher = self.tool_matchers.get(event)
        bucket = out.setdefault(target, [])
        for matcher in matchers:
            hooks = []
            for hook in matcher.get("hooks") or []:
                entry: Dict[str, Any] = {"type": "command", "command": hook.get("command")}
                if hook.get("timeout"):
                    entry["timeout"] = hook["timeout"]
                hooks.append(entry)
            bucket.append({"matcher": tool_matcher or matcher.get("matcher") or "", "hooks": hooks})
