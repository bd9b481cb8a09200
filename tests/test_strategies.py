from __future__ import annotations

import json

from aix.editors.strategies.claude_code import ClaudeCodeHooksStrategy, ClaudeCodeMcpStrategy, ClaudeCodeRulesStrategy
from aix.editors.strategies.codex import CodexMcpStrategy, parse_codex_mcp
from aix.editors.strategies.cursor import CursorHooksStrategy, CursorRulesStrategy
from aix.editors.strategies.vscode import CopilotRulesStrategy, VSCodeMcpStrategy
from aix.editors.strategies.windsurf import WindsurfMcpStrategy, WindsurfRulesStrategy
from aix.editors.strategies.zed import ZedMcpStrategy
from aix.editors.strategies.shared import DescribedPromptsStrategy, NoHooksStrategy
from aix.editors.types import EditorPrompt, EditorRule, RuleActivation

SERVERS = {
    "fs": {"command": "npx", "args": ["-y", "fs-server"], "env": {"ROOT": "/tmp"}},
    "web": {"url": "https://mcp.example/sse"},
    "off": {"command": "noop", "enabled": False},
}


def _rule(activation: RuleActivation, content: str = "Keep functions small.") -> EditorRule:
    return EditorRule(name="style", content=content, activation=activation)


def test_cursor_rule_frontmatter_always_present():
    text = CursorRulesStrategy().format_rule(
        _rule(RuleActivation(type="glob", description="Python style", globs=["*.py", "tests/*.py"]))
    )
    assert text == (
        "---\n"
        'description: "Python style"\n'
        "globs: *.py, tests/*.py\n"
        "alwaysApply: false\n"
        "---\n"
        "\n"
        "# style\n"
        "\n"
        "Keep functions small."
    )


def test_claude_rule_uses_paths_and_keeps_existing_heading():
    text = ClaudeCodeRulesStrategy().format_rule(
        _rule(RuleActivation(type="glob", globs=["src/**"]), content="# Own heading\nBody")
    )
    assert text == "---\npaths:\n  - src/**\n---\n\n# Own heading\nBody"

    plain = ClaudeCodeRulesStrategy().format_rule(_rule(RuleActivation(type="always")))
    assert plain == "# style\n\nKeep functions small."


def test_windsurf_rule_triggers():
    text = WindsurfRulesStrategy().format_rule(_rule(RuleActivation(type="auto", description="When styling")))
    assert text.splitlines()[:4] == ["---", "trigger: model_decision", "description: When styling", "---"]


def test_copilot_rule_apply_to():
    text = CopilotRulesStrategy().format_rule(_rule(RuleActivation(type="glob", globs=["*.ts"])))
    assert text.startswith('---\napplyTo: "*.ts"\n---\n')


def test_standard_mcp_formatters_skip_disabled_servers():
    claude = json.loads(ClaudeCodeMcpStrategy().format_config(SERVERS))
    assert claude == {
        "mcpServers": {
            "fs": {"type": "stdio", "command": "npx", "args": ["-y", "fs-server"], "env": {"ROOT": "/tmp"}},
            "web": {"type": "http", "url": "https://mcp.example/sse"},
        }
    }

    zed = json.loads(ZedMcpStrategy().format_config({"bare": {"command": "run"}}))
    assert zed == {"context_servers": {"bare": {"command": "run", "args": [], "env": {}}}}

    vscode = json.loads(VSCodeMcpStrategy().format_config({"web": {"url": "u"}}))
    assert vscode == {"servers": {"web": {"type": "http", "url": "u"}}}


def test_global_mcp_strategies_expose_home_relative_paths():
    windsurf = WindsurfMcpStrategy()
    codex = CodexMcpStrategy()
    assert windsurf.is_global_only() and codex.is_global_only()
    assert windsurf.global_config_path() == ".codeium/windsurf/mcp_config.json"
    assert windsurf.file_format == "json"
    assert codex.file_format == "toml"


def test_windsurf_global_parse_keeps_disabled_state_and_warns_on_unknown():
    content = json.dumps(
        {
            "mcpServers": {
                "fs": {"command": "npx", "args": ["fs"], "disabled": True, "disabledTools": ["rm"]},
                "odd": {"transport": "pipe"},
            }
        }
    )
    servers, warnings = WindsurfMcpStrategy().parse_global_config(content)
    assert servers == {"fs": {"command": "npx", "args": ["fs"], "enabled": False, "disabledTools": ["rm"]}}
    assert warnings == ['Skipping MCP server "odd": unknown format']


def test_codex_mcp_round_trips_through_toml():
    text = CodexMcpStrategy().format_config(SERVERS)
    servers, warnings = parse_codex_mcp(text)
    assert warnings == []
    assert servers == {
        "fs": {"command": "npx", "args": ["-y", "fs-server"], "env": {"ROOT": "/tmp"}},
        "web": {"url": "https://mcp.example/sse"},
    }
    assert CodexMcpStrategy().format_config({}) == ""


def test_described_prompt_frontmatter():
    prompt = EditorPrompt(name="review", content="Review it.", description="Code review", argument_hint="<pr>")

    class Prompts(DescribedPromptsStrategy):
        def prompts_dir(self) -> str:
            return "commands"

    assert Prompts().format_prompt(prompt) == "---\ndescription: Code review\nargument-hint: <pr>\n---\n\nReview it."
    bare = EditorPrompt(name="bare", content="Just text.")
    assert Prompts().format_prompt(bare) == "Just text."


def test_claude_hooks_translate_events_and_matchers():
    hooks = {
        "pre_command": [{"hooks": [{"command": "check.sh", "timeout": 5}]}],
        "session_start": [{"hooks": [{"command": "hello.sh"}]}],
        "unknown_event": [{"hooks": [{"command": "x"}]}],
    }
    strategy = ClaudeCodeHooksStrategy()

    payload = json.loads(strategy.format_config(hooks))

    assert payload == {
        "hooks": {
            "PreToolUse": [
                {"matcher": "Bash", "hooks": [{"type": "command", "command": "check.sh", "timeout": 5}]}
            ],
            "SessionStart": [{"matcher": "", "hooks": [{"type": "command", "command": "hello.sh"}]}],
        }
    }
    assert strategy.unsupported_events(hooks) == ["unknown_event"]


def test_cursor_hooks_are_flat_command_lists():
    payload = json.loads(
        CursorHooksStrategy().format_config({"post_file_write": [{"hooks": [{"command": "fmt.sh"}]}]})
    )
    assert payload == {"hooks": {"afterFileEdit": [{"command": "fmt.sh"}]}}


def test_no_hooks_strategy_reports_every_event():
    assert NoHooksStrategy().unsupported_events({"pre_command": [], "agent_stop": []}) == ["pre_command", "agent_stop"]
