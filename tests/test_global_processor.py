from __future__ import annotations

import json
from pathlib import Path

import tomlkit

from aix.editors.strategies.codex import CodexMcpStrategy, CodexPromptsStrategy
from aix.editors.strategies.windsurf import WindsurfMcpStrategy, WindsurfPromptsStrategy
from aix.editors.types import EditorConfig, EditorPrompt
from aix.global_config.processor import (
    SKIP_CI,
    SKIP_DISABLED,
    SKIP_IDENTICAL,
    SKIP_MCP_CONFLICT,
    GlobalChangeOptions,
    analyze_global_changes,
    apply_global_changes,
    remove_from_global_mcp_config,
    summarize_global_changes,
)
from aix.global_config.tracking import GlobalTrackingService

WINDSURF_FILE = Path(".codeium") / "windsurf" / "mcp_config.json"


def _windsurf_changes(home: Path, mcp):
    return analyze_global_changes(
        "windsurf",
        EditorConfig(mcp=mcp),
        WindsurfMcpStrategy(),
        WindsurfPromptsStrategy(),
        home,
    )


def _options(home: Path, project: Path, **kwargs) -> GlobalChangeOptions:
    return GlobalChangeOptions(project_path=project, home=home, environ={}, **kwargs)


def _tracking(home: Path) -> GlobalTrackingService:
    return GlobalTrackingService(home / ".aix" / "global-tracking.json")


def test_analyze_classifies_add_identical_and_conflict(home: Path):
    path = home / WINDSURF_FILE
    path.parent.mkdir(parents=True)
    path.write_text(
        json.dumps(
            {
                "mcpServers": {
                    "same": {"command": "npx", "args": ["same"]},
                    "diff": {"command": "npx", "args": ["old"]},
                }
            }
        ),
        encoding="utf-8",
    )

    changes = _windsurf_changes(
        home,
        {
            "same": {"command": "npx", "args": ["same"]},
            "diff": {"command": "npx", "args": ["new"]},
            "fresh": {"url": "https://mcp.example"},
        },
    )

    by_name = {change.name: change for change in changes}
    assert by_name["same"].action == "skip"
    assert by_name["same"].skip_reason == SKIP_IDENTICAL
    assert by_name["same"].configs_match is True
    assert by_name["diff"].skip_reason == SKIP_MCP_CONFLICT
    assert by_name["diff"].configs_match is False
    assert by_name["fresh"].action == "add"
    assert by_name["fresh"].global_path == path
    assert by_name["fresh"].format == "json"

    summary = summarize_global_changes(changes)
    assert [c.name for c in summary.to_add] == ["fresh"]
    assert [c.name for c in summary.to_skip] == ["diff"]
    assert [c.name for c in summary.already_configured] == ["same"]


def test_apply_adds_entry_backs_up_once_and_tracks_project(home: Path, project: Path):
    path = home / WINDSURF_FILE
    path.parent.mkdir(parents=True)
    path.write_text('{"mcpServers": {"existing": {"command": "keep"}}, "other": 1}', encoding="utf-8")

    changes = _windsurf_changes(
        home,
        {"fs": {"command": "npx", "args": ["fs"]}, "web": {"url": "https://w", "disabledTools": ["t"]}},
    )
    result = apply_global_changes(changes, _options(home, project))

    assert [c.name for c in result.applied] == ["fs", "web"]
    assert result.warnings == []
    written = json.loads(path.read_text(encoding="utf-8"))
    assert written == {
        "mcpServers": {
            "existing": {"command": "keep"},
            "fs": {"command": "npx", "args": ["fs"]},
            "web": {"url": "https://w", "disabledTools": ["t"]},
        },
        "other": 1,
    }

    backups = list((home / ".aix" / "backups").iterdir())
    assert len(backups) == 1
    assert backups[0].name.startswith(".codeium_windsurf_mcp_config.json.")
    assert backups[0].name.endswith(".bak")
    assert json.loads(backups[0].read_text(encoding="utf-8"))["mcpServers"] == {"existing": {"command": "keep"}}

    entry = _tracking(home).get_entry("windsurf:mcp:fs")
    assert entry is not None
    assert entry.projects == [str(project)]


def test_second_project_shares_the_tracked_entry(home: Path, tmp_path: Path):
    first = tmp_path / "one"
    second = tmp_path / "two"
    mcp = {"fs": {"command": "npx", "args": ["fs"]}}

    apply_global_changes(_windsurf_changes(home, mcp), _options(home, first))
    again = _windsurf_changes(home, mcp)
    assert again[0].action == "skip" and again[0].configs_match is True

    result = apply_global_changes(again, _options(home, second))

    assert result.applied == []
    assert result.warnings == []
    # Identical entries are skipped, so the second project is not recorded here.
    assert _tracking(home).get_entry("windsurf:mcp:fs").projects == [str(first)]


def test_conflicting_entry_is_never_overwritten(home: Path, project: Path):
    path = home / WINDSURF_FILE
    path.parent.mkdir(parents=True)
    original = '{"mcpServers": {"fs": {"command": "mine"}}}'
    path.write_text(original, encoding="utf-8")

    result = apply_global_changes(_windsurf_changes(home, {"fs": {"command": "theirs"}}), _options(home, project))

    assert result.applied == []
    assert result.warnings == ['[windsurf] mcp "fs": {0}'.format(SKIP_MCP_CONFLICT)]
    assert path.read_text(encoding="utf-8") == original


def test_ci_environment_skips_every_add_with_a_warning(home: Path, project: Path):
    changes = _windsurf_changes(home, {"fs": {"command": "npx"}})

    result = apply_global_changes(
        changes,
        GlobalChangeOptions(project_path=project, home=home, environ={"CI": "true"}),
    )

    assert result.applied == []
    assert [c.skip_reason for c in result.skipped] == [SKIP_CI]
    assert result.warnings == ['[windsurf] Skipped global mcp "fs" - CI environment detected']
    assert not (home / WINDSURF_FILE).exists()


def test_skip_global_and_dry_run_leave_files_alone(home: Path, project: Path):
    changes = _windsurf_changes(home, {"fs": {"command": "npx"}})

    skipped = apply_global_changes(changes, _options(home, project, skip_global=True))
    assert [c.skip_reason for c in skipped.skipped] == [SKIP_DISABLED]

    dry = apply_global_changes(changes, _options(home, project, dry_run=True))
    assert [c.name for c in dry.applied] == ["fs"]
    assert not (home / WINDSURF_FILE).exists()
    assert _tracking(home).list_entries() == []


def test_codex_toml_is_updated_in_place(home: Path, project: Path):
    path = home / ".codex" / "config.toml"
    path.parent.mkdir(parents=True)
    path.write_text('# user settings\nmodel = "o3"\n\n[mcp_servers.old]\ncommand = "old"\n', encoding="utf-8")

    changes = analyze_global_changes(
        "codex",
        EditorConfig(mcp={"fs": {"command": "npx", "args": ["fs"], "env": {"ROOT": "/"}}}),
        CodexMcpStrategy(),
        CodexPromptsStrategy(),
        home,
    )
    assert changes[0].format == "toml"

    result = apply_global_changes(changes, _options(home, project))

    assert [c.name for c in result.applied] == ["fs"]
    text = path.read_text(encoding="utf-8")
    assert text.startswith("# user settings\n")
    parsed = tomlkit.parse(text).unwrap()
    assert parsed["model"] == "o3"
    assert parsed["mcp_servers"]["old"] == {"command": "old"}
    assert parsed["mcp_servers"]["fs"] == {"command": "npx", "args": ["fs"], "env": {"ROOT": "/"}}


def test_codex_prompts_are_written_to_home(home: Path, project: Path):
    prompt = EditorPrompt(name="Review PR", content="Review it.", description="Review")
    changes = analyze_global_changes(
        "codex",
        EditorConfig(prompts=[prompt]),
        CodexMcpStrategy(),
        CodexPromptsStrategy(),
        home,
    )

    assert len(changes) == 1
    assert changes[0].type == "prompt"
    assert changes[0].global_path == home / ".codex" / "prompts" / "review-pr.md"

    apply_global_changes(changes, _options(home, project))
    assert changes[0].global_path.read_text(encoding="utf-8") == "---\ndescription: Review\n---\n\nReview it."
    assert _tracking(home).get_entry("codex:prompt:review-pr") is not None

    again = analyze_global_changes(
        "codex", EditorConfig(prompts=[prompt]), CodexMcpStrategy(), CodexPromptsStrategy(), home
    )
    assert again[0].action == "skip"
    assert again[0].configs_match is True


def test_remove_from_global_mcp_config(home: Path):
    path = home / WINDSURF_FILE
    path.parent.mkdir(parents=True)
    path.write_text('{"mcpServers": {"a": {"command": "x"}, "b": {"command": "y"}}}', encoding="utf-8")

    assert remove_from_global_mcp_config(path, "a", home=home) is True
    assert json.loads(path.read_text(encoding="utf-8")) == {"mcpServers": {"b": {"command": "y"}}}
    assert remove_from_global_mcp_config(path, "a", home=home) is False
    assert remove_from_global_mcp_config(home / "missing.json", "a", home=home) is False

    toml_path = home / ".codex" / "config.toml"
    toml_path.parent.mkdir(parents=True)
    toml_path.write_text('[mcp_servers.a]\ncommand = "x"\n', encoding="utf-8")
    assert remove_from_global_mcp_config(toml_path, "a", home=home) is True
    assert "command" not in toml_path.read_text(encoding="utf-8")
