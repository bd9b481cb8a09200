from __future__ import annotations

import json
from pathlib import Path

from aix.editors.adapters import (
    ClaudeCodeAdapter,
    CodexAdapter,
    CopilotAdapter,
    CursorAdapter,
    KiroAdapter,
    VSCodeAdapter,
    WindsurfAdapter,
    ZedAdapter,
)
from aix.editors.types import ApplyOptions

from conftest import write_skill

ALL = ["rules", "mcp", "skills", "editors"]

DOC = {
    "rules": {"style": {"content": "Use four spaces."}},
    "prompts": {"review": {"content": "Review the change.", "description": "Review"}},
    "mcp": {"fs": {"command": "npx", "args": ["fs"]}, "gone": False},
    "hooks": {"pre_command": [{"hooks": [{"command": "guard.sh"}]}]},
}


def _plan(adapter, project: Path, doc=DOC, scopes=ALL, **kwargs):
    options = ApplyOptions(scopes=list(scopes), **kwargs)
    editor_config = adapter.generate_config(doc, project, options)
    return adapter.plan_changes(editor_config, project, options.scopes, options)


def _by_path(changes, project: Path):
    return {str(change.path.relative_to(project)): change for change in changes}


def test_single_rule_against_empty_tree_is_one_create(project: Path):
    changes = _plan(ClaudeCodeAdapter(), project, doc={"rules": {"style": {"content": "x"}}}, scopes=["rules"])

    assert len(changes) == 1
    assert changes[0].action == "create"
    assert changes[0].category == "rule"
    assert changes[0].path == project / ".claude" / "rules" / "style.md"


def test_cursor_plan_covers_every_capability(project: Path):
    changes = _by_path(_plan(CursorAdapter(), project), project)

    assert set(changes) == {
        ".cursor/rules/style.mdc",
        ".cursor/mcp.json",
        ".cursor/commands/review.md",
        ".cursor/hooks.json",
    }
    assert changes[".cursor/mcp.json"].category == "mcp"
    assert changes[".cursor/commands/review.md"].category == "workflow"
    assert changes[".cursor/hooks.json"].category == "hook"
    assert json.loads(changes[".cursor/mcp.json"].content) == {"mcpServers": {"fs": {"command": "npx", "args": ["fs"]}}}


def test_second_apply_is_all_unchanged(project: Path):
    adapter = CursorAdapter()
    options = ApplyOptions(scopes=ALL)

    first = adapter.apply(adapter.generate_config(DOC, project, options), project, options)
    second = adapter.apply(adapter.generate_config(DOC, project, options), project, options)

    assert first.success and second.success
    assert {change.action for change in first.changes} == {"create"}
    assert {change.action for change in second.changes} == {"unchanged"}


def test_mcp_json_is_merged_with_existing_file(project: Path):
    mcp_path = project / ".cursor" / "mcp.json"
    mcp_path.parent.mkdir(parents=True)
    mcp_path.write_text(
        json.dumps(
            {
                "mcpServers": {
                    "mine": {"command": "keep-me"},
                    "fs": {"command": "old", "env": {"TOKEN": "t"}},
                },
                "theme": "dark",
            }
        ),
        encoding="utf-8",
    )

    change = _by_path(_plan(CursorAdapter(), project, scopes=["mcp"]), project)[".cursor/mcp.json"]

    assert change.action == "update"
    assert json.loads(change.content) == {
        "mcpServers": {"mine": {"command": "keep-me"}, "fs": {"command": "npx", "args": ["fs"]}},
        "theme": "dark",
    }


def test_overwrite_replaces_existing_json(project: Path):
    mcp_path = project / ".cursor" / "mcp.json"
    mcp_path.parent.mkdir(parents=True)
    mcp_path.write_text('{"mcpServers": {"mine": {"command": "x"}}}', encoding="utf-8")

    change = _plan(CursorAdapter(), project, scopes=["mcp"], overwrite=True)[0]

    assert json.loads(change.content) == {"mcpServers": {"fs": {"command": "npx", "args": ["fs"]}}}


def test_unparsable_existing_json_falls_back_to_overwrite(project: Path):
    mcp_path = project / ".cursor" / "mcp.json"
    mcp_path.parent.mkdir(parents=True)
    mcp_path.write_text("{ not json", encoding="utf-8")

    change = _plan(CursorAdapter(), project, scopes=["mcp"])[0]

    assert change.action == "update"
    assert json.loads(change.content) == {"mcpServers": {"fs": {"command": "npx", "args": ["fs"]}}}


def test_markdown_rules_are_overwritten_not_merged(project: Path):
    rule_path = project / ".cursor" / "rules" / "style.mdc"
    rule_path.parent.mkdir(parents=True)
    rule_path.write_text("hand edited", encoding="utf-8")

    change = _plan(CursorAdapter(), project, scopes=["rules"])[0]

    assert change.action == "update"
    assert "hand edited" not in change.content


def test_claude_mcp_file_sits_at_project_root(project: Path):
    changes = _by_path(_plan(ClaudeCodeAdapter(), project, scopes=["mcp"]), project)
    assert list(changes) == [".mcp.json"]


def test_vscode_writes_into_github_siblings(project: Path):
    changes = _by_path(_plan(VSCodeAdapter(), project), project)

    assert set(changes) == {
        ".github/instructions/style.instructions.md",
        ".vscode/mcp.json",
        ".github/prompts/review.prompt.md",
        ".github/hooks/hooks.json",
    }


def test_zed_combines_rules_into_one_file(project: Path):
    doc = {"rules": {"a": {"content": "First."}, "b": {"content": "Second."}}}
    changes = _plan(ZedAdapter(), project, doc=doc, scopes=["rules"])

    assert len(changes) == 1
    assert changes[0].path == project / ".rules"
    assert changes[0].content == "# a\n\nFirst.\n\n# b\n\nSecond.\n"


def test_codex_plans_agents_file_only(project: Path):
    changes = _by_path(_plan(CodexAdapter(), project), project)

    assert list(changes) == [".codex/AGENTS.md"]
    assert changes[".codex/AGENTS.md"].content.startswith("# AGENTS.md\n\n## style\n\nUse four spaces.")


def test_global_only_mcp_is_not_planned_in_project(project: Path):
    changes = _by_path(_plan(WindsurfAdapter(), project), project)
    assert ".windsurf/rules/style.md" in changes
    assert ".windsurf/workflows/review.md" in changes
    assert all("mcp" not in path for path in changes)


def test_scopes_gate_sections(project: Path):
    changes = _plan(CursorAdapter(), project, scopes=["rules"])
    assert [change.category for change in changes] == ["rule"]

    assert _plan(CursorAdapter(), project, scopes=[]) == []


def test_dry_run_reports_changes_without_writing(project: Path):
    adapter = CursorAdapter()
    options = ApplyOptions(scopes=ALL, dry_run=True)

    result = adapter.apply(adapter.generate_config(DOC, project, options), project, options)

    assert result.success
    assert len(result.changes) == 4
    assert not (project / ".cursor").exists()


def test_clean_empties_aix_folder_but_keeps_tmp(project: Path):
    stale = project / ".aix" / "skills" / "stale"
    stale.mkdir(parents=True)
    (stale / "SKILL.md").write_text("old", encoding="utf-8")
    scratch = project / ".aix" / ".tmp" / "cache.txt"
    scratch.parent.mkdir(parents=True)
    scratch.write_text("keep", encoding="utf-8")

    adapter = CursorAdapter()
    options = ApplyOptions(scopes=["rules"], clean=True)
    result = adapter.apply(adapter.generate_config(DOC, project, options), project, options)

    assert result.success
    assert not (project / ".aix" / "skills").exists()
    assert scratch.read_text(encoding="utf-8") == "keep"


def test_unsupported_features_are_reported_not_raised():
    doc = {
        "mcp": {"fs": {"command": "x"}, "gone": False},
        "prompts": {"review": {"content": "r"}},
        "hooks": {"pre_command": [], "session_start": []},
    }

    zed = ZedAdapter().get_unsupported_features(doc)
    assert zed.mcp is None
    assert zed.prompts == {"reason": "zed does not support prompts/commands", "prompts": ["review"]}
    assert zed.hooks == {"reason": "zed does not support hooks", "all_unsupported": True}

    cursor = CursorAdapter().get_unsupported_features(doc)
    assert cursor.hooks == {
        "reason": "cursor does not support some hook events",
        "unsupported_events": ["session_start"],
    }
    assert cursor.prompts is None

    assert ClaudeCodeAdapter().get_unsupported_features({"rules": {}}).is_empty()


def test_detect_uses_config_dir(project: Path):
    adapter = CursorAdapter()
    assert adapter.detect(project) is False
    (project / ".cursor").mkdir()
    assert adapter.detect(project) is True


KIRO_DOC = {
    "rules": {
        "style": {"content": "Use four spaces."},
        "tests": {"content": "Test it.", "activation": "glob", "globs": ["*.py", "tests/**"]},
        "ask": {"content": "On request.", "activation": "manual"},
    },
    "prompts": {"review": {"content": "Review the change.", "description": "Review"}},
    "mcp": {"fs": {"command": "npx", "args": ["fs"]}},
    "hooks": {
        "post_file_write": [{"matcher": "*.py", "hooks": [{"command": "ruff check"}]}],
        "agent_stop": [{"hooks": [{"command": "notify.sh"}]}],
        "pre_command": [{"hooks": [{"command": "guard.sh"}]}],
    },
}


def test_kiro_plan_uses_steering_settings_and_per_hook_files(project: Path):
    changes = _by_path(_plan(KiroAdapter(), project, doc=KIRO_DOC), project)

    assert set(changes) == {
        ".kiro/steering/style.md",
        ".kiro/steering/tests.md",
        ".kiro/steering/ask.md",
        ".kiro/steering/review.md",
        ".kiro/settings/mcp.json",
        ".kiro/hooks/post-file-write-hook-0.json",
        ".kiro/hooks/agent-stop-hook-0.json",
    }
    assert changes[".kiro/steering/style.md"].content == "---\ninclusion: always\n---\n\nUse four spaces."
    assert changes[".kiro/steering/tests.md"].content.startswith(
        '---\ninclusion: fileMatch\nfileMatchPattern: "*.py,tests/**"\n---\n'
    )
    assert changes[".kiro/steering/ask.md"].content.startswith("---\ninclusion: manual\n---\n")
    assert changes[".kiro/steering/review.md"].content == (
        '---\ninclusion: manual\ndescription: "Review"\n---\n\nReview the change.'
    )
    assert json.loads(changes[".kiro/settings/mcp.json"].content) == {
        "mcpServers": {"fs": {"command": "npx", "args": ["fs"]}}
    }
    assert json.loads(changes[".kiro/hooks/post-file-write-hook-0.json"].content) == {
        "name": "post_file_write-hook-0",
        "version": "1.0.0",
        "description": "Hook for post_file_write",
        "when": {"type": "fileEdited", "patterns": ["*.py"]},
        "then": {"type": "runCommand", "command": "ruff check"},
    }
    assert KiroAdapter().get_unsupported_features(KIRO_DOC).hooks["unsupported_events"] == ["pre_command"]


def test_kiro_reapply_is_unchanged(project: Path):
    adapter = KiroAdapter()
    options = ApplyOptions(scopes=ALL)
    assert adapter.apply(adapter.generate_config(KIRO_DOC, project, options), project, options).success

    changes = _plan(adapter, project, doc=KIRO_DOC)

    assert {change.action for change in changes} == {"unchanged"}


def test_kiro_converts_skills_into_powers(project: Path):
    skill_dir = write_skill(project / "vendor", "pdf-tools", description="Extract tables from PDF files.")
    (skill_dir / "run.sh").write_text("#!/bin/sh\necho hi\n", encoding="utf-8")
    (skill_dir / "references").mkdir()
    (skill_dir / "references" / "guide.md").write_text("guide\n", encoding="utf-8")
    adapter = KiroAdapter()
    options = ApplyOptions(scopes=["skills", "rules"])

    editor_config = adapter.generate_config({"skills": {"pdf": "./vendor/pdf-tools"}}, project, options)
    result = adapter.apply(editor_config, project, options)

    assert result.success, result.errors
    assert editor_config.rules == []
    power_dir = project / ".kiro" / "powers" / "pdf"
    power_md = (power_dir / "POWER.md").read_text(encoding="utf-8")
    assert power_md.startswith(
        "---\nname: pdf\ndescription: Extract tables from PDF files.\n"
        "keywords: pdf, extract, tables, from, files\n---\n"
    )
    assert "3. Install from local directory: `.kiro/powers/pdf/`" in power_md
    assert power_md.endswith("# Workflows\n\nUse it well.")
    assert (power_dir / "references" / "guide.md").read_text(encoding="utf-8") == "guide\n"
    assert (power_dir / "run.sh").stat().st_mode & 0o111
    assert not (power_dir / "SKILL.md").exists()
    assert (project / ".aix" / "skills" / "pdf" / "SKILL.md").is_file()


def test_copilot_shares_the_vscode_layout(project: Path):
    adapter = CopilotAdapter()
    changes = _by_path(_plan(adapter, project), project)

    assert adapter.name == "copilot"
    assert set(changes) == {
        ".github/instructions/style.instructions.md",
        ".vscode/mcp.json",
        ".github/prompts/review.prompt.md",
        ".github/hooks/hooks.json",
    }
    assert adapter.skills_strategy.is_native()
    assert adapter.skills_strategy.editor_skills_dir == ".github/skills"
