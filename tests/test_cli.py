from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import aix.cli
from aix.global_config.tracking import GlobalTrackingService, make_tracking_key

DOC = {
    "rules": {"style": {"content": "Use four spaces."}},
    "mcp": {"fs": {"command": "npx", "args": ["fs"]}},
}


@pytest.fixture
def workspace(project: Path, home: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (project / "ai.json").write_text(json.dumps(DOC), encoding="utf-8")
    monkeypatch.chdir(project)
    return project


def _combined_output(result) -> str:
    try:
        return result.stdout + result.stderr
    except Exception:
        return result.stdout


def _track(home: Path, project_path: str, name: str = "fs") -> GlobalTrackingService:
    service = GlobalTrackingService(home / ".aix" / "global-tracking.json")
    service.add_project_dependency(
        make_tracking_key("windsurf", "mcp", name),
        editor="windsurf",
        entry_type="mcp",
        name=name,
        project_path=project_path,
    )
    return service


def test_install_dry_run_outputs_json_plan(workspace: Path):
    runner = CliRunner()
    result = runner.invoke(aix.cli.app, ["install", "--editor", "cursor", "--format", "json", "--dry-run"])

    assert result.exit_code == 0
    parsed = json.loads(result.stdout)
    assert parsed["dry_run"] is True
    assert Path(parsed["document"]).name == "ai.json"
    assert [item["editor"] for item in parsed["results"]] == ["cursor"]
    changes = {item["path"]: item["action"] for item in parsed["results"][0]["changes"]}
    assert changes == {".cursor/rules/style.mdc": "create", ".cursor/mcp.json": "create"}
    assert not (workspace / ".cursor").exists()


def test_install_writes_editor_files(workspace: Path):
    runner = CliRunner()
    result = runner.invoke(aix.cli.app, ["install", "-e", "claude-code", "-e", "cursor"])

    assert result.exit_code == 0
    assert "[claude-code] ok" in result.stdout
    assert "[cursor] ok" in result.stdout
    assert (workspace / ".claude" / "rules" / "style.md").exists()
    assert json.loads((workspace / ".cursor" / "mcp.json").read_text(encoding="utf-8")) == {
        "mcpServers": {"fs": {"command": "npx", "args": ["fs"]}}
    }


def test_install_rejects_unknown_editor(workspace: Path):
    runner = CliRunner()
    result = runner.invoke(aix.cli.app, ["install", "--editor", "notepad"])

    assert result.exit_code == 2
    assert "Unknown editor: notepad" in _combined_output(result)


def test_install_without_document_is_usage_error(project: Path, home: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(project)
    runner = CliRunner()
    result = runner.invoke(aix.cli.app, ["install", "--editor", "cursor"])

    assert result.exit_code == 2
    assert "No ai.json found" in _combined_output(result)


def test_install_with_invalid_document_fails(workspace: Path):
    (workspace / "ai.json").write_text("{not json", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(aix.cli.app, ["install", "--editor", "cursor"])

    assert result.exit_code == 1


def test_global_list_json(workspace: Path, home: Path):
    _track(home, str(workspace))
    runner = CliRunner()

    result = runner.invoke(aix.cli.app, ["global", "list", "--format", "json"])

    assert result.exit_code == 0
    parsed = json.loads(result.stdout)
    assert len(parsed) == 1
    assert parsed[0]["key"] == "windsurf:mcp:fs"
    assert parsed[0]["projects"] == [str(workspace)]


def test_global_list_empty_text(workspace: Path):
    runner = CliRunner()
    result = runner.invoke(aix.cli.app, ["global", "list"])

    assert result.exit_code == 0
    assert "No global entries are tracked." in result.stdout


def test_global_cleanup_dry_run_then_force(workspace: Path, home: Path, tmp_path: Path):
    service = _track(home, str(tmp_path / "deleted-project"))
    _track(home, str(workspace), name="kept")
    runner = CliRunner()

    dry = runner.invoke(aix.cli.app, ["global", "cleanup", "--dry-run"])
    assert dry.exit_code == 0
    assert "orphaned entry: windsurf:mcp:fs" in dry.stdout
    assert service.get_entry("windsurf:mcp:fs") is not None

    refused = runner.invoke(aix.cli.app, ["global", "cleanup"])
    assert refused.exit_code == 2
    assert service.get_entry("windsurf:mcp:fs") is not None

    forced = runner.invoke(aix.cli.app, ["global", "cleanup", "--force"])
    assert forced.exit_code == 0
    assert "Removed 1 missing project(s) and 1 orphaned entries." in forced.stdout
    assert service.get_entry("windsurf:mcp:fs") is None
    assert service.get_entry("windsurf:mcp:kept") is not None


def test_global_cleanup_with_nothing_to_do(workspace: Path):
    runner = CliRunner()
    result = runner.invoke(aix.cli.app, ["global", "cleanup", "--force"])

    assert result.exit_code == 0
    assert "Nothing to clean up." in result.stdout
