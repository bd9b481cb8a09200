from __future__ import annotations

import json
from pathlib import Path

import pytest

from aix.global_config.tracking import GlobalTrackingService, TrackingStoreError, make_tracking_key


def _service(tmp_path: Path) -> GlobalTrackingService:
    return GlobalTrackingService(tmp_path / ".aix" / "global-tracking.json")


def _add(service: GlobalTrackingService, project: str, name: str = "fs", editor: str = "windsurf") -> str:
    key = make_tracking_key(editor, "mcp", name)
    service.add_project_dependency(key, editor=editor, entry_type="mcp", name=name, project_path=project)
    return key


def test_make_tracking_key():
    assert make_tracking_key("codex", "prompt", "review") == "codex:prompt:review"


def test_same_entry_from_two_projects_is_reference_counted(tmp_path: Path):
    service = _service(tmp_path)
    key = _add(service, "/work/a")
    _add(service, "/work/b/")
    _add(service, "/work/a")

    entry = service.get_entry(key)
    assert entry is not None
    assert entry.projects == ["/work/a", "/work/b"]
    assert entry.added_at.endswith("Z")

    assert service.remove_project_dependency(key, "/work/a") == ["/work/b"]
    assert service.get_entry(key).projects == ["/work/b"]

    assert service.remove_project_dependency(key, "/work/b") == []
    assert service.get_entry(key) is None
    assert json.loads(service.file_path.read_text(encoding="utf-8")) == {"version": 1, "entries": {}}


def test_missing_or_corrupted_store_reads_as_empty(tmp_path: Path):
    service = _service(tmp_path)
    assert service.list_entries() == []

    service.file_path.parent.mkdir(parents=True)
    service.file_path.write_text("{ broken", encoding="utf-8")
    assert service.list_entries() == []

    service.file_path.write_bytes(b"\xff\xfe{garbage")
    assert service.list_entries() == []

    _add(service, "/work/a")
    assert len(service.list_entries()) == 1


def test_unknown_store_version_raises(tmp_path: Path):
    service = _service(tmp_path)
    service.file_path.parent.mkdir(parents=True)
    service.file_path.write_text('{"version": 2, "entries": {}}', encoding="utf-8")

    with pytest.raises(TrackingStoreError):
        service.load()


def test_queries_by_editor_and_project(tmp_path: Path):
    service = _service(tmp_path)
    key_a = _add(service, "/work/a", name="fs", editor="windsurf")
    key_b = _add(service, "/work/a", name="db", editor="codex")
    _add(service, "/work/b", name="db", editor="codex")

    assert [entry.key for entry in service.list_entries_for_editor("codex")] == [key_b]
    assert {entry.key for entry in service.get_entries_for_project("/work/a/")} == {key_a, key_b}
    assert service.has_project_dependency(key_b, "/work/b") is True
    assert service.has_project_dependency(key_a, "/work/b") is False
    assert service.get_orphaned_entries() == []

    assert service.remove_all_for_project("/work/a") == [key_a]
    assert service.get_entry(key_b).projects == ["/work/b"]

    assert service.remove_entry(key_b) is True
    assert service.remove_entry(key_b) is False


def test_prune_missing_projects(tmp_path: Path):
    alive = tmp_path / "alive"
    alive.mkdir()
    service = _service(tmp_path)
    shared = _add(service, str(alive), name="shared")
    _add(service, str(tmp_path / "gone"), name="shared")
    lonely = _add(service, str(tmp_path / "gone"), name="lonely")

    pruned, removed = service.prune_missing_projects(dry_run=True)
    assert pruned == [str(tmp_path / "gone")]
    assert removed == [lonely]
    assert service.get_entry(lonely) is not None

    service.prune_missing_projects()
    assert service.get_entry(lonely) is None
    assert service.get_entry(shared).projects == [str(alive)]
