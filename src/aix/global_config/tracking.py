"""Per-user record of which projects depend on each shared global entry."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from aix.kernel.types import utc_now_iso

TRACKING_VERSION = 1
ENTRY_TYPES = ("mcp", "prompt")


class TrackingStoreError(RuntimeError):
    """Raised when the tracking file exists but cannot be used."""


def make_tracking_key(editor: str, entry_type: str, name: str) -> str:
    return "{0}:{1}:{2}".format(editor, entry_type, name)


def normalize_project_path(project_path: str) -> str:
    value = str(project_path)
    stripped = value.rstrip("/")
    return stripped or value


@dataclass
class GlobalTrackingEntry:
    type: str
    editor: str
    name: str
    projects: List[str] = field(default_factory=list)
    added_at: str = ""

    @property
    def key(self) -> str:
        return make_tracking_key(self.editor, self.type, self.name)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GlobalTrackingEntry":
        projects = payload.get("projects") or []
        return cls(
            type=str(payload.get("type") or ""),
            editor=str(payload.get("editor") or ""),
            name=str(payload.get("name") or ""),
            projects=[str(item) for item in projects if isinstance(item, str)],
            added_at=str(payload.get("addedAt") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "editor": self.editor,
            "name": self.name,
            "projects": list(self.projects),
            "addedAt": self.added_at,
        }


@dataclass
class GlobalTrackingFile:
    version: int = TRACKING_VERSION
    entries: Dict[str, GlobalTrackingEntry] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "entries": {key: entry.to_dict() for key, entry in self.entries.items()},
        }


class GlobalTrackingService:
    """JSON-backed tracking store.

    Every public call loads the file, mutates it and saves it again, so
    callers that share the file across threads must serialize access.
    """

    def __init__(self, file_path: Path) -> None:
        self._file_path = Path(file_path)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> GlobalTrackingFile:
        if not self._file_path.exists():
            return GlobalTrackingFile()
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            # A corrupted file starts over; the next save replaces it.
            return GlobalTrackingFile()
        except OSError as exc:
            raise TrackingStoreError("failed to read tracking file {0}: {1}".format(self._file_path, exc)) from exc

        if not isinstance(payload, dict):
            return GlobalTrackingFile()
        version = payload.get("version")
        if version != TRACKING_VERSION:
            raise TrackingStoreError("Unsupported tracking file version: {0}".format(version))

        entries: Dict[str, GlobalTrackingEntry] = {}
        raw_entries = payload.get("entries") or {}
        if isinstance(raw_entries, dict):
            for key, raw in raw_entries.items():
                if isinstance(raw, dict):
                    entries[str(key)] = GlobalTrackingEntry.from_dict(raw)
        return GlobalTrackingFile(version=TRACKING_VERSION, entries=entries)

    def save(self, data: GlobalTrackingFile) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_path.write_text(
            json.dumps(data.to_dict(), ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )

    def add_project_dependency(
        self,
        key: str,
        *,
        editor: str,
        entry_type: str,
        name: str,
        project_path: str,
    ) -> None:
        data = self.load()
        project = normalize_project_path(project_path)
        entry = data.entries.get(key)
        if entry is None:
            data.entries[key] = GlobalTrackingEntry(
                type=entry_type,
                editor=editor,
                name=name,
                projects=[project],
                added_at=utc_now_iso(),
            )
        elif project not in entry.projects:
            entry.projects.append(project)
        self.save(data)

    def remove_project_dependency(self, key: str, project_path: str) -> List[str]:
        """Drop one project from an entry; returns the projects that still depend on it."""
        data = self.load()
        entry = data.entries.get(key)
        if entry is None:
            return []
        project = normalize_project_path(project_path)
        entry.projects = [item for item in entry.projects if item != project]
        if not entry.projects:
            del data.entries[key]
        self.save(data)
        return list(entry.projects)

    def get_entry(self, key: str) -> Optional[GlobalTrackingEntry]:
        return self.load().entries.get(key)

    def has_project_dependency(self, key: str, project_path: str) -> bool:
        entry = self.get_entry(key)
        if entry is None:
            return False
        return normalize_project_path(project_path) in entry.projects

    def list_entries(self) -> List[GlobalTrackingEntry]:
        return list(self.load().entries.values())

    def list_entries_for_editor(self, editor: str) -> List[GlobalTrackingEntry]:
        return [entry for entry in self.list_entries() if entry.editor == editor]

    def get_orphaned_entries(self) -> List[GlobalTrackingEntry]:
        return [entry for entry in self.list_entries() if not entry.projects]

    def remove_entry(self, key: str) -> bool:
        data = self.load()
        if key not in data.entries:
            return False
        del data.entries[key]
        self.save(data)
        return True

    def get_entries_for_project(self, project_path: str) -> List[GlobalTrackingEntry]:
        project = normalize_project_path(project_path)
        return [entry for entry in self.list_entries() if project in entry.projects]

    def remove_all_for_project(self, project_path: str) -> List[str]:
        """Detach a project everywhere; returns keys of entries left with no project."""
        data = self.load()
        project = normalize_project_path(project_path)
        removed: List[str] = []
        for key in list(data.entries):
            entry = data.entries[key]
            entry.projects = [item for item in entry.projects if item != project]
            if not entry.projects:
                del data.entries[key]
                removed.append(key)
        self.save(data)
        return removed

    def prune_missing_projects(
        self,
        *,
        dry_run: bool = False,
        exists: Optional[Callable[[str], bool]] = None,
    ) -> Tuple[List[str], List[str]]:
        """Forget project paths that no longer exist and entries left without projects.

        Returns `(pruned_projects, removed_keys)`. Only the tracking file is
        touched; the global editor configs stay as they are.
        """
        check = exists or (lambda path: Path(path).exists())
        data = self.load()
        pruned: List[str] = []
        removed: List[str] = []
        for key in list(data.entries):
            entry = data.entries[key]
            kept: List[str] = []
            for project in entry.projects:
                if check(project):
                    kept.append(project)
                elif project not in pruned:
                    pruned.append(project)
            entry.projects = kept
            if not kept:
                del data.entries[key]
                removed.append(key)
        if not dry_run and (pruned or removed):
            self.save(data)
        return pruned, removed
