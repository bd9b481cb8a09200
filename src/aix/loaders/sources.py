"""Source references and the content loader contract."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

_LOCAL_FILE_EXTENSIONS = re.compile(r"\.(md|txt|json|ya?ml|prompt\.md)$", re.IGNORECASE)
_GIT_SHORTHAND = re.compile(r"^(github|gitlab|bitbucket):")
_HAS_EXTENSION = re.compile(r"\.[a-z0-9]+$", re.IGNORECASE)


class SourceResolutionError(RuntimeError):
    """Raised when a skill, rule or prompt source cannot be resolved."""


@dataclass(frozen=True)
class LoadedContent:
    content: str
    source_path: Optional[str] = None


def is_local_path(value: str) -> bool:
    if value.startswith(("./", "../", "/", "file:")):
        return True
    if "://" in value or _GIT_SHORTHAND.match(value):
        return False
    return bool(_LOCAL_FILE_EXTENSIONS.search(value))


def _parse_npm_ref(value: str) -> Optional[Dict[str, str]]:
    if not _HAS_EXTENSION.search(value) or ":" in value:
        return None
    parts = value.split("/")
    if value.startswith("@"):
        if len(parts) < 3:
            return None
        return {"npm": "/".join(parts[:2]), "path": "/".join(parts[2:])}
    if len(parts) < 2:
        return None
    return {"npm": parts[0], "path": "/".join(parts[1:])}


def normalize_source_ref(value: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Expand a string shorthand into its object form.

    Local paths become `{"path": ...}`, package references that name a file
    become `{"npm": {"npm": ..., "path": ...}}` and anything else is treated
    as a git reference `{"git": {"url": ...}}`. Objects pass through.
    """
    if not isinstance(value, str):
        return value
    if is_local_path(value):
        return {"path": value[5:] if value.startswith("file:") else value}
    npm = _parse_npm_ref(value)
    if npm is not None:
        return {"npm": npm}
    return {"git": {"url": value}}


def describe_ref(ref: Dict[str, Any]) -> str:
    if ref.get("path"):
        return str(ref["path"])
    git = ref.get("git")
    if isinstance(git, dict):
        return str(git.get("url") or "")
    if isinstance(git, str):
        return git
    npm = ref.get("npm")
    if isinstance(npm, dict):
        return "{0}/{1}".format(npm.get("npm") or "", npm.get("path") or "").rstrip("/")
    if isinstance(npm, str):
        return npm
    return "<unknown>"


class ContentLoader(ABC):
    """Resolves source references into content or a local directory."""

    @abstractmethod
    def load(self, ref: Dict[str, Any], *, kind: str, base_dir: Path) -> LoadedContent:
        raise NotImplementedError

    @abstractmethod
    def fetch_directory(self, ref: Dict[str, Any], *, kind: str, base_dir: Path) -> Path:
        raise NotImplementedError


class LocalContentLoader(ContentLoader):
    """Resolves `path` references against the document directory.

    Git and package-registry references need a fetching loader supplied by
    the caller; this one reports them as unresolvable.
    """

    def load(self, ref: Dict[str, Any], *, kind: str, base_dir: Path) -> LoadedContent:
        path = self._local_path(ref, kind=kind, base_dir=base_dir)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SourceResolutionError("cannot read {0} source {1}: {2}".format(kind, path, exc)) from exc
        return LoadedContent(content=content.strip(), source_path=str(path))

    def fetch_directory(self, ref: Dict[str, Any], *, kind: str, base_dir: Path) -> Path:
        path = self._local_path(ref, kind=kind, base_dir=base_dir)
        if not path.exists():
            raise SourceResolutionError("{0} path does not exist: {1}".format(kind, path))
        if not path.is_dir():
            raise SourceResolutionError("{0} path is not a directory: {1}".format(kind, path))
        return path

    @staticmethod
    def _local_path(ref: Dict[str, Any], *, kind: str, base_dir: Path) -> Path:
        raw = ref.get("path")
        if not raw:
            raise SourceResolutionError(
                "{0} source '{1}' requires a remote loader".format(kind, describe_ref(ref))
            )
        return (Path(base_dir) / Path(str(raw)).expanduser()).resolve()
