"""Discovery, loading and persistence of `ai.json` documents."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from aix.config import DOCUMENT_FILE_NAME, LOCAL_DOCUMENT_FILE_NAME
from aix.merge import merge_configs

DocumentValidator = Callable[[Mapping[str, Any]], None]


class DocumentError(RuntimeError):
    """Raised when a document cannot be read, parsed or validated."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__("{0}: {1}".format(path, message))
        self.path = Path(path)
        self.message = message


@dataclass
class LoadedDocument:
    path: Path
    config: Dict[str, Any]
    local_path: Optional[Path] = None

    @property
    def base_dir(self) -> Path:
        return self.path.parent

    @property
    def has_local_overrides(self) -> bool:
        return self.local_path is not None


def load_document_file(path: Path) -> Dict[str, Any]:
    resolved = Path(path).expanduser()
    try:
        raw = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentError(resolved, "cannot read file ({0})".format(exc)) from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DocumentError(resolved, "invalid JSON at line {0}: {1}".format(exc.lineno, exc.msg)) from exc
    if not isinstance(payload, dict):
        raise DocumentError(resolved, "document root must be an object")
    return payload


def _find_upwards(start_dir: Path) -> Optional[Path]:
    current = Path(start_dir).resolve()
    while True:
        candidate = current / DOCUMENT_FILE_NAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def local_document_path(document_path: Path) -> Path:
    """`ai.json` pairs with `ai.local.json`; any other `x.json` with `x.local.json`."""
    path = Path(document_path)
    if path.name == DOCUMENT_FILE_NAME:
        return path.with_name(LOCAL_DOCUMENT_FILE_NAME)
    return path.with_name("{0}.local.json".format(path.stem))


def discover_document(start_dir: Path, explicit_path: Optional[Path] = None) -> Optional[LoadedDocument]:
    if explicit_path is not None:
        path = (Path(start_dir) / Path(explicit_path).expanduser()).resolve()
        if not path.is_file():
            return None
    else:
        found = _find_upwards(start_dir)
        if found is None:
            return None
        path = found

    config = load_document_file(path)
    local_path = local_document_path(path)
    if not local_path.is_file():
        return LoadedDocument(path=path, config=config)

    overrides = load_document_file(local_path)
    return LoadedDocument(path=path, config=merge_configs(config, overrides), local_path=local_path)


def render_document(config: Mapping[str, Any]) -> str:
    return json.dumps(config, ensure_ascii=False, indent=2) + "\n"


def write_document(
    path: Path,
    config: Mapping[str, Any],
    validator: Optional[DocumentValidator] = None,
) -> Path:
    resolved = Path(path).expanduser()
    if validator is not None:
        validator(config)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    resolved.write_text(render_document(config), encoding="utf-8")
    return resolved
