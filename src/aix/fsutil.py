"""Guarded recursive removal for managed output trees."""

from __future__ import annotations

import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Optional

BLOCKED_PATHS_UNIX = frozenset(
    {
        "/",
        "/bin",
        "/boot",
        "/dev",
        "/etc",
        "/home",
        "/lib",
        "/lib64",
        "/opt",
        "/proc",
        "/root",
        "/run",
        "/sbin",
        "/srv",
        "/sys",
        "/tmp",
        "/usr",
        "/var",
    }
)
BLOCKED_PATHS_WINDOWS = frozenset(
    {
        "c:",
        "c:\\",
        "c:\\windows",
        "c:\\program files",
        "c:\\program files (x86)",
        "c:\\users",
        "c:\\programdata",
    }
)
EDITOR_DIR_NAMES = (".windsurf", ".cursor", ".claude", ".vscode", ".zed", ".codex", ".kiro", ".github")
MIN_PATH_DEPTH = 3


class UnsafePathError(RuntimeError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__('Refusing to remove "{0}": {1}'.format(path, reason))
        self.path = path
        self.reason = reason


def _is_blocked(normalized: str) -> bool:
    lower = normalized.lower()
    if sys.platform == "win32":
        return lower in BLOCKED_PATHS_WINDOWS
    return lower in BLOCKED_PATHS_UNIX


def _within(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


def _has_component(path: Path, names) -> bool:
    return any(part in names for part in path.parts)


def check_removable(path: Path, *, home: Optional[Path] = None) -> Path:
    """Return the absolute path if `safe_rm` may delete it, else raise."""
    target = Path(os.path.abspath(str(path)))
    normalized = str(target)

    if _is_blocked(normalized):
        raise UnsafePathError(normalized, "path is a protected system directory")
    home_dir = Path(os.path.abspath(str(home if home is not None else Path.home())))
    if target == home_dir:
        raise UnsafePathError(normalized, "path is the home directory")
    if len(target.parts) < MIN_PATH_DEPTH:
        raise UnsafePathError(normalized, "path is too shallow (minimum 3 segments required)")

    allowed = (
        _within(target, Path(os.path.abspath(tempfile.gettempdir())))
        or _has_component(target, (".aix",))
        or _has_component(target, EDITOR_DIR_NAMES)
        or _has_component(target, ("test-fixtures",))
    )
    if not allowed:
        raise UnsafePathError(
            normalized,
            "path is not within temp directory, .aix directory, editor config directory, "
            "or test-fixtures directory",
        )
    return target


def safe_rm(path: Path, *, missing_ok: bool = True, home: Optional[Path] = None) -> None:
    target = check_removable(path, home=home)
    if not target.exists() and not target.is_symlink():
        if missing_ok:
            return
        raise FileNotFoundError(str(target))
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    else:
        target.unlink()
