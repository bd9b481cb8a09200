from __future__ import annotations

from pathlib import Path

import pytest

from aix.fsutil import UnsafePathError, check_removable, safe_rm


def test_safe_rm_removes_trees_files_and_links(tmp_path: Path):
    tree = tmp_path / ".aix" / "skills" / "one"
    tree.mkdir(parents=True)
    (tree / "SKILL.md").write_text("x", encoding="utf-8")
    safe_rm(tree)
    assert not tree.exists()

    link = tmp_path / ".cursor" / "link"
    link.parent.mkdir()
    link.symlink_to(tmp_path / ".aix")
    safe_rm(link)
    assert not link.is_symlink()
    assert (tmp_path / ".aix").exists()

    safe_rm(tmp_path / ".aix" / "missing")
    with pytest.raises(FileNotFoundError):
        safe_rm(tmp_path / ".aix" / "missing", missing_ok=False)


@pytest.mark.parametrize("path", ["/", "/usr", "/etc"])
def test_protected_system_paths_are_refused(path):
    with pytest.raises(UnsafePathError) as excinfo:
        check_removable(Path(path))
    assert "protected system directory" in str(excinfo.value)


def test_home_and_shallow_paths_are_refused(tmp_path: Path):
    with pytest.raises(UnsafePathError) as excinfo:
        check_removable(tmp_path, home=tmp_path)
    assert "home directory" in str(excinfo.value)

    with pytest.raises(UnsafePathError) as excinfo:
        check_removable(Path("/opt2"), home=tmp_path)
    assert "too shallow" in str(excinfo.value)


def test_paths_outside_managed_locations_are_refused(tmp_path: Path):
    with pytest.raises(UnsafePathError) as excinfo:
        check_removable(Path("/srv/data/projects/app"), home=tmp_path)
    assert "not within temp directory" in str(excinfo.value)

    assert check_removable(Path("/srv/data/app/.aix/skills"), home=tmp_path) == Path("/srv/data/app/.aix/skills")


def test_kiro_and_github_trees_are_removable(tmp_path: Path):
    for path in ("/srv/data/app/.github/skills/lint", "/srv/data/app/.kiro/powers/lint"):
        assert check_removable(Path(path), home=tmp_path) == Path(path)
