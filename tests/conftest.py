from __future__ import annotations

from pathlib import Path

import pytest

from aix.config import CI_ENV_VARS, HOME_ENV_VAR


@pytest.fixture(autouse=True)
def _no_ci_env(monkeypatch: pytest.MonkeyPatch):
    for name in CI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv(HOME_ENV_VAR, str(home_dir))
    return home_dir


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


def write_skill(root: Path, name: str, description: str = "Does things", body: str = "Use it well.") -> Path:
    skill_dir = root / name
    skill_dir.mkdir(parents=True, exist_ok=True)
    (skill_dir / "SKILL.md").write_text(
        "---\nname: {0}\ndescription: {1}\n---\n{2}\n".format(name, description, body),
        encoding="utf-8",
    )
    return skill_dir
