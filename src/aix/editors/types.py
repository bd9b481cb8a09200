"""Intermediate representation and result types shared by editor adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from aix.config import DEFAULT_SCOPES

ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"
ACTION_UNCHANGED = "unchanged"

CATEGORY_RULE = "rule"
CATEGORY_MCP = "mcp"
CATEGORY_SKILL = "skill"
CATEGORY_WORKFLOW = "workflow"
CATEGORY_HOOK = "hook"

ACTIVATION_MODES = ("always", "auto", "glob", "manual")

HooksConfig = Dict[str, List[Dict[str, Any]]]


@dataclass(frozen=True)
class RuleActivation:
    type: str = "always"
    description: Optional[str] = None
    globs: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class EditorRule:
    name: str
    content: str
    activation: RuleActivation = field(default_factory=RuleActivation)
    source_path: Optional[str] = None


@dataclass(frozen=True)
class EditorPrompt:
    name: str
    content: str
    description: Optional[str] = None
    argument_hint: Optional[str] = None
    source_path: Optional[str] = None


@dataclass
class FileChange:
    """One planned filesystem mutation.

    `action` is always computed by the planner from on-disk state. Directory
    changes carry either `source_dir` (copy a skill tree) or `link_target`
    (relative symlink); they are materialized before the file transaction.
    """

    path: Path
    action: str
    category: str
    content: Optional[str] = None
    is_directory: bool = False
    mode: Optional[int] = None
    source_dir: Optional[Path] = None
    link_target: Optional[str] = None


@dataclass
class EditorConfig:
    rules: List[EditorRule] = field(default_factory=list)
    prompts: List[EditorPrompt] = field(default_factory=list)
    mcp: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    hooks: Optional[HooksConfig] = None
    skill_changes: List[FileChange] = field(default_factory=list)


@dataclass
class ApplyOptions:
    scopes: List[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    dry_run: bool = False
    overwrite: bool = False
    clean: bool = False
    skip_global: bool = False
    config_base_dir: Optional[Path] = None
    loader: Any = None
    home: Optional[Path] = None
    environ: Optional[Dict[str, str]] = None


@dataclass
class UnsupportedFeatures:
    mcp: Optional[Dict[str, Any]] = None
    hooks: Optional[Dict[str, Any]] = None
    prompts: Optional[Dict[str, Any]] = None

    def is_empty(self) -> bool:
        return self.mcp is None and self.hooks is None and self.prompts is None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key in ("mcp", "hooks", "prompts"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


@dataclass
class GlobalChangesInfo:
    applied: List[Dict[str, str]] = field(default_factory=list)
    skipped: List[Dict[str, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ApplyResult:
    editor: str
    success: bool = True
    changes: List[FileChange] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    unsupported_features: Optional[UnsupportedFeatures] = None
    global_changes: Optional[GlobalChangesInfo] = None

    def add_error(self, message: str) -> None:
        self.success = False
        self.errors.append(str(message))

    def counts(self) -> Dict[str, int]:
        out = {ACTION_CREATE: 0, ACTION_UPDATE: 0, ACTION_DELETE: 0, ACTION_UNCHANGED: 0}
        for change in self.changes:
            out[change.action] = out.get(change.action, 0) + 1
        return out
