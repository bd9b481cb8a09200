"""Editor adapter base: config generation, change planning and transactional apply."""

from __future__ import annotations

import json
import os
import re
import shutil
import sys
from abc import ABC
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from aix.config import AIX_DIR_NAME
from aix.editors.strategies.base import HooksStrategy, McpStrategy, PromptsStrategy, RulesStrategy, SkillsStrategy
from aix.editors.types import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UNCHANGED,
    ACTION_UPDATE,
    CATEGORY_HOOK,
    CATEGORY_MCP,
    CATEGORY_RULE,
    CATEGORY_WORKFLOW,
    ApplyOptions,
    ApplyResult,
    EditorConfig,
    EditorPrompt,
    EditorRule,
    FileChange,
    UnsupportedFeatures,
)
from aix.fsutil import safe_rm
from aix.kernel.debug_log import DebugLogWriter
from aix.loaders.prompts import load_editor_prompts
from aix.loaders.rules import load_editor_rules
from aix.loaders.skills import resolve_all_skills
from aix.merge import MCP_CONFIG_MERGE_RESOLVER, DeletedItem, classify_item, deep_merge_json

AIX_TMP_DIR_NAME = ".tmp"

_RULE_SUFFIX_RE = re.compile(r"\.(md|mdc|txt)$", re.IGNORECASE)
_PROMPT_SUFFIX_RE = re.compile(r"\.(md|prompt\.md|txt)$", re.IGNORECASE)


def filter_mcp_config(mcp: Optional[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Drop `false` entries from the document's `mcp` section."""
    if not mcp:
        return {}
    return {
        name: dict(value)
        for name, value in mcp.items()
        if not isinstance(classify_item(value), DeletedItem)
    }


def sanitize_file_name(name: str) -> str:
    value = re.sub(r"[^a-z0-9-]", "-", str(name or "").lower())
    value = re.sub(r"-+", "-", value)
    return value.strip("-")


def _file_name_from_source(source_path: str) -> Optional[str]:
    # git sources look like "url#ref:path/to/file.md"
    if "#" in source_path:
        after_hash = source_path.split("#", 1)[1]
        if ":" in after_hash:
            file_path = after_hash.split(":", 1)[1]
            if file_path:
                return file_path.split("/")[-1]
    return os.path.basename(source_path) or None


def derive_rule_name(rule: EditorRule) -> str:
    if rule.name:
        return rule.name
    if rule.source_path:
        file_name = _file_name_from_source(rule.source_path)
        if file_name:
            return _RULE_SUFFIX_RE.sub("", file_name)
    return "rule"


def derive_prompt_name(prompt: EditorPrompt) -> str:
    if prompt.name:
        return prompt.name
    if prompt.source_path:
        file_name = _file_name_from_source(prompt.source_path)
        if file_name:
            return _PROMPT_SUFFIX_RE.sub("", file_name)
    return "prompt"


def determine_action(existing: Optional[str], new_content: str) -> str:
    if existing is None:
        return ACTION_CREATE
    if existing == new_content:
        return ACTION_UNCHANGED
    return ACTION_UPDATE


def read_existing(path: Path) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _platform_key() -> str:
    if sys.platform.startswith("win"):
        return "win32"
    if sys.platform == "darwin":
        return "darwin"
    return "linux"


class BaseEditorAdapter(ABC):
    """One target editor: a name, a config dir and five capability strategies.

    Adapters hold no per-call state, so one instance can serve several
    projects. Skill directory changes travel on `EditorConfig.skill_changes`
    from `generate_config` to `plan_changes`.
    """

    name: str = ""
    config_dir: str = ""
    global_data_dirs: Dict[str, List[str]] = {}

    def __init__(
        self,
        *,
        rules: RulesStrategy,
        mcp: McpStrategy,
        skills: SkillsStrategy,
        prompts: PromptsStrategy,
        hooks: HooksStrategy,
        debug_log: Optional[DebugLogWriter] = None,
    ) -> None:
        self._rules = rules
        self._mcp = mcp
        self._skills = skills
        self._prompts = prompts
        self._hooks = hooks
        self._debug_log = debug_log or DebugLogWriter.disabled()

    @property
    def rules_strategy(self) -> RulesStrategy:
        return self._rules

    @property
    def mcp_strategy(self) -> McpStrategy:
        return self._mcp

    @property
    def skills_strategy(self) -> SkillsStrategy:
        return self._skills

    @property
    def prompts_strategy(self) -> PromptsStrategy:
        return self._prompts

    @property
    def hooks_strategy(self) -> HooksStrategy:
        return self._hooks

    def detect(self, project_root: Path) -> bool:
        return (Path(project_root) / self.config_dir).exists()

    def global_data_paths(self, home: Optional[Path] = None) -> List[Path]:
        base = Path(home) if home is not None else Path.home()
        return [base / item for item in self.global_data_dirs.get(_platform_key(), [])]

    def detect_global(self, home: Optional[Path] = None) -> bool:
        return any(path.exists() for path in self.global_data_paths(home))

    def has_global_resources(self) -> bool:
        return self._mcp.is_global_only() or self._prompts.is_global_only()

    # -- generation --------------------------------------------------------

    def generate_config(
        self,
        doc: Mapping[str, Any],
        project_root: Path,
        options: Optional[ApplyOptions] = None,
    ) -> EditorConfig:
        options = options or ApplyOptions()
        root = Path(project_root)
        base_dir = Path(options.config_base_dir) if options.config_base_dir is not None else root

        skill_changes: List[FileChange] = []
        skill_rules: List[EditorRule] = []
        if "skills" in options.scopes and doc.get("skills"):
            resolved = resolve_all_skills(doc.get("skills"), base_dir, options.loader)
            skill_changes = self._skills.install_skills(resolved, root)
            skill_rules = self._skills.generate_skill_rules(resolved)

        rules = load_editor_rules(doc.get("rules"), base_dir, options.loader) + skill_rules
        prompts = load_editor_prompts(doc.get("prompts"), base_dir, options.loader)
        hooks = doc.get("hooks") if self._hooks.is_supported() else None

        return EditorConfig(
            rules=rules,
            prompts=prompts,
            mcp=filter_mcp_config(doc.get("mcp")),
            hooks=dict(hooks) if hooks else None,
            skill_changes=skill_changes,
        )

    # -- planning ----------------------------------------------------------

    def config_root(self, project_root: Path) -> Path:
        return Path(project_root) / self.config_dir

    @staticmethod
    def _join(base: Path, relative: str) -> Path:
        return Path(os.path.normpath(str(Path(base) / relative)))

    def plan_changes(
        self,
        editor_config: EditorConfig,
        project_root: Path,
        scopes: Sequence[str],
        options: Optional[ApplyOptions] = None,
    ) -> List[FileChange]:
        options = options or ApplyOptions()
        changes: List[FileChange] = []

        if "skills" in scopes:
            changes.extend(editor_config.skill_changes)
        if "rules" in scopes:
            changes.extend(self._plan_rules(editor_config.rules, project_root))
        if "mcp" in scopes:
            changes.extend(self._plan_mcp(editor_config.mcp, project_root, options))
        if "editors" in scopes:
            changes.extend(self._plan_prompts(editor_config.prompts, project_root))
            changes.extend(self._plan_hooks(editor_config.hooks, project_root, options))

        self._debug_log.info(
            "adapter",
            "plan.completed",
            "planned {0} change(s)".format(len(changes)),
            editor=self.name,
            project=str(project_root),
            data={"scopes": list(scopes), "actions": [change.action for change in changes]},
        )
        return changes

    def _plan_rules(self, rules: List[EditorRule], project_root: Path) -> List[FileChange]:
        rules_dir = self._join(self.config_root(project_root), self._rules.rules_dir())
        ext = self._rules.file_extension()
        changes: List[FileChange] = []
        for rule in rules:
            path = rules_dir / (sanitize_file_name(derive_rule_name(rule)) + ext)
            content = self._rules.format_rule(rule)
            changes.append(
                FileChange(
                    path=path,
                    action=determine_action(read_existing(path), content),
                    category=CATEGORY_RULE,
                    content=content,
                )
            )
        return changes

    def _plan_combined_rules(self, path: Path, content: str) -> List[FileChange]:
        return [
            FileChange(
                path=path,
                action=determine_action(read_existing(path), content),
                category=CATEGORY_RULE,
                content=content,
            )
        ]

    def _plan_mcp(
        self,
        mcp: Dict[str, Dict[str, Any]],
        project_root: Path,
        options: ApplyOptions,
    ) -> List[FileChange]:
        if not mcp or not self._mcp.is_supported() or self._mcp.is_global_only():
            return []
        if self._mcp.is_project_root_config():
            path = self._join(Path(project_root), self._mcp.config_path())
        else:
            path = self._join(self.config_root(project_root), self._mcp.config_path())
        content = self._mcp.format_config(mcp)
        if path.suffix == ".json":
            change = self.plan_json_file_change(path, content, options)
        else:
            change = FileChange(path=path, action=determine_action(read_existing(path), content), category="", content=content)
        change.category = CATEGORY_MCP
        return [change]

    def _plan_prompts(self, prompts: List[EditorPrompt], project_root: Path) -> List[FileChange]:
        if not prompts or not self._prompts.is_supported() or self._prompts.is_global_only():
            return []
        prompts_dir = self._join(self.config_root(project_root), self._prompts.prompts_dir())
        ext = self._prompts.file_extension()
        changes: List[FileChange] = []
        for prompt in prompts:
            path = prompts_dir / (sanitize_file_name(derive_prompt_name(prompt)) + ext)
            content = self._prompts.format_prompt(prompt)
            changes.append(
                FileChange(
                    path=path,
                    action=determine_action(read_existing(path), content),
                    category=CATEGORY_WORKFLOW,
                    content=content,
                )
            )
        return changes

    def _plan_hooks(
        self,
        hooks: Optional[Dict[str, Any]],
        project_root: Path,
        options: ApplyOptions,
    ) -> List[FileChange]:
        if not hooks or not self._hooks.is_supported():
            return []
        formatted = self._hooks.format_config(hooks)
        if not (json.loads(formatted).get("hooks") or {}):
            return []
        path = self._join(self.config_root(project_root), self._hooks.config_path())
        change = self.plan_json_file_change(path, formatted, options)
        change.category = CATEGORY_HOOK
        return [change]

    def plan_json_file_change(self, path: Path, new_content: str, options: ApplyOptions) -> FileChange:
        """Merge `new_content` into the JSON file on disk unless overwriting."""
        existing = read_existing(path)
        if options.overwrite or existing is None:
            return FileChange(path=path, action=determine_action(existing, new_content), category="", content=new_content)

        try:
            existing_json = json.loads(existing)
            new_json = json.loads(new_content)
            if not isinstance(existing_json, dict) or not isinstance(new_json, dict):
                raise ValueError("JSON root is not an object")
        except ValueError:
            return FileChange(path=path, action=determine_action(existing, new_content), category="", content=new_content)

        merged = deep_merge_json(existing_json, new_json, MCP_CONFIG_MERGE_RESOLVER)
        content = json.dumps(merged, ensure_ascii=False, indent=2) + "\n"
        return FileChange(path=path, action=determine_action(existing, content), category="", content=content)

    # -- apply -------------------------------------------------------------

    def apply(
        self,
        editor_config: EditorConfig,
        project_root: Path,
        options: Optional[ApplyOptions] = None,
    ) -> ApplyResult:
        options = options or ApplyOptions()
        result = ApplyResult(editor=self.name)
        try:
            if options.clean and not options.dry_run:
                self.clean_aix_folder(project_root)

            result.changes = self.plan_changes(editor_config, project_root, options.scopes, options)
            if options.dry_run:
                return result

            self.materialize_skill_changes(result.changes)
            self.apply_changes(result.changes)
        except Exception as exc:
            result.add_error(str(exc))
            self._debug_log.error(
                "adapter",
                "apply.failed",
                str(exc),
                editor=self.name,
                project=str(project_root),
                data={"error_type": type(exc).__name__},
            )
            return result

        self._debug_log.info(
            "adapter",
            "apply.completed",
            "applied changes",
            editor=self.name,
            project=str(project_root),
            data=result.counts(),
        )
        return result

    def clean_aix_folder(self, project_root: Path) -> None:
        """Remove everything under `.aix` except the `.tmp` scratch tree."""
        aix_dir = Path(project_root) / AIX_DIR_NAME
        if not aix_dir.is_dir():
            return
        for child in sorted(aix_dir.iterdir(), key=lambda item: item.name):
            if child.name == AIX_TMP_DIR_NAME:
                continue
            safe_rm(child)

    def materialize_skill_changes(self, changes: Sequence[FileChange]) -> None:
        """Copy skill trees and create editor links; a refused symlink degrades to a copy."""
        for change in changes:
            if not change.is_directory or change.action == ACTION_UNCHANGED:
                continue
            target = Path(change.path)
            if change.source_dir is not None:
                source = Path(change.source_dir).resolve()
                if target.exists() and target.resolve() == source:
                    continue
                self._replace_path(target)
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copytree(str(source), str(target))
            elif change.link_target:
                if target.is_symlink() and os.readlink(str(target)) == change.link_target:
                    continue
                self._replace_path(target)
                target.parent.mkdir(parents=True, exist_ok=True)
                try:
                    os.symlink(change.link_target, str(target), target_is_directory=True)
                except OSError as exc:
                    linked = (target.parent / change.link_target).resolve()
                    shutil.copytree(str(linked), str(target))
                    self._debug_log.warn(
                        "adapter",
                        "skill.symlink_fallback",
                        "symlink refused, copied skill instead",
                        editor=self.name,
                        data={"path": str(target), "reason": str(exc)},
                    )

    @staticmethod
    def _replace_path(target: Path) -> None:
        if target.is_symlink() or target.exists():
            safe_rm(target)

    def apply_changes(self, changes: Sequence[FileChange]) -> None:
        """Write changes one by one; on failure restore every pre-image and re-raise."""
        applied: List[Tuple[Path, Optional[bytes]]] = []
        try:
            for change in changes:
                if change.action == ACTION_UNCHANGED or change.is_directory:
                    continue
                path = Path(change.path)
                original = path.read_bytes() if path.exists() else None
                applied.append((path, original))

                if change.action == ACTION_DELETE:
                    if path.exists():
                        path.unlink()
                    continue
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(change.content or "", encoding="utf-8")
                if change.mode is not None:
                    os.chmod(str(path), change.mode)
        except Exception as exc:
            self._debug_log.warn(
                "adapter",
                "apply.rollback",
                "rolling back {0} change(s)".format(len(applied)),
                editor=self.name,
                data={"reason": str(exc)},
            )
            self._rollback(applied)
            raise

    @staticmethod
    def _rollback(applied: List[Tuple[Path, Optional[bytes]]]) -> None:
        for path, original in applied:
            try:
                if original is None:
                    if path.exists():
                        path.unlink()
                else:
                    path.write_bytes(original)
            except OSError:
                continue

    # -- feature support -----------------------------------------------------

    def get_unsupported_features(self, doc: Mapping[str, Any]) -> UnsupportedFeatures:
        unsupported = UnsupportedFeatures()

        servers = list(filter_mcp_config(doc.get("mcp")))
        if servers and not self._mcp.is_supported():
            unsupported.mcp = {
                "reason": "{0} does not support MCP servers".format(self.name),
                "servers": servers,
            }

        hooks = doc.get("hooks") or {}
        if hooks:
            if not self._hooks.is_supported():
                unsupported.hooks = {
                    "reason": "{0} does not support hooks".format(self.name),
                    "all_unsupported": True,
                }
            else:
                events = self._hooks.unsupported_events(hooks)
                if events:
                    unsupported.hooks = {
                        "reason": "{0} does not support some hook events".format(self.name),
                        "unsupported_events": events,
                    }

        prompts = list(doc.get("prompts") or {})
        if prompts and not self._prompts.is_supported():
            unsupported.prompts = {
                "reason": "{0} does not support prompts/commands".format(self.name),
                "prompts": prompts,
            }

        return unsupported
