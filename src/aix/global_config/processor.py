"""Analyze and apply changes to machine-wide editor files shared by many projects."""

from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set

import tomlkit
from tomlkit.exceptions import ParseError as TomlParseError

from aix.config import AIX_DIR_NAME, BACKUPS_DIR_NAME, TRACKING_FILE_NAME, is_ci, resolve_home
from aix.editors.adapters.base import derive_prompt_name, sanitize_file_name
from aix.editors.strategies.base import McpStrategy, PromptsStrategy
from aix.editors.types import EditorConfig, GlobalChangesInfo
from aix.global_config.comparison import mcp_configs_match, prompts_match
from aix.global_config.tracking import GlobalTrackingService, make_tracking_key
from aix.kernel.debug_log import DebugLogWriter
from aix.kernel.types import backup_timestamp

CHANGE_ADD = "add"
CHANGE_SKIP = "skip"

TYPE_MCP = "mcp"
TYPE_PROMPT = "prompt"

SKIP_IDENTICAL = "Already configured identically"
SKIP_MCP_CONFLICT = "Existing config differs from ai.json - not modifying"
SKIP_PROMPT_CONFLICT = "Existing prompt differs from ai.json - not modifying"
SKIP_CI = "Skipped in CI environment"
SKIP_DISABLED = "Global changes disabled"


def file_format(path: Path) -> str:
    return "toml" if str(path).endswith(".toml") else "json"


def servers_key(fmt: str) -> str:
    return "mcp_servers" if fmt == "toml" else "mcpServers"


@dataclass
class GlobalChangeRequest:
    editor: str
    type: str
    name: str
    action: str
    global_path: Path
    format: str = "json"
    skip_reason: Optional[str] = None
    mcp_config: Optional[Dict[str, Any]] = None
    existing_mcp_config: Optional[Dict[str, Any]] = None
    prompt_content: Optional[str] = None
    existing_prompt_content: Optional[str] = None
    configs_match: Optional[bool] = None

    def as_skipped(self, reason: str) -> "GlobalChangeRequest":
        return replace(self, action=CHANGE_SKIP, skip_reason=reason)


@dataclass
class GlobalChangeOptions:
    project_path: Path
    dry_run: bool = False
    skip_global: bool = False
    home: Optional[Path] = None
    environ: Optional[Mapping[str, str]] = None
    tracking_file: Optional[Path] = None
    # Paths already backed up during this run.
    backed_up: Set[str] = field(default_factory=set)
    debug_log: Optional[DebugLogWriter] = None

    def resolved_home(self) -> Path:
        return Path(self.home) if self.home is not None else resolve_home(self.environ)

    def resolved_tracking_file(self) -> Path:
        if self.tracking_file is not None:
            return Path(self.tracking_file)
        return self.resolved_home() / AIX_DIR_NAME / TRACKING_FILE_NAME


@dataclass
class GlobalChangeResult:
    applied: List[GlobalChangeRequest] = field(default_factory=list)
    skipped: List[GlobalChangeRequest] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_info(self) -> GlobalChangesInfo:
        return GlobalChangesInfo(
            applied=[
                {"type": change.type, "name": change.name, "global_path": str(change.global_path)}
                for change in self.applied
            ],
            skipped=[
                {"type": change.type, "name": change.name, "reason": change.skip_reason or "Unknown reason"}
                for change in self.skipped
            ],
            warnings=list(self.warnings),
        )


@dataclass
class GlobalChangeSummary:
    to_add: List[GlobalChangeRequest] = field(default_factory=list)
    to_skip: List[GlobalChangeRequest] = field(default_factory=list)
    already_configured: List[GlobalChangeRequest] = field(default_factory=list)


# -- analysis ----------------------------------------------------------------


def _read_global_mcp(path: Path, mcp_strategy: McpStrategy) -> Dict[str, Dict[str, Any]]:
    if not path.exists():
        return {}
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return {}
    servers, _warnings = mcp_strategy.parse_global_config(content)
    return servers


def analyze_global_changes(
    editor: str,
    editor_config: EditorConfig,
    mcp_strategy: McpStrategy,
    prompts_strategy: PromptsStrategy,
    home: Optional[Path] = None,
) -> List[GlobalChangeRequest]:
    """Classify every global-only item as add, skip/identical or skip/conflict."""
    base = Path(home) if home is not None else Path.home()
    changes: List[GlobalChangeRequest] = []

    relative_mcp = mcp_strategy.global_config_path()
    if mcp_strategy.is_global_only() and editor_config.mcp and relative_mcp:
        global_path = base / relative_mcp
        fmt = file_format(global_path)
        existing = _read_global_mcp(global_path, mcp_strategy)
        for name, config in editor_config.mcp.items():
            request = GlobalChangeRequest(
                editor=editor,
                type=TYPE_MCP,
                name=name,
                action=CHANGE_ADD,
                global_path=global_path,
                format=fmt,
                mcp_config=dict(config),
            )
            current = existing.get(name)
            if current is not None:
                match = mcp_configs_match(config, current)
                request.action = CHANGE_SKIP
                request.skip_reason = SKIP_IDENTICAL if match else SKIP_MCP_CONFLICT
                request.existing_mcp_config = current
                request.configs_match = match
            changes.append(request)

    relative_prompts = prompts_strategy.global_prompts_path()
    if prompts_strategy.is_global_only() and editor_config.prompts and relative_prompts:
        prompts_dir = base / relative_prompts
        ext = prompts_strategy.file_extension()
        for prompt in editor_config.prompts:
            name = sanitize_file_name(derive_prompt_name(prompt))
            changes.append(
                _analyze_prompt(editor, name, prompts_dir / (name + ext), prompts_strategy.format_prompt(prompt))
            )

    return changes


def _analyze_prompt(editor: str, name: str, path: Path, content: str) -> GlobalChangeRequest:
    request = GlobalChangeRequest(
        editor=editor,
        type=TYPE_PROMPT,
        name=name,
        action=CHANGE_ADD,
        global_path=path,
        format="markdown",
        prompt_content=content,
    )
    if not path.exists():
        return request
    try:
        existing = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        # Unreadable files are treated as absent.
        return request
    match = prompts_match(content, existing)
    request.action = CHANGE_SKIP
    request.skip_reason = SKIP_IDENTICAL if match else SKIP_PROMPT_CONFLICT
    request.existing_prompt_content = existing
    request.configs_match = match
    return request


def summarize_global_changes(changes: List[GlobalChangeRequest]) -> GlobalChangeSummary:
    summary = GlobalChangeSummary()
    for change in changes:
        if change.action == CHANGE_ADD:
            summary.to_add.append(change)
        elif change.configs_match:
            summary.already_configured.append(change)
        else:
            summary.to_skip.append(change)
    return summary


# -- application -------------------------------------------------------------


def backup_global_file(
    path: Path,
    *,
    home: Path,
    backed_up: Set[str],
    debug_log: Optional[DebugLogWriter] = None,
) -> Optional[Path]:
    """Copy `path` to `~/.aix/backups` once per run; a failed backup never blocks the write."""
    key = str(path)
    if key in backed_up or not path.exists():
        return None

    try:
        relative = str(path.relative_to(home))
    except ValueError:
        relative = str(path).lstrip("/\\")
    safe_name = relative.replace("/", "_").replace(os.sep, "_")
    backup_path = Path(home) / AIX_DIR_NAME / BACKUPS_DIR_NAME / "{0}.{1}.bak".format(safe_name, backup_timestamp())
    try:
        backup_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(str(path), str(backup_path))
    except OSError as exc:
        if debug_log is not None:
            debug_log.warn(
                "global",
                "backup.failed",
                "failed to back up global file",
                data={"path": key, "reason": str(exc)},
            )
        return None
    backed_up.add(key)
    return backup_path


def build_global_server_entry(config: Mapping[str, Any]) -> Dict[str, Any]:
    entry: Dict[str, Any] = {}
    if config.get("command"):
        entry["command"] = config["command"]
        entry["args"] = list(config.get("args") or [])
        if config.get("env"):
            entry["env"] = dict(config["env"])
    elif config.get("url"):
        entry["url"] = config["url"]
    if isinstance(config.get("disabledTools"), list):
        entry["disabledTools"] = list(config["disabledTools"])
    return entry


def _load_structured(path: Path, fmt: str) -> Any:
    """Parse the whole file; an unreadable or invalid file yields an empty document."""
    if not path.exists():
        return tomlkit.document() if fmt == "toml" else {}
    try:
        content = path.read_text(encoding="utf-8")
        if fmt == "toml":
            return tomlkit.parse(content)
        payload = json.loads(content)
    except (OSError, UnicodeDecodeError, ValueError, TomlParseError):
        return tomlkit.document() if fmt == "toml" else {}
    return payload if isinstance(payload, dict) else {}


def _dump_structured(document: Any, fmt: str) -> str:
    if fmt == "toml":
        return tomlkit.dumps(document)
    return json.dumps(document, ensure_ascii=False, indent=2) + "\n"


def _servers_table(document: Any, fmt: str) -> Any:
    key = servers_key(fmt)
    servers = document.get(key)
    if not isinstance(servers, dict):
        servers = tomlkit.table(is_super_table=True) if fmt == "toml" else {}
        document[key] = servers
    return servers


def _apply_mcp_change(change: GlobalChangeRequest, options: GlobalChangeOptions) -> None:
    path = Path(change.global_path)
    fmt = change.format or file_format(path)
    backup_global_file(path, home=options.resolved_home(), backed_up=options.backed_up, debug_log=options.debug_log)

    document = _load_structured(path, fmt)
    servers = _servers_table(document, fmt)
    servers[change.name] = build_global_server_entry(change.mcp_config or {})

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_dump_structured(document, fmt), encoding="utf-8")


def _apply_prompt_change(change: GlobalChangeRequest, options: GlobalChangeOptions) -> None:
    path = Path(change.global_path)
    backup_global_file(path, home=options.resolved_home(), backed_up=options.backed_up, debug_log=options.debug_log)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(change.prompt_content or "", encoding="utf-8")


def apply_global_changes(
    changes: List[GlobalChangeRequest],
    options: GlobalChangeOptions,
) -> GlobalChangeResult:
    """Write `add` requests to the shared files and record each project dependency.

    Runs strictly in order. Callers running several editors concurrently must
    hold one lock around the whole call.
    """
    result = GlobalChangeResult()
    log = options.debug_log or DebugLogWriter.disabled()

    if is_ci(options.environ):
        for change in changes:
            if change.action == CHANGE_ADD:
                result.skipped.append(change.as_skipped(SKIP_CI))
                result.warnings.append(
                    '[{0}] Skipped global {1} "{2}" - CI environment detected'.format(
                        change.editor, change.type, change.name
                    )
                )
            else:
                result.skipped.append(change)
        log.info("global", "global.ci_skip", "global changes skipped in CI", data={"count": len(changes)})
        return result

    tracking = GlobalTrackingService(options.resolved_tracking_file())
    for change in changes:
        if change.action == CHANGE_SKIP:
            result.skipped.append(change)
            if not change.configs_match:
                result.warnings.append(
                    '[{0}] {1} "{2}": {3}'.format(change.editor, change.type, change.name, change.skip_reason)
                )
            continue

        if options.skip_global:
            result.skipped.append(change.as_skipped(SKIP_DISABLED))
            continue

        if not options.dry_run:
            try:
                if change.type == TYPE_MCP and change.mcp_config is not None:
                    _apply_mcp_change(change, options)
                elif change.type == TYPE_PROMPT and change.prompt_content is not None:
                    _apply_prompt_change(change, options)
                tracking.add_project_dependency(
                    make_tracking_key(change.editor, change.type, change.name),
                    editor=change.editor,
                    entry_type=change.type,
                    name=change.name,
                    project_path=str(options.project_path),
                )
            except Exception as exc:
                result.warnings.append(
                    '[{0}] Failed to apply {1} "{2}": {3}'.format(change.editor, change.type, change.name, exc)
                )
                result.skipped.append(change.as_skipped("Failed: {0}".format(exc)))
                log.warn(
                    "global",
                    "global.apply_failed",
                    str(exc),
                    editor=change.editor,
                    project=str(options.project_path),
                    data={"type": change.type, "name": change.name, "path": str(change.global_path)},
                )
                continue

        result.applied.append(change)
        log.info(
            "global",
            "global.applied",
            "added global {0}".format(change.type),
            editor=change.editor,
            project=str(options.project_path),
            data={"name": change.name, "path": str(change.global_path), "dry_run": options.dry_run},
        )

    return result


def remove_from_global_mcp_config(
    global_path: Path,
    server_name: str,
    *,
    home: Optional[Path] = None,
    backed_up: Optional[Set[str]] = None,
    debug_log: Optional[DebugLogWriter] = None,
) -> bool:
    """Delete one server from a shared MCP file; False when absent or unreadable."""
    path = Path(global_path)
    if not path.exists():
        return False
    fmt = file_format(path)
    try:
        content = path.read_text(encoding="utf-8")
        document = tomlkit.parse(content) if fmt == "toml" else json.loads(content)
    except (OSError, UnicodeDecodeError, ValueError, TomlParseError):
        return False
    if not isinstance(document, dict):
        return False
    servers = document.get(servers_key(fmt))
    if not isinstance(servers, dict) or server_name not in servers:
        return False

    base = Path(home) if home is not None else Path.home()
    backup_global_file(path, home=base, backed_up=backed_up if backed_up is not None else set(), debug_log=debug_log)
    del servers[server_name]
    try:
        path.write_text(_dump_structured(document, fmt), encoding="utf-8")
    except OSError:
        return False
    return True
