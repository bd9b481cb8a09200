"""Adapter lookup, editor detection and install orchestration."""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Type

from aix.config import resolve_home
from aix.editors.adapters import (
    BaseEditorAdapter,
    ClaudeCodeAdapter,
    CodexAdapter,
    CopilotAdapter,
    CursorAdapter,
    KiroAdapter,
    VSCodeAdapter,
    WindsurfAdapter,
    ZedAdapter,
)
from aix.editors.types import ApplyOptions, ApplyResult, EditorConfig, GlobalChangesInfo
from aix.global_config.processor import GlobalChangeOptions, analyze_global_changes, apply_global_changes
from aix.kernel.debug_log import DebugLogWriter

DETECT_MAX_WORKERS = 3
INSTALL_MAX_WORKERS = 2

ADAPTERS: Dict[str, Type[BaseEditorAdapter]] = {
    "windsurf": WindsurfAdapter,
    "cursor": CursorAdapter,
    "claude-code": ClaudeCodeAdapter,
    "vscode": VSCodeAdapter,
    "zed": ZedAdapter,
    "codex": CodexAdapter,
    "kiro": KiroAdapter,
    "copilot": CopilotAdapter,
}


class UnknownEditorError(ValueError):
    def __init__(self, editor: str) -> None:
        super().__init__(
            "Unknown editor: {0} (available: {1})".format(editor, ", ".join(available_editors()))
        )
        self.editor = editor


def available_editors() -> List[str]:
    return list(ADAPTERS)


def get_adapter(editor: str, debug_log: Optional[DebugLogWriter] = None) -> BaseEditorAdapter:
    adapter_cls = ADAPTERS.get(str(editor or "").strip().lower())
    if adapter_cls is None:
        raise UnknownEditorError(editor)
    return adapter_cls(debug_log=debug_log)


def detect_editors(
    project_root: Path,
    project_only: bool = False,
    home: Optional[Path] = None,
) -> List[str]:
    """Editors configured in the project, or installed for the user when not `project_only`."""
    editors = available_editors()

    def check(editor: str) -> bool:
        adapter = get_adapter(editor)
        if project_only:
            return adapter.detect(project_root)
        return adapter.detect_global(home)

    with ThreadPoolExecutor(max_workers=DETECT_MAX_WORKERS) as pool:
        detected = list(pool.map(check, editors))
    return [editor for editor, found in zip(editors, detected) if found]


def _has_global_work(adapter: BaseEditorAdapter, editor_config: EditorConfig) -> bool:
    if not adapter.has_global_resources():
        return False
    mcp_global = adapter.mcp_strategy.is_global_only() and bool(editor_config.mcp)
    prompts_global = adapter.prompts_strategy.is_global_only() and bool(editor_config.prompts)
    return mcp_global or prompts_global


def install_to_editor(
    editor: str,
    doc: Mapping[str, Any],
    project_root: Path,
    options: Optional[ApplyOptions] = None,
    *,
    write_lock: Optional[threading.Lock] = None,
    backed_up: Optional[Set[str]] = None,
    debug_log: Optional[DebugLogWriter] = None,
) -> ApplyResult:
    options = options or ApplyOptions()
    log = debug_log or DebugLogWriter.disabled()
    adapter = get_adapter(editor, debug_log=log)
    unsupported = adapter.get_unsupported_features(doc)

    try:
        editor_config = adapter.generate_config(doc, project_root, options)
    except Exception as exc:
        result = ApplyResult(editor=adapter.name)
        result.add_error(str(exc))
        log.error(
            "install",
            "generate.failed",
            str(exc),
            editor=adapter.name,
            project=str(project_root),
            data={"error_type": type(exc).__name__},
        )
        return result

    # Editors share the project tree and the global files, so writes run one editor at a time.
    with write_lock if write_lock is not None else nullcontext():
        result = adapter.apply(editor_config, project_root, options)
        if not unsupported.is_empty():
            result.unsupported_features = unsupported
        if result.success and _has_global_work(adapter, editor_config):
            result.global_changes = _apply_global(adapter, editor_config, project_root, options, backed_up, log)
    return result


def _apply_global(
    adapter: BaseEditorAdapter,
    editor_config: EditorConfig,
    project_root: Path,
    options: ApplyOptions,
    backed_up: Optional[Set[str]],
    log: DebugLogWriter,
) -> Optional[GlobalChangesInfo]:
    home = Path(options.home) if options.home is not None else None
    global_options = GlobalChangeOptions(
        project_path=Path(os.path.abspath(str(project_root))),
        dry_run=options.dry_run,
        skip_global=options.skip_global,
        home=home,
        environ=options.environ,
        backed_up=backed_up if backed_up is not None else set(),
        debug_log=log,
    )
    changes = analyze_global_changes(
        adapter.name,
        editor_config,
        adapter.mcp_strategy,
        adapter.prompts_strategy,
        global_options.resolved_home(),
    )
    if not changes:
        return None
    return apply_global_changes(changes, global_options).to_info()


def install_to_editors(
    editors: Sequence[str],
    doc: Mapping[str, Any],
    project_root: Path,
    options: Optional[ApplyOptions] = None,
    debug_log: Optional[DebugLogWriter] = None,
) -> List[ApplyResult]:
    """Install to several editors; configs are generated two at a time, writes run one editor at a time.

    Results keep the input order.
    """
    for editor in editors:
        if str(editor or "").strip().lower() not in ADAPTERS:
            raise UnknownEditorError(editor)

    write_lock = threading.Lock()
    backed_up: Set[str] = set()

    def run(editor: str) -> ApplyResult:
        return install_to_editor(
            editor,
            doc,
            project_root,
            options,
            write_lock=write_lock,
            backed_up=backed_up,
            debug_log=debug_log,
        )

    with ThreadPoolExecutor(max_workers=INSTALL_MAX_WORKERS) as pool:
        return list(pool.map(run, list(editors)))


def install(
    doc: Mapping[str, Any],
    project_root: Path,
    options: Optional[ApplyOptions] = None,
    editors: Optional[Sequence[str]] = None,
    debug_log: Optional[DebugLogWriter] = None,
) -> List[ApplyResult]:
    options = options or ApplyOptions()
    home = options.home if options.home is not None else resolve_home(options.environ)
    targets = list(editors) if editors else detect_editors(project_root, home=home)
    if not targets:
        targets = available_editors()
    return install_to_editors(targets, doc, project_root, options, debug_log=debug_log)
