"""Presentation helpers for aix CLI output."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, TextIO

from rich import box
from rich.console import Console
from rich.table import Table

from aix.editors.types import ApplyResult
from aix.global_config.tracking import GlobalTrackingEntry

_ACTION_STYLES = {
    "create": "green",
    "update": "yellow",
    "delete": "red",
    "unchanged": "dim",
}


def render_notice(level: str, message: str) -> str:
    prefix_map = {
        "info": "Info",
        "warn": "Warning",
        "error": "Error",
        "success": "Success",
    }
    return "{0}: {1}".format(prefix_map.get(level, "Info"), message)


def _is_tty(stream: TextIO, forced: Optional[bool]) -> bool:
    if forced is not None:
        return forced
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except (OSError, ValueError):
            return False
    return False


def _display_path(path: Path, project_root: Optional[Path]) -> str:
    if project_root is None:
        return str(path)
    try:
        return os.path.relpath(str(path), str(project_root))
    except ValueError:
        return str(path)


def result_to_dict(result: ApplyResult, project_root: Optional[Path] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "editor": result.editor,
        "success": result.success,
        "changes": [
            {
                "path": _display_path(change.path, project_root),
                "action": change.action,
                "category": change.category,
            }
            for change in result.changes
        ],
        "errors": list(result.errors),
    }
    if result.unsupported_features is not None:
        payload["unsupported_features"] = result.unsupported_features.to_dict()
    if result.global_changes is not None:
        payload["global_changes"] = {
            "applied": list(result.global_changes.applied),
            "skipped": list(result.global_changes.skipped),
            "warnings": list(result.global_changes.warnings),
        }
    return payload


def _warning_lines(result: ApplyResult) -> Iterable[str]:
    unsupported = result.unsupported_features
    if unsupported is not None:
        for section in (unsupported.mcp, unsupported.hooks, unsupported.prompts):
            if section:
                yield str(section.get("reason") or "")
    if result.global_changes is not None:
        for warning in result.global_changes.warnings:
            yield warning


def render_install_text(results: Sequence[ApplyResult], project_root: Optional[Path] = None) -> str:
    lines: List[str] = []
    for result in results:
        counts = result.counts()
        status = "ok" if result.success else "failed"
        lines.append(
            "[{0}] {1} create={2} update={3} delete={4} unchanged={5}".format(
                result.editor,
                status,
                counts["create"],
                counts["update"],
                counts["delete"],
                counts["unchanged"],
            )
        )
        for change in result.changes:
            if change.action == "unchanged":
                continue
            lines.append("  {0:<9} {1}".format(change.action, _display_path(change.path, project_root)))
        for applied in (result.global_changes.applied if result.global_changes else []):
            lines.append("  global    {0} {1} -> {2}".format(applied["type"], applied["name"], applied["global_path"]))
        for warning in _warning_lines(result):
            lines.append("  " + render_notice("warn", warning))
        for error in result.errors:
            lines.append("  " + render_notice("error", error))
    return "\n".join(lines)


def render_install_results(
    results: Sequence[ApplyResult],
    stream: TextIO,
    project_root: Optional[Path] = None,
    is_tty: Optional[bool] = None,
) -> None:
    if not _is_tty(stream, is_tty):
        stream.write(render_install_text(results, project_root) + "\n")
        stream.flush()
        return

    console = Console(file=stream, highlight=False, soft_wrap=True)
    for result in results:
        title = "{0} ({1})".format(result.editor, "ok" if result.success else "failed")
        table = Table(title=title, box=box.SIMPLE, show_header=True, header_style="bold")
        table.add_column("Action")
        table.add_column("Category")
        table.add_column("Path")
        for change in result.changes:
            style = _ACTION_STYLES.get(change.action, "")
            table.add_row(
                "[{0}]{1}[/{0}]".format(style, change.action) if style else change.action,
                change.category,
                _display_path(change.path, project_root),
            )
        console.print(table)
        for warning in _warning_lines(result):
            console.print("[yellow]{0}[/yellow]".format(render_notice("warn", warning)))
        for error in result.errors:
            console.print("[red]{0}[/red]".format(render_notice("error", error)))


def tracking_entry_to_dict(entry: GlobalTrackingEntry) -> Dict[str, Any]:
    payload = entry.to_dict()
    payload["key"] = entry.key
    return payload


def render_tracking_text(entries: Sequence[GlobalTrackingEntry]) -> str:
    if not entries:
        return render_notice("info", "No global entries are tracked.")
    lines = []
    for entry in entries:
        lines.append(
            "{0} projects={1} added_at={2}".format(entry.key, len(entry.projects), entry.added_at)
        )
        for project in entry.projects:
            lines.append("  {0}".format(project))
    return "\n".join(lines)
