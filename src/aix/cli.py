"""Typer CLI entrypoints for aix."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from aix.config import ALL_SCOPES, Settings, SettingsError, build_debug_log, load_settings
from aix.document import DocumentError, discover_document
from aix.editors.install import available_editors, install
from aix.editors.types import ApplyOptions
from aix.global_config.tracking import GlobalTrackingService, TrackingStoreError
from aix.ui.render import (
    render_install_results,
    render_notice,
    render_tracking_text,
    result_to_dict,
    tracking_entry_to_dict,
)

app = typer.Typer(no_args_is_help=True, help="Sync one ai.json into every AI editor's native config.")
global_app = typer.Typer(help="Shared global resources tracked across projects.")
app.add_typer(global_app, name="global")


def _fail_usage(message: str) -> NoReturn:
    typer.echo(render_notice("error", message), err=True)
    raise typer.Exit(code=2)


def _normalize_format(output_format: str) -> str:
    normalized = output_format.strip().lower()
    if normalized not in {"json", "text"}:
        _fail_usage("Unsupported format: {0}".format(output_format))
    return normalized


def _load_settings(project_root: Path) -> Settings:
    try:
        return load_settings(project_root=project_root)
    except SettingsError as exc:
        _fail_usage(str(exc))


def _choices(values: List[str], allowed: List[str], label: str) -> List[str]:
    out: List[str] = []
    for value in values:
        normalized = str(value or "").strip().lower()
        if normalized not in allowed:
            _fail_usage("Unknown {0}: {1} (allowed: {2})".format(label, value, ", ".join(allowed)))
        if normalized not in out:
            out.append(normalized)
    return out


@app.command("install")
def install_cmd(
    editor: Optional[List[str]] = typer.Option(None, "--editor", "-e", help="Target editor (repeatable)"),
    scope: Optional[List[str]] = typer.Option(None, "--scope", "-s", help="Section to install (repeatable)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan changes without writing anything"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace JSON configs instead of merging"),
    clean: bool = typer.Option(False, "--clean", help="Empty the .aix folder before installing"),
    skip_global: bool = typer.Option(False, "--skip-global", help="Never touch machine-wide editor files"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to ai.json"),
    output_format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    normalized_format = _normalize_format(output_format)
    project_root = Path.cwd()
    settings = _load_settings(project_root)

    editors = _choices(list(editor or settings.editors), available_editors(), "editor")
    scopes = _choices(list(scope or settings.scopes), list(ALL_SCOPES), "scope")

    try:
        loaded = discover_document(project_root, explicit_path=config)
    except DocumentError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=1)
    if loaded is None:
        _fail_usage("No ai.json found in {0} or its parents".format(project_root))

    options = ApplyOptions(
        scopes=scopes,
        dry_run=dry_run,
        overwrite=overwrite or settings.overwrite,
        clean=clean,
        skip_global=skip_global or settings.skip_global,
        config_base_dir=loaded.base_dir,
        home=settings.home,
        environ=dict(os.environ),
    )
    debug_log = build_debug_log(settings)
    install_root = loaded.base_dir
    results = install(loaded.config, install_root, options, editors=editors or None, debug_log=debug_log)

    if normalized_format == "json":
        payload = {
            "document": str(loaded.path),
            "dry_run": dry_run,
            "results": [result_to_dict(result, install_root) for result in results],
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        render_install_results(results, sys.stdout, install_root)
        if dry_run:
            typer.echo(render_notice("info", "Dry run: no files were written."))

    if any(not result.success for result in results):
        raise typer.Exit(code=1)


def _tracking_service(settings: Settings) -> GlobalTrackingService:
    return GlobalTrackingService(settings.tracking_file)


@global_app.command("list")
def global_list_cmd(
    output_format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    normalized_format = _normalize_format(output_format)
    settings = _load_settings(Path.cwd())
    try:
        entries = _tracking_service(settings).list_entries()
    except TrackingStoreError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=1)

    if normalized_format == "json":
        typer.echo(json.dumps([tracking_entry_to_dict(entry) for entry in entries], ensure_ascii=False, indent=2))
        return
    typer.echo(render_tracking_text(entries))


@global_app.command("cleanup")
def global_cleanup_cmd(
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would be removed"),
    force: bool = typer.Option(False, "--force", help="Do not ask for confirmation"),
) -> None:
    settings = _load_settings(Path.cwd())
    service = _tracking_service(settings)
    try:
        pruned, removed = service.prune_missing_projects(dry_run=True)
        if not pruned and not removed:
            typer.echo(render_notice("info", "Nothing to clean up."))
            return

        for project in pruned:
            typer.echo("missing project: {0}".format(project))
        for key in removed:
            typer.echo("orphaned entry: {0}".format(key))
        if dry_run:
            typer.echo(render_notice("info", "Dry run: tracking file left unchanged."))
            return

        if not force:
            if not sys.stdin.isatty():
                _fail_usage("Refusing to modify tracking without --force in a non-interactive shell.")
            if not typer.confirm("Remove these tracking records?", default=False):
                typer.echo(render_notice("info", "Cancelled."))
                return

        pruned, removed = service.prune_missing_projects()
    except TrackingStoreError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=1)

    typer.echo(
        render_notice(
            "success",
            "Removed {0} missing project(s) and {1} orphaned entries.".format(len(pruned), len(removed)),
        )
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
