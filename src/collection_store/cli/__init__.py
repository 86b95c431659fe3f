"""CLI for the collection store: backend status and backup/restore.

Usage:
    collection-store status
    collection-store export
    collection-store export --output backups/shop.json
    collection-store import backups/backup-2026-01-15.json
    collection-store import backups/backup-2026-01-15.json --yes
    collection-store validate backups/backup-2026-01-15.json

Commands:
    status    - Probe the remote service and show which backend is active
    export    - Write every collection to a dated JSON backup file
    import    - Replace live collections with the contents of a backup
    validate  - Check a backup file without touching any data
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from collection_store.backup.backup_restore import (
    export_collections,
    read_backup,
    restore_collections,
    save_artifact,
    validate_backup,
)
from collection_store.backup.models import BackupArtifact, RestoreReport
from collection_store.errors import BackupValidationError, LocalStorageError
from collection_store.factory import connect_store

console = Console()


def _config_path(args: argparse.Namespace) -> Path | None:
    return Path(args.config) if getattr(args, "config", None) else None


def _print_restore_report(report: RestoreReport) -> None:
    table = Table(title="Restore", show_header=True, header_style="bold")
    table.add_column("Collection", style="dim")
    table.add_column("Status")
    table.add_column("Backend")
    table.add_column("Written", justify="right")

    styles = {
        "restored": "green",
        "skipped": "yellow",
        "failed": "bold red",
        "not_attempted": "dim",
    }
    for r in report.results:
        style = styles[r.status]
        table.add_row(
            r.collection,
            f"[{style}]{r.status}[/{style}]",
            r.backend or "-",
            str(r.written),
        )
    console.print(table)

    for warning in report.warnings:
        console.print(f"  [yellow]warning:[/yellow] {warning}")


def _print_counts(artifact: BackupArtifact) -> None:
    table = Table(title="Export", show_header=True, header_style="bold")
    table.add_column("Collection", style="dim")
    table.add_column("Documents", justify="right")
    for name, count in artifact.counts.items():
        table.add_row(name, str(count))
    console.print(table)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_status(args: argparse.Namespace) -> int:
    """Async implementation for status command.

    Returns:
        0 when the remote is available, 1 when running on the local cache.
    """
    try:
        store = await connect_store(config_path=_config_path(args))
    except (FileNotFoundError, ValueError, LocalStorageError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        status = store.status
        remote_url = store.remote.base_url if store.remote else "(not configured)"
        console.print(f"Remote:      [cyan]{remote_url}[/cyan]")
        console.print(f"Local cache: [cyan]{store.local.path}[/cyan]")
        console.print()
        if status.available:
            console.print("[bold green]v[/bold green] Remote backend connected")
            return 0
        console.print("[bold yellow]![/bold yellow] Remote unavailable, using local cache")
        if status.reason:
            console.print(f"  [dim]{status.reason}[/dim]")
        return 1
    finally:
        await store.close()


async def _async_export(args: argparse.Namespace) -> int:
    """Async implementation for export command."""
    try:
        store = await connect_store(config_path=_config_path(args))
    except (FileNotFoundError, ValueError, LocalStorageError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        backend = "remote" if store.status.available else "local cache"
        console.print(f"Exporting from [cyan]{backend}[/cyan]...", style="dim")
        artifact = await export_collections(store)
        path = save_artifact(artifact, output_path=args.output)
    except (LocalStorageError, OSError) as e:
        console.print(f"[red]Backup failed: {e}[/red]")
        return 1
    finally:
        await store.close()

    _print_counts(artifact)
    console.print(f"[bold green]v[/bold green] Backup written: [cyan]{path}[/cyan]")
    return 0


async def _async_import(args: argparse.Namespace) -> int:
    """Async implementation for import command.

    Returns:
        0 when every collection was restored, 1 otherwise.
    """
    try:
        raw = read_backup(args.backup_path)
    except (FileNotFoundError, BackupValidationError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    validation = validate_backup(raw)
    if validation["errors"]:
        console.print(f"[red]Invalid backup - {len(validation['errors'])} errors:[/red]")
        for error in validation["errors"]:
            console.print(f"   - {error}")
        return 1

    if not args.yes:
        console.print(f"[yellow]This will REPLACE live data with:[/yellow] {args.backup_path}")
        response = input("Continue? [y/N] ")
        if response.lower() not in ["y", "yes"]:
            console.print("Cancelled.")
            return 0

    try:
        store = await connect_store(config_path=_config_path(args))
    except (FileNotFoundError, ValueError, LocalStorageError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        report = await restore_collections(store, raw)
    finally:
        await store.close()

    _print_restore_report(report)
    if not report.complete:
        console.print()
        console.print("[bold red]x[/bold red] Restore incomplete")
        console.print(report.format_report())
        return 1

    console.print("[bold green]v[/bold green] Restore complete")
    return 0


# ============================================================================
# Command handlers
# ============================================================================


def cmd_status(args: argparse.Namespace) -> int:
    """Show backend status.  Wraps the async implementation."""
    return asyncio.run(_async_status(args))


def cmd_export(args: argparse.Namespace) -> int:
    """Export a backup.  Wraps the async implementation."""
    return asyncio.run(_async_export(args))


def cmd_import(args: argparse.Namespace) -> int:
    """Restore a backup.  Wraps the async implementation."""
    return asyncio.run(_async_import(args))


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a backup file (local file read only, no store access)."""
    console.print(f"Validating: {args.backup_path}")
    try:
        raw = read_backup(args.backup_path)
    except (FileNotFoundError, BackupValidationError) as e:
        console.print(f"\n[bold red]x[/bold red] {e}")
        return 1

    result = validate_backup(raw)

    if result["errors"]:
        console.print(f"\n[red]INVALID - Found {len(result['errors'])} errors:[/red]")
        for error in result["errors"]:
            console.print(f"   - {error}")

    if result["warnings"]:
        console.print(f"\n[yellow]Found {len(result['warnings'])} warnings:[/yellow]")
        for warning in result["warnings"]:
            console.print(f"   - {warning}")

    if result["valid"]:
        console.print("\n[bold green]v[/bold green] Backup is valid")
        return 0
    console.print("\n[bold red]x[/bold red] Backup is invalid")
    return 1


# ============================================================================
# Main entry point
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="collection-store",
        description="Collection store status and backup/restore",
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to store.toml (default: ./store.toml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_status = subparsers.add_parser("status", help="Show which backend is active")
    p_status.set_defaults(func=cmd_status)

    p_export = subparsers.add_parser("export", help="Write a backup of every collection")
    p_export.add_argument(
        "--output",
        "-o",
        help="Output file path (default: backups/backup-YYYY-MM-DD.json)",
    )
    p_export.set_defaults(func=cmd_export)

    p_import = subparsers.add_parser("import", help="Restore collections from a backup")
    p_import.add_argument("backup_path", help="Path to backup JSON file")
    p_import.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    p_import.set_defaults(func=cmd_import)

    p_validate = subparsers.add_parser("validate", help="Validate a backup file")
    p_validate.add_argument("backup_path", help="Path to backup JSON file")
    p_validate.set_defaults(func=cmd_validate)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
