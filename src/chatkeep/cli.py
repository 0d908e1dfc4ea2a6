"""CLI interface for chatkeep."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import DATA_DIR, DURABLE_PATH
from .service import StorageService
from .session import ChatSession
from .validation import valid_id


def _open_service() -> StorageService:
    return StorageService.open(DURABLE_PATH)


@click.group()
@click.version_option(version=__version__, prog_name="chatkeep")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
def cli(verbose: bool):
    """chatkeep — Keep your assistant conversations safe on disk.

    Browse, export and repair the archive of saved chats, or serve it
    to MCP clients.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command()
@click.option("--limit", default=20, show_default=True, help="Maximum conversations to list")
@click.option("--keyword", default=None, help="Only titles or messages containing this text")
def history(limit: int, keyword: str | None):
    """List archived conversations, newest first."""
    service = _open_service()
    conversations = service.archive.get_archive()
    service.close()

    if keyword:
        needle = keyword.lower()
        conversations = [
            c for c in conversations
            if needle in c.title.lower() or any(needle in m.text.lower() for m in c.messages)
        ]

    if not conversations:
        click.echo("No conversations found.")
        return

    for c in conversations[:limit]:
        click.echo(f"{c.id}  {c.timestamp[:10]}  {c.title} ({len(c.messages)} msgs)")


@cli.command()
@click.argument("chat_id", type=int)
def show(chat_id: int):
    """Print the transcript of one conversation."""
    service = _open_service()
    conversations = service.archive.get_archive()
    service.close()

    conv = next((c for c in conversations if c.id == chat_id), None)
    if conv is None:
        raise click.ClickException(f"Conversation not found: {chat_id}")

    click.echo(click.style(conv.title, bold=True))
    click.echo(f"Date: {conv.timestamp}")
    click.echo()
    for msg in conv.messages:
        click.echo(click.style("User:" if msg.sender == "user" else "Assistant:", bold=True))
        click.echo(msg.text)
        click.echo()


@cli.command()
@click.argument("chat_id", type=int)
def delete(chat_id: int):
    """Delete one conversation from the archive."""
    service = _open_service()
    session = ChatSession(service)
    deleted = session.delete_chat(chat_id)
    service.close()

    if not deleted:
        raise click.ClickException(f"Conversation not found or not deleted: {chat_id}")
    click.echo(f"Deleted {chat_id}")


@cli.command()
def status():
    """Show storage usage and backup state."""
    service = _open_service()
    report = service.get_storage_status()
    if report is None:
        service.close()
        raise click.ClickException(f"Storage is not available at {DURABLE_PATH}")

    conversations = service.archive.get_archive()
    snapshot = service.backup.read_snapshot()
    service.close()

    click.echo()
    click.echo(click.style("chatkeep storage", bold=True))
    click.echo(f"  Conversations:  {len(conversations):,}")
    click.echo(f"  Used:           {report.used:,} / {report.quota:,} chars")
    click.echo(f"  Utilization:    {report.percentage:.1f}%")
    if snapshot is not None:
        click.echo(f"  Backup:         {len(snapshot.history):,} conversations at {snapshot.timestamp}")
    else:
        click.echo("  Backup:         none")
    click.echo(f"  Location:       {DATA_DIR}")
    click.echo()


@cli.command()
def backup():
    """Snapshot the archive into the backup slot now."""
    service = _open_service()
    result = service.backup.create_backup()
    service.close()

    if not result:
        raise click.ClickException(f"Backup failed: {result.error}")
    click.echo("Backup written.")


@cli.command()
def restore():
    """Replace the archive with the backup snapshot."""
    service = _open_service()
    restored = service.backup.restore_from_backup(service.archive.save_archive)
    service.close()

    if not restored:
        raise click.ClickException("No valid backup to restore from.")
    click.echo("Archive restored from backup.")


@cli.command()
@click.option("--theme", default=None, help="Color theme")
@click.option("--font-size", default=None, help="Font size (small, medium, large)")
@click.option("--auto-scroll/--no-auto-scroll", default=None, help="Scroll to new messages")
def settings(theme: str | None, font_size: str | None, auto_scroll: bool | None):
    """Show the UI settings, or change them with the options."""
    service = _open_service()
    current = service.settings.get_settings()

    updates = {
        k: v
        for k, v in {"theme": theme, "font_size": font_size, "auto_scroll": auto_scroll}.items()
        if v is not None
    }
    if updates:
        current = current.model_copy(update=updates)
        result = service.settings.save_settings(current)
        if not result:
            service.close()
            raise click.ClickException(f"Could not save settings: {result.error}")
    service.close()

    click.echo(json.dumps(current.model_dump(by_alias=True), indent=2))


@cli.command("export")
@click.argument("out_path", type=click.Path(dir_okay=False, writable=True))
def export_cmd(out_path: str):
    """Write the archive to a JSON file."""
    service = _open_service()
    conversations = service.archive.get_archive()
    service.close()

    Path(out_path).write_text(
        json.dumps([c.model_dump() for c in conversations], indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    click.echo(f"Exported {len(conversations)} conversations to {out_path}")


@cli.command("import")
@click.argument("json_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--replace", is_flag=True, help="Replace the archive instead of merging")
def import_cmd(json_path: str, replace: bool):
    """Import conversations from a JSON file written by `export`.

    Conversations whose id is already archived are skipped unless --replace.
    """
    try:
        data = json.loads(Path(json_path).read_text(encoding="utf-8"))
    except ValueError as e:
        raise click.ClickException(f"Not valid JSON: {e}")
    if not isinstance(data, list):
        raise click.ClickException("Expected a JSON array of conversations.")

    service = _open_service()
    session = ChatSession(service)
    if replace:
        merged = data
        added = len(data)
    else:
        known = {c.id for c in session.history}
        new = [c for c in data if not (isinstance(c, dict) and valid_id(c.get("id")) in known)]
        merged = [*new, *session.history]
        added = len(new)

    result = session.save_history(merged)
    service.close()

    if not result:
        raise click.ClickException(f"Import failed: {result.error}")
    click.echo(f"Imported {added} conversations ({len(session.history)} in archive).")


@cli.command()
def serve():
    """Start the MCP server (stdio transport)."""
    if not DURABLE_PATH.exists():
        click.echo("Warning: No archive yet at " + str(DURABLE_PATH), err=True)

    from .server import mcp

    mcp.run(transport="stdio")


@cli.command()
@click.confirmation_option(prompt="This will delete all saved conversations. Are you sure?")
def reset():
    """Delete all stored data and start fresh."""
    if not DURABLE_PATH.exists():
        click.echo("No data to delete.")
        return

    service = _open_service()
    service.clear_all()
    service.close()
    click.echo(f"Cleared all data in {DURABLE_PATH}")
