"""Typer CLI for Jotter."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from jotter.app.main import run_app
from jotter.core.autosave import AutoSaveScheduler
from jotter.core.errors import PersistenceError
from jotter.core.notes import DrawingNote, TextNote
from jotter.core.settings import Settings, db_path, load_settings
from jotter.storage.gateway import NoteGateway
from jotter.utils.logs import configure_logging

app = typer.Typer(help="Jotter notes CLI")
console = Console()

notes_app = typer.Typer(help="Notes operations")
config_app = typer.Typer(help="Configuration")
db_app = typer.Typer(help="Database operations")


@app.command()
def tui() -> None:
    """Run the Textual TUI."""
    try:
        run_app()
    except PersistenceError as exc:
        console.print(f"[red]{exc}[/red]", markup=True, highlight=False)
        raise typer.Exit(code=1) from exc


@notes_app.command("list")
def notes_list() -> None:
    with _gateway() as gateway:
        notes = gateway.get_all()
    table = Table("id", "type", "title", "content", "modified")
    for note in notes:
        table.add_row(
            str(note.id),
            note.type.value,
            note.title,
            _preview(note.content),
            note.modified_at.isoformat(timespec="seconds"),
        )
    console.print(table)


@notes_app.command("show")
def notes_show(note_id: int) -> None:
    with _gateway() as gateway:
        note = gateway.get_by_id(note_id)
    console.print(str(note), markup=False)
    console.print(f"created={note.created_at.isoformat()}")
    console.print(f"modified={note.modified_at.isoformat()}")
    console.print(note.content, markup=False)


@notes_app.command("add")
def notes_add(title: str, content: str) -> None:
    note = TextNote(title=title, content=content)
    with _gateway() as gateway:
        gateway.save(note)
    console.print(f"created note {note.id}")


@notes_app.command("draw")
def notes_draw(title: str, image_path: Path) -> None:
    """Store the bytes of IMAGE_PATH as a drawing note."""
    try:
        image_data = image_path.read_bytes()
    except OSError as exc:
        console.print(f"[red]Cannot read {image_path}: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    note = DrawingNote(title=title, image_data=image_data)
    with _gateway() as gateway:
        gateway.save(note)
    console.print(f"created drawing {note.id} ({note.content})")


@notes_app.command("edit")
def notes_edit(
    note_id: int,
    title: str | None = typer.Option(None, help="New title"),
    content: str | None = typer.Option(None, help="New text content"),
) -> None:
    if title is None and content is None:
        console.print("nothing to change")
        return
    with _gateway() as gateway:
        note = gateway.get_by_id(note_id)
        if title is not None:
            note.title = title
        if content is not None:
            if not isinstance(note, TextNote):
                console.print(f"[red]Note {note_id} is not a text note[/red]")
                raise typer.Exit(code=1)
            note.content = content
        gateway.update(note)
    console.print(f"updated note {note_id}")


@notes_app.command("delete")
def notes_delete(note_id: int) -> None:
    with _gateway() as gateway:
        gateway.delete(note_id)
    console.print(f"deleted note {note_id}")


@config_app.command("show")
def config_show() -> None:
    settings = load_settings()
    console.print(f"data_dir={settings.data_dir}")
    console.print(f"db_path={db_path(settings)}")
    console.print(f"autosave_interval_s={settings.autosave_interval_s}")
    console.print(f"autosave_grace_s={settings.autosave_grace_s}")
    console.print(f"log_level={settings.log_level}")


@db_app.command("init")
def db_init() -> None:
    with _gateway() as gateway:
        count = gateway.count()
    console.print(f"database initialized ({count} notes)")


@app.command()
def demo(
    database: Path = typer.Option(
        Path("jotter-demo.db"), help="Database file used for the walk-through"
    ),
) -> None:
    """Walk through save, list, update, lookup failure, auto-save and delete."""
    settings = _settings()
    try:
        with NoteGateway(database) as gateway:
            _run_demo(gateway, settings)
    except PersistenceError as exc:
        console.print(f"[red]Database error: {exc}[/red]")
        raise typer.Exit(code=1) from exc


app.add_typer(notes_app, name="notes")
app.add_typer(config_app, name="config")
app.add_typer(db_app, name="db")


def _run_demo(gateway: NoteGateway, settings: Settings) -> None:
    first = TextNote(title="My First Note", content="A plain text note")
    shopping = TextNote(title="Shopping List", content="- Milk\n- Bread\n- Eggs")
    drawing = DrawingNote(title="My Drawing", image_data=bytes([1, 2, 3, 4, 5]))
    for note in (first, shopping, drawing):
        gateway.save(note)
        console.print(f"saved {note}", markup=False)

    for note in gateway.get_all():
        console.print(f"  {note} | {note.content}", markup=False)

    first.title = "My Updated First Note"
    first.content = "Content updated!"
    gateway.update(first)
    console.print(f"updated {gateway.get_by_id(first.id or 0)}", markup=False)

    try:
        gateway.get_by_id(99999)
    except PersistenceError as exc:
        console.print(f"lookup failed as expected: {exc}")

    saves: list[str] = []

    async def _save_current() -> None:
        shopping.content = shopping.content + "\n- Coffee"
        await asyncio.to_thread(gateway.update, shopping)
        saves.append(shopping.title)

    async def _autosave_once() -> None:
        scheduler = AutoSaveScheduler(_save_current, interval_s=0.2)
        scheduler.start()
        for _ in range(100):
            if saves:
                break
            await asyncio.sleep(0.05)
        await scheduler.shutdown(settings.autosave_grace_s)

    asyncio.run(_autosave_once())
    console.print(f"auto-saved {len(saves)} time(s)")

    gateway.delete(shopping.id or 0)
    console.print(f"deleted note {shopping.id}")
    console.print(f"final note count: {gateway.count()}")


def _settings() -> Settings:
    settings = load_settings()
    configure_logging(settings, console=True)
    return settings


@contextmanager
def _gateway() -> Iterator[NoteGateway]:
    settings = _settings()
    try:
        with NoteGateway(db_path(settings)) as gateway:
            yield gateway
    except PersistenceError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


def _preview(text: str, limit: int = 40) -> str:
    line = text.splitlines()[0] if text else ""
    return line if len(line) <= limit else line[: limit - 1] + "…"
