"""Textual-based TUI."""

from __future__ import annotations

import asyncio
import logging
from typing import ClassVar

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, Input, OptionList, Static, TextArea
from textual.widgets.option_list import Option

from jotter.core.autosave import AutoSaveScheduler
from jotter.core.errors import PersistenceError
from jotter.core.notes import DrawingNote, Note, TextNote
from jotter.storage.gateway import NoteGateway

logger = logging.getLogger(__name__)


class NotesApp(App):
    TITLE = "Jotter"
    CSS = """
    #notes {
        width: 36;
        height: 1fr;
    }
    #editor-pane {
        height: 1fr;
    }
    #editor {
        height: 1fr;
    }
    #status {
        height: 1;
        color: $text-muted;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("ctrl+n", "new_note", "New", priority=True),
        Binding("ctrl+s", "save_note", "Save", priority=True),
        Binding("ctrl+d", "delete_note", "Delete", priority=True),
        Binding("ctrl+r", "reload", "Reload", priority=True),
    ]

    def __init__(
        self,
        gateway: NoteGateway,
        autosave_interval_s: float = 30.0,
        autosave_grace_s: float = 5.0,
    ) -> None:
        super().__init__()
        self._gateway = gateway
        self._grace_s = autosave_grace_s
        self._autosave = AutoSaveScheduler(self.autosave, autosave_interval_s)
        self._current: Note = TextNote()
        self._notes: list[Note] = []
        # Editor values applied to the open note but not yet written.
        self._pending = False
        self._flush_lock = asyncio.Lock()
        self._status = ""

    @property
    def current_note(self) -> Note:
        return self._current

    @property
    def status(self) -> str:
        return self._status

    @property
    def autosave_scheduler(self) -> AutoSaveScheduler:
        return self._autosave

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal():
            yield OptionList(id="notes")
            with Vertical(id="editor-pane"):
                yield Input(placeholder="Title", id="title")
                yield TextArea(id="editor")
        yield Static("", id="status")
        yield Footer()

    async def on_mount(self) -> None:
        self._show(self._current)
        await self._refresh_list()
        self.run_worker(self._autosave.run(), name="autosave", exclusive=True)

    async def action_quit(self) -> None:
        if not await self._flush("Save on exit failed"):
            return
        await self._autosave.shutdown(self._grace_s)
        self.exit()

    async def action_new_note(self) -> None:
        if not await self._flush("Save failed"):
            return
        self._open(TextNote())
        self.query_one("#title", Input).focus()
        self._set_status("New text note")

    async def action_save_note(self) -> None:
        if await self._flush("Save failed"):
            self._set_status(f"Saved {self._current}")

    async def action_delete_note(self) -> None:
        note = self._current
        if note.id is None:
            self._set_status("Nothing to delete")
            return
        async with self._flush_lock:
            try:
                await asyncio.to_thread(self._gateway.delete, note.id)
            except PersistenceError as exc:
                self._set_status(f"Delete failed: {exc}")
                return
        self._open(TextNote())
        await self._refresh_list()
        self._set_status(f"Deleted {note}")

    async def action_reload(self) -> None:
        await self._refresh_list()

    async def on_option_list_option_selected(
        self, event: OptionList.OptionSelected
    ) -> None:
        if event.option_list.id != "notes" or event.option.id is None:
            return
        event.stop()
        note_id = int(event.option.id)
        if note_id == self._current.id:
            return
        if not await self._flush("Save failed"):
            return
        try:
            note = await asyncio.to_thread(self._gateway.get_by_id, note_id)
        except PersistenceError as exc:
            self._set_status(f"Open failed: {exc}")
            return
        self._open(note)
        self._set_status(f"Opened {note}")

    async def autosave(self) -> None:
        """Persist the open note when it has unsaved edits."""
        if not self.has_unsaved_edits():
            return
        if await self._flush("Auto-save failed"):
            self._set_status(f"Auto-saved {self._current}")

    def has_unsaved_edits(self) -> bool:
        if self._pending:
            return True
        title, text = self._editor_values()
        note = self._current
        if title != note.title:
            return True
        return isinstance(note, TextNote) and text != note.content

    async def _flush(self, failure: str) -> bool:
        async with self._flush_lock:
            if not self.has_unsaved_edits():
                return True
            note = self._current
            self._apply_editor(note)
            self._pending = True
            try:
                await asyncio.to_thread(self._persist, note)
            except PersistenceError as exc:
                logger.warning("%s for %s: %s", failure, note, exc)
                self._set_status(f"{failure}: {exc}")
                return False
            if note is self._current:
                self._pending = False
        await self._refresh_list()
        return True

    def _open(self, note: Note) -> None:
        self._current = note
        self._pending = False
        self._show(note)

    def _persist(self, note: Note) -> None:
        if note.id is None:
            self._gateway.save(note)
        else:
            self._gateway.update(note)

    def _apply_editor(self, note: Note) -> None:
        title, text = self._editor_values()
        if title != note.title:
            note.title = title
        if isinstance(note, TextNote) and text != note.content:
            note.content = text

    def _editor_values(self) -> tuple[str, str]:
        title = self.query_one("#title", Input).value
        text = self.query_one("#editor", TextArea).text
        return title, text

    def _show(self, note: Note) -> None:
        self.query_one("#title", Input).value = note.title
        editor = self.query_one("#editor", TextArea)
        editor.load_text(note.content)
        editor.read_only = isinstance(note, DrawingNote)

    async def _refresh_list(self) -> None:
        try:
            self._notes = await asyncio.to_thread(self._gateway.get_all)
        except PersistenceError as exc:
            self._set_status(f"Load failed: {exc}")
            return
        option_list = self.query_one("#notes", OptionList)
        option_list.clear_options()
        option_list.add_options(
            [Option(_label(note), id=str(note.id)) for note in self._notes]
        )
        self._set_status(f"{len(self._notes)} notes")

    def _set_status(self, text: str) -> None:
        self._status = text
        self.query_one("#status", Static).update(Text(text))


def _label(note: Note) -> Text:
    title = note.title or "(untitled)"
    return Text(f"{title} ({note.type.value.lower()})")


def run_tui(
    gateway: NoteGateway, autosave_interval_s: float, autosave_grace_s: float
) -> None:
    NotesApp(
        gateway,
        autosave_interval_s=autosave_interval_s,
        autosave_grace_s=autosave_grace_s,
    ).run()
