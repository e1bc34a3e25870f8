"""Notes repository."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable

from jotter.core.notes import DrawingNote, Note, NoteMeta, NoteType, TextNote

logger = logging.getLogger(__name__)

_COLUMNS = "id, title, content, type, image_data, created_date, modified_date"


def insert_note(conn: sqlite3.Connection, note: Note) -> tuple[int, int | None]:
    """Insert ``note``; returns the affected row count and the generated id."""
    content, image_data = _payload(note)
    cursor = conn.execute(
        "INSERT INTO notes (title, content, type, image_data, created_date, "
        "modified_date) VALUES (?, ?, ?, ?, ?, ?)",
        (
            note.title,
            content,
            note.type.value,
            image_data,
            note.created_ms,
            note.modified_ms,
        ),
    )
    conn.commit()
    return cursor.rowcount, cursor.lastrowid


def update_note(conn: sqlite3.Connection, note: Note) -> int:
    content, image_data = _payload(note)
    cursor = conn.execute(
        "UPDATE notes SET title = ?, content = ?, image_data = ?, modified_date = ? "
        "WHERE id = ?",
        (note.title, content, image_data, note.modified_ms, note.id),
    )
    conn.commit()
    return cursor.rowcount


def delete_note(conn: sqlite3.Connection, note_id: int) -> int:
    cursor = conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
    conn.commit()
    return cursor.rowcount


def get_note(conn: sqlite3.Connection, note_id: int) -> Note | None:
    row = conn.execute(
        f"SELECT {_COLUMNS} FROM notes WHERE id = ?", (note_id,)
    ).fetchone()
    if row is None:
        return None
    return _row_to_note(row)


def list_notes(conn: sqlite3.Connection) -> list[Note]:
    rows = conn.execute(
        f"SELECT {_COLUMNS} FROM notes ORDER BY modified_date DESC, id DESC"
    ).fetchall()
    return [_row_to_note(row) for row in rows]


def count_notes(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT COUNT(*) FROM notes").fetchone()
    return int(row[0])


def _payload(note: Note) -> tuple[str | None, bytes | None]:
    if isinstance(note, DrawingNote):
        return None, note.image_data
    if isinstance(note, TextNote):
        return note.content, None
    raise TypeError(f"Unsupported note variant: {type(note).__name__}")


def _row_to_note(row: sqlite3.Row) -> Note:
    meta = NoteMeta(
        title=row["title"],
        id=row["id"],
        created_ms=row["created_date"],
        modified_ms=row["modified_date"],
    )
    try:
        note_type = NoteType(row["type"])
    except ValueError:
        logger.warning(
            "Note %s has unknown type %r; reading it as an empty text note",
            row["id"],
            row["type"],
        )
        return TextNote(content="", meta=meta)
    return _DECODERS[note_type](row, meta)


def _decode_text(row: sqlite3.Row, meta: NoteMeta) -> Note:
    return TextNote(content=row["content"] or "", meta=meta)


def _decode_drawing(row: sqlite3.Row, meta: NoteMeta) -> Note:
    image_data = row["image_data"]
    return DrawingNote(
        image_data=bytes(image_data) if image_data is not None else None, meta=meta
    )


_DECODERS: dict[NoteType, Callable[[sqlite3.Row, NoteMeta], Note]] = {
    NoteType.TEXT: _decode_text,
    NoteType.DRAWING: _decode_drawing,
}
