from __future__ import annotations

import sqlite3
import threading
import time

import pytest

from jotter.core.errors import PersistenceError
from jotter.core.notes import DrawingNote, TextNote
from jotter.storage.db import MIGRATIONS_DIR
from jotter.storage.gateway import NoteGateway
from jotter.storage.repos import notes as notes_repo


def test_walkthrough_scenario(gateway) -> None:
    text = TextNote(title="My First Note", content="Hello")
    gateway.save(text)
    assert text.id == 1

    loaded = gateway.get_by_id(1)
    assert loaded.title == "My First Note"
    assert loaded.type.value == "TEXT"
    assert loaded.content == "Hello"

    drawing = DrawingNote(title="Sketch", image_data=bytes([1, 2, 3]))
    gateway.save(drawing)
    assert drawing.id == 2
    assert gateway.get_by_id(2).content == "Drawing with 3 bytes"

    assert [note.id for note in gateway.get_all()] == [2, 1]

    gateway.delete(1)
    assert [note.id for note in gateway.get_all()] == [2]


def test_round_trip_keeps_fields(gateway) -> None:
    text = TextNote(title="Shopping List", content="- Milk\n- Bread")
    drawing = DrawingNote(title="Doodle", image_data=b"\x00\xff\x10")
    gateway.save(text)
    gateway.save(drawing)

    loaded_text = gateway.get_by_id(text.id)
    assert isinstance(loaded_text, TextNote)
    assert loaded_text.content == "- Milk\n- Bread"
    assert loaded_text.created_ms == text.created_ms
    assert loaded_text.modified_ms >= loaded_text.created_ms

    loaded_drawing = gateway.get_by_id(drawing.id)
    assert isinstance(loaded_drawing, DrawingNote)
    assert loaded_drawing.image_data == b"\x00\xff\x10"
    assert loaded_drawing.created_ms == drawing.created_ms


def test_variants_do_not_cross_contaminate(gateway) -> None:
    text = TextNote(title="t", content="words")
    drawing = DrawingNote(title="d", image_data=b"abcd")
    gateway.save(text)
    gateway.save(drawing)

    with sqlite3.connect(gateway.db_path) as conn:
        rows = dict(
            (row[0], row[1:])
            for row in conn.execute("SELECT id, content, image_data, type FROM notes")
        )
    assert rows[text.id] == ("words", None, "TEXT")
    assert rows[drawing.id] == (None, b"abcd", "DRAWING")
    assert gateway.get_by_id(drawing.id).content == "Drawing with 4 bytes"


def test_empty_drawing_round_trips_as_empty(gateway) -> None:
    drawing = DrawingNote(title="blank")
    gateway.save(drawing)
    loaded = gateway.get_by_id(drawing.id)
    assert isinstance(loaded, DrawingNote)
    assert loaded.image_data is None
    assert loaded.content == "Empty drawing"


def test_update_persists_changes(gateway) -> None:
    note = TextNote(title="before", content="one")
    gateway.save(note)
    note.title = "after"
    note.content = "two"
    gateway.update(note)

    loaded = gateway.get_by_id(note.id)
    assert loaded.title == "after"
    assert loaded.content == "two"
    assert loaded.modified_ms == note.modified_ms
    assert loaded.created_ms == note.created_ms


def test_update_reorders_most_recent_first(gateway) -> None:
    first = TextNote(title="A", content="a")
    second = TextNote(title="B", content="b")
    gateway.save(first)
    gateway.save(second)
    assert [n.title for n in gateway.get_all()] == ["B", "A"]

    first.content = "a2"
    gateway.update(first)
    assert [n.title for n in gateway.get_all()] == ["A", "B"]


def test_update_missing_note_fails_without_changes(gateway) -> None:
    kept = TextNote(title="kept", content="same")
    gateway.save(kept)

    ghost = TextNote(title="ghost", content="boo")
    ghost.id = 999
    with pytest.raises(PersistenceError, match="not found"):
        gateway.update(ghost)

    (only,) = gateway.get_all()
    assert only.title == "kept"
    assert only.content == "same"


def test_update_unsaved_note_fails(gateway) -> None:
    with pytest.raises(PersistenceError):
        gateway.update(TextNote(title="new"))


def test_save_twice_fails(gateway) -> None:
    note = TextNote(title="once")
    gateway.save(note)
    with pytest.raises(PersistenceError, match="already saved"):
        gateway.save(note)
    assert gateway.count() == 1


def test_delete_missing_note_fails(gateway) -> None:
    gateway.save(TextNote(title="stay"))
    with pytest.raises(PersistenceError, match="not found"):
        gateway.delete(42)
    assert gateway.count() == 1


def test_delete_removes_exactly_one_row(gateway) -> None:
    notes = [TextNote(title=f"n{i}") for i in range(3)]
    for note in notes:
        gateway.save(note)
    gateway.delete(notes[1].id)
    remaining = {note.id for note in gateway.get_all()}
    assert remaining == {notes[0].id, notes[2].id}


def test_get_missing_note_fails(gateway) -> None:
    with pytest.raises(PersistenceError, match="Note with ID 99999 not found"):
        gateway.get_by_id(99999)


def test_unknown_type_reads_as_empty_text_note(gateway) -> None:
    with sqlite3.connect(gateway.db_path) as conn:
        conn.execute(
            "INSERT INTO notes (title, content, type, image_data, created_date, "
            "modified_date) VALUES ('odd', 'ignored', 'AUDIO', NULL, 1, 2)"
        )
    (note,) = gateway.get_all()
    assert isinstance(note, TextNote)
    assert note.title == "odd"
    assert note.content == ""
    assert note.modified_ms == 2


def test_reads_rows_written_by_other_clients(gateway) -> None:
    with sqlite3.connect(gateway.db_path) as conn:
        conn.execute(
            "INSERT INTO notes (title, content, type, image_data, created_date, "
            "modified_date) VALUES ('legacy', NULL, 'TEXT', NULL, 1000, 5000)"
        )
    note = gateway.get_by_id(1)
    assert note.content == ""
    assert note.created_ms == 1000
    assert note.modified_ms == 5000


def test_data_survives_reopen(tmp_path) -> None:
    path = tmp_path / "notes.db"
    with NoteGateway(path) as first:
        note = TextNote(title="persisted", content="on disk")
        first.save(note)
    with NoteGateway(path) as second:
        assert second.get_by_id(note.id).content == "on disk"


def test_close_is_idempotent_and_blocks_operations(tmp_path) -> None:
    store = NoteGateway(tmp_path / "notes.db")
    store.close()
    store.close()
    assert store.closed
    with pytest.raises(PersistenceError, match="closed"):
        store.get_all()


def test_open_failure_raises_persistence_error(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(PersistenceError) as excinfo:
        NoteGateway(blocker / "notes.db")
    assert excinfo.value.cause is not None


def test_corrupt_file_raises_persistence_error(tmp_path) -> None:
    path = tmp_path / "notes.db"
    path.write_bytes(b"this is not a sqlite database" * 100)
    with pytest.raises(PersistenceError, match="initialize"):
        NoteGateway(path)


def test_concurrent_saves_are_serialized(gateway) -> None:
    errors: list[BaseException] = []

    def _worker(prefix: str) -> None:
        try:
            for i in range(20):
                gateway.save(TextNote(title=f"{prefix}-{i}", content=prefix))
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=_worker, args=(f"t{n}",)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    notes = gateway.get_all()
    assert len(notes) == 80
    assert len({note.id for note in notes}) == 80


def test_same_note_saved_from_two_threads_gets_one_row(
    gateway, monkeypatch
) -> None:
    real_insert = notes_repo.insert_note

    def _slow_insert(conn, note):
        time.sleep(0.1)
        return real_insert(conn, note)

    monkeypatch.setattr(notes_repo, "insert_note", _slow_insert)
    note = TextNote(title="shared", content="once")
    errors: list[BaseException] = []

    def _worker() -> None:
        try:
            gateway.save(note)
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=_worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(errors) == 1
    assert isinstance(errors[0], PersistenceError)
    assert "already saved" in str(errors[0])
    assert gateway.count() == 1
    assert note.id == 1


def test_schema_version_is_recorded_once(tmp_path) -> None:
    path = tmp_path / "notes.db"
    with NoteGateway(path):
        pass
    with NoteGateway(path) as reopened:
        reopened.save(TextNote(title="after reopen"))
    with sqlite3.connect(path) as conn:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
    assert version == len(sorted(MIGRATIONS_DIR.glob("*.sql")))
    assert version >= 1


def test_database_from_older_clients_is_adopted(tmp_path) -> None:
    path = tmp_path / "notes.db"
    with sqlite3.connect(path) as conn:
        conn.execute(
            "CREATE TABLE notes (id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "title TEXT NOT NULL, content TEXT, type TEXT NOT NULL, "
            "image_data BLOB, created_date INTEGER NOT NULL, "
            "modified_date INTEGER NOT NULL)"
        )
        conn.execute(
            "INSERT INTO notes (title, content, type, image_data, created_date, "
            "modified_date) VALUES ('old', 'kept', 'TEXT', NULL, 1, 1)"
        )
    with NoteGateway(path) as gateway:
        assert gateway.get_by_id(1).content == "kept"


def test_drawing_built_from_int_list_saves(gateway) -> None:
    drawing = DrawingNote(title="Sketch", image_data=[1, 2, 3])
    gateway.save(drawing)
    loaded = gateway.get_by_id(drawing.id)
    assert loaded.image_data == b"\x01\x02\x03"
    assert loaded.content == "Drawing with 3 bytes"
