"""Persistence gateway: the one owner of the notes database connection."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType
from typing import Protocol, TypeVar

from jotter.core.errors import PersistenceError
from jotter.core.notes import Note
from jotter.storage.db import connect, initialize_db
from jotter.storage.repos import notes as notes_repo

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NoteStore(Protocol[T]):
    def save(self, item: T) -> None: ...

    def update(self, item: T) -> None: ...

    def delete(self, item_id: int) -> None: ...

    def get_by_id(self, item_id: int) -> T: ...

    def get_all(self) -> list[T]: ...


class NoteGateway:
    """Serialized CRUD access to the ``notes`` table.

    Every public operation holds the gateway lock for its whole duration, so
    the UI loop, worker threads and the auto-save task can share one instance.
    Failures surface as :class:`PersistenceError`; nothing is retried.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._lock = threading.RLock()
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = connect(db_path)
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError("Failed to connect to database", exc) from exc
        try:
            initialize_db(conn)
        except (OSError, sqlite3.Error) as exc:
            conn.close()
            raise PersistenceError("Failed to initialize database", exc) from exc
        self._conn: sqlite3.Connection | None = conn
        logger.info("Opened notes database at %s", db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def closed(self) -> bool:
        return self._conn is None

    def save(self, note: Note) -> None:
        with self._session("Failed to save note") as conn:
            if note.id is not None:
                raise PersistenceError(f"Note {note.id} is already saved; use update")
            affected, note_id = notes_repo.insert_note(conn, note)
            if affected == 0:
                raise PersistenceError("Creating note failed, no rows affected.")
            if note_id is None:
                raise PersistenceError("Creating note failed, no ID obtained.")
            try:
                note.meta.assign_id(note_id)
            except ValueError as exc:
                raise PersistenceError(
                    "Creating note failed, id conflict", exc
                ) from exc
        logger.debug("Saved %s", note)

    def update(self, note: Note) -> None:
        with self._session("Failed to update note") as conn:
            if note.id is None:
                raise PersistenceError("Updating note failed, note has not been saved.")
            if notes_repo.update_note(conn, note) == 0:
                raise PersistenceError("Updating note failed, note not found.")
        logger.debug("Updated %s", note)

    def delete(self, note_id: int) -> None:
        with self._session("Failed to delete note") as conn:
            if notes_repo.delete_note(conn, note_id) == 0:
                raise PersistenceError("Deleting note failed, note not found.")
        logger.debug("Deleted note %s", note_id)

    def get_by_id(self, note_id: int) -> Note:
        with self._session("Failed to retrieve note") as conn:
            note = notes_repo.get_note(conn, note_id)
        if note is None:
            raise PersistenceError(f"Note with ID {note_id} not found")
        return note

    def get_all(self) -> list[Note]:
        with self._session("Failed to retrieve notes") as conn:
            return notes_repo.list_notes(conn)

    def count(self) -> int:
        with self._session("Failed to count notes") as conn:
            return notes_repo.count_notes(conn)

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            try:
                self._conn.close()
            except sqlite3.Error as exc:
                raise PersistenceError(
                    "Failed to close database connection", exc
                ) from exc
            finally:
                self._conn = None
        logger.info("Closed notes database at %s", self._db_path)

    def __enter__(self) -> NoteGateway:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @contextmanager
    def _session(self, failure: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._conn is None:
                raise PersistenceError("Database connection is closed")
            try:
                yield self._conn
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise PersistenceError(failure, exc) from exc
