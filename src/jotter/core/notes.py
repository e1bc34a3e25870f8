"""Note records: text notes and drawing notes."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Protocol

from jotter.utils.time import from_ms, now_ms


class NoteType(str, Enum):
    TEXT = "TEXT"
    DRAWING = "DRAWING"


@dataclass
class NoteMeta:
    """Fields every note variant carries."""

    title: str = ""
    id: int | None = None
    created_ms: int = field(default_factory=now_ms)
    modified_ms: int | None = None

    def __post_init__(self) -> None:
        if self.modified_ms is None or self.modified_ms < self.created_ms:
            self.modified_ms = self.created_ms

    def touch(self) -> None:
        self.modified_ms = max(now_ms(), self.modified_ms or 0, self.created_ms)

    def assign_id(self, note_id: int) -> None:
        if self.id is not None and self.id != note_id:
            raise ValueError(f"Note already has id {self.id}")
        self.id = note_id


class Note(Protocol):
    type: ClassVar[NoteType]
    meta: NoteMeta

    @property
    def id(self) -> int | None: ...

    @property
    def title(self) -> str: ...

    @title.setter
    def title(self, value: str) -> None: ...

    @property
    def content(self) -> str: ...

    @content.setter
    def content(self, value: str | None) -> None: ...

    @property
    def created_ms(self) -> int: ...

    @property
    def modified_ms(self) -> int: ...

    @property
    def created_at(self) -> dt.datetime: ...

    @property
    def modified_at(self) -> dt.datetime: ...


class _MetaFields:
    """Accessors over the composed ``NoteMeta``."""

    type: ClassVar[NoteType]
    meta: NoteMeta

    @property
    def id(self) -> int | None:
        return self.meta.id

    @id.setter
    def id(self, value: int) -> None:
        self.meta.assign_id(value)

    @property
    def title(self) -> str:
        return self.meta.title

    @title.setter
    def title(self, value: str) -> None:
        self.meta.title = value
        self.meta.touch()

    @property
    def created_ms(self) -> int:
        return self.meta.created_ms

    @property
    def modified_ms(self) -> int:
        return self.meta.modified_ms or self.meta.created_ms

    @property
    def created_at(self) -> dt.datetime:
        return from_ms(self.created_ms)

    @property
    def modified_at(self) -> dt.datetime:
        return from_ms(self.modified_ms)

    def __str__(self) -> str:
        return f"{self.type.value}: {self.title} (ID: {self.id})"


class TextNote(_MetaFields):
    type: ClassVar[NoteType] = NoteType.TEXT

    def __init__(
        self, title: str = "", content: str = "", *, meta: NoteMeta | None = None
    ) -> None:
        self.meta = meta or NoteMeta(title=title)
        self._content = content

    @property
    def content(self) -> str:
        return self._content

    @content.setter
    def content(self, value: str | None) -> None:
        if value is None:
            raise ValueError("Content cannot be null")
        self._content = value
        self.meta.touch()

    def __repr__(self) -> str:
        return f"TextNote(id={self.id!r}, title={self.title!r})"


class DrawingNote(_MetaFields):
    type: ClassVar[NoteType] = NoteType.DRAWING

    def __init__(
        self,
        title: str = "",
        image_data: Iterable[int] | None = None,
        *,
        meta: NoteMeta | None = None,
    ) -> None:
        self.meta = meta or NoteMeta(title=title)
        self._image_data = bytes(image_data) if image_data is not None else None

    @property
    def content(self) -> str:
        if self._image_data is None:
            return "Empty drawing"
        return f"Drawing with {len(self._image_data)} bytes"

    @content.setter
    def content(self, value: str | None) -> None:
        raise TypeError("Drawing notes have no text content; set image_data instead")

    @property
    def image_data(self) -> bytes | None:
        return self._image_data

    @image_data.setter
    def image_data(self, value: Iterable[int] | None) -> None:
        self._image_data = bytes(value) if value is not None else None
        self.meta.touch()

    def __repr__(self) -> str:
        return f"DrawingNote(id={self.id!r}, title={self.title!r})"
