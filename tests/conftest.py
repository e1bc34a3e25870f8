from __future__ import annotations

import pytest

from jotter.storage.gateway import NoteGateway


@pytest.fixture
def gateway(tmp_path):
    store = NoteGateway(tmp_path / "notes.db")
    yield store
    store.close()
