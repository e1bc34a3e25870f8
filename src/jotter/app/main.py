"""Compose the TUI and the notes database."""

from __future__ import annotations

from jotter.app.tui import run_tui
from jotter.core.settings import db_path, load_settings
from jotter.storage.gateway import NoteGateway
from jotter.utils.logs import configure_logging


def run_app() -> None:
    settings = load_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    configure_logging(settings, console=False)

    with NoteGateway(db_path(settings)) as gateway:
        run_tui(
            gateway,
            autosave_interval_s=settings.autosave_interval_s,
            autosave_grace_s=settings.autosave_grace_s,
        )
