from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Protocol

from notepack.errors import classify_os_error

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):  # pragma: no cover - interface
    def create_document(self, text: str) -> str: ...


def atomic_write_text(path: Path, data: str, *, encoding: str = "utf-8") -> None:
    """Atomically write text to a file by writing to a temp file then replacing.

    Ensures parent directories exist and minimizes risk of partial writes.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile(
        "w", encoding=encoding, newline="", dir=str(path.parent), delete=False
    ) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = Path(tmp.name)
    os.replace(tmp_path, path)


class FileDocumentStore:
    """Stores each note as ``<notes_dir>/<uuid>.md``; the uuid is the handle."""

    def __init__(self, notes_dir: Path) -> None:
        self.notes_dir = Path(notes_dir)

    def create_document(self, text: str) -> str:
        handle = str(uuid.uuid4())
        try:
            atomic_write_text(self.path_for(handle), text)
        except OSError as exc:
            raise classify_os_error(exc) from exc
        logger.debug("Created document %s", handle)
        return handle

    def path_for(self, handle: str) -> Path:
        return self.notes_dir / f"{handle}.md"

    def read_document(self, handle: str) -> str:
        return self.path_for(handle).read_bytes().decode("utf-8")


__all__ = ["DocumentStore", "FileDocumentStore", "atomic_write_text"]
