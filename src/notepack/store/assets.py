"""Filesystem-backed asset store.

Layout below the uploads root::

    <root>/<filename>                 rendered images and plain uploads
    <root>/drawio/<id>.xml            draw.io diagram sources
    <root>/mindmap/<id>.json          mind map sources

Writes use exclusive creation and never replace an existing file. Files
are only ever deleted through the explicit remove_* methods, which the
cleanup operations in notepack.store.inventory use.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Protocol

from notepack.errors import AssetNotFoundError, classify_os_error
from notepack.ids import validate_identifier
from notepack.model.assets import AssetCategory

logger = logging.getLogger(__name__)


class AssetStore(Protocol):
    """Minimal protocol the packager and unpacker rely on."""

    def open_asset(self, filename: str) -> BinaryIO: ...

    def open_structured_source(self, category: AssetCategory, id_stem: str) -> BinaryIO: ...

    def write_asset(self, new_id: str, extension: str, data: bytes) -> str: ...

    def write_structured_source(self, category: AssetCategory, new_id: str, data: bytes) -> str: ...


def sniff_source(category: AssetCategory, data: bytes) -> bool:
    """Cheap format check for a structured source payload.

    XML must start with '<' and JSON with '{' or '[' once a BOM and leading
    whitespace are dropped. Nothing deeper is validated.
    """

    head = data[:64].lstrip(b"\xef\xbb\xbf").lstrip()
    if category is AssetCategory.DRAWIO:
        return head.startswith(b"<")
    if category is AssetCategory.MINDMAP:
        return head.startswith((b"{", b"["))
    return False


class FileAssetStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def asset_path(self, filename: str) -> Path:
        return self.root / validate_identifier(filename)

    def source_path(self, category: AssetCategory, id_stem: str) -> Path:
        if not category.is_structured:
            raise ValueError(f"{category.value} assets have no structured source")
        name = f"{validate_identifier(id_stem)}.{category.source_extension}"
        return self.root / str(category.store_dir) / name

    def open_asset(self, filename: str) -> BinaryIO:
        path = self.asset_path(filename)
        try:
            return path.open("rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise AssetNotFoundError(filename) from exc

    def read_asset(self, filename: str) -> bytes:
        with self.open_asset(filename) as fh:
            return fh.read()

    def open_structured_source(self, category: AssetCategory, id_stem: str) -> BinaryIO:
        path = self.source_path(category, id_stem)
        try:
            return path.open("rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise AssetNotFoundError(path.name, category) from exc

    def read_structured_source(self, category: AssetCategory, id_stem: str) -> bytes:
        with self.open_structured_source(category, id_stem) as fh:
            return fh.read()

    def write_asset(self, new_id: str, extension: str, data: bytes) -> str:
        """Store ``data`` as ``<new_id>.<extension>`` and return that filename."""

        filename = f"{validate_identifier(new_id)}.{validate_identifier(extension)}"
        self._write_new(self.root / filename, data)
        logger.debug("Stored asset %s (%d bytes)", filename, len(data))
        return filename

    def write_structured_source(self, category: AssetCategory, new_id: str, data: bytes) -> str:
        path = self.source_path(category, new_id)
        self._write_new(path, data)
        logger.debug("Stored %s source %s (%d bytes)", category.value, path.name, len(data))
        return path.name

    def list_assets(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_file())

    def list_structured_sources(self, category: AssetCategory) -> list[str]:
        directory = self.root / str(category.store_dir)
        if not category.is_structured or not directory.is_dir():
            return []
        return sorted(p.name for p in directory.iterdir() if p.is_file())

    def asset_size(self, filename: str) -> int:
        return self._size(self.asset_path(filename), filename)

    def source_size(self, category: AssetCategory, id_stem: str) -> int:
        path = self.source_path(category, id_stem)
        return self._size(path, path.name, category)

    def remove_asset(self, filename: str) -> int:
        """Delete ``filename`` from the store and return the bytes freed."""

        return self._remove(self.asset_path(filename), filename)

    def remove_structured_source(self, category: AssetCategory, id_stem: str) -> int:
        path = self.source_path(category, id_stem)
        return self._remove(path, path.name, category)

    @staticmethod
    def _size(path: Path, name: str, category: AssetCategory | None = None) -> int:
        try:
            return path.stat().st_size
        except FileNotFoundError as exc:
            raise AssetNotFoundError(name, category) from exc
        except OSError as exc:
            raise classify_os_error(exc) from exc

    @classmethod
    def _remove(cls, path: Path, name: str, category: AssetCategory | None = None) -> int:
        size = cls._size(path, name, category)
        if not path.is_file():
            raise AssetNotFoundError(name, category)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise AssetNotFoundError(name, category) from exc
        except OSError as exc:
            raise classify_os_error(exc) from exc
        logger.info("Removed %s (%d bytes)", name, size)
        return size

    @staticmethod
    def _write_new(path: Path, data: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("xb") as fh:
                fh.write(data)
        except OSError as exc:
            raise classify_os_error(exc) from exc


__all__ = ["AssetStore", "FileAssetStore", "sniff_source"]
