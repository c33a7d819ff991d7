from __future__ import annotations

import errno
from pathlib import Path
from typing import Any

import pytest

from notepack.errors import AssetNotFoundError, StorageError, UnsafeIdentifierError
from notepack.model.assets import AssetCategory
from notepack.store.assets import FileAssetStore, sniff_source
from notepack.store.documents import FileDocumentStore, atomic_write_text


def test_read_asset_and_missing_asset(store: FileAssetStore, uploads: Path) -> None:
    (uploads / "cat.png").write_bytes(b"png")
    assert store.read_asset("cat.png") == b"png"
    with pytest.raises(AssetNotFoundError):
        store.read_asset("dog.png")


def test_structured_source_paths(store: FileAssetStore, uploads: Path, drawio_xml: bytes) -> None:
    (uploads / "drawio").mkdir()
    (uploads / "drawio" / "drawio-abc.xml").write_bytes(drawio_xml)
    assert store.read_structured_source(AssetCategory.DRAWIO, "drawio-abc") == drawio_xml
    with pytest.raises(AssetNotFoundError):
        store.read_structured_source(AssetCategory.MINDMAP, "mindmap-abc")
    with pytest.raises(ValueError):
        store.source_path(AssetCategory.PLAIN_IMAGE, "x")


def test_traversal_is_rejected_before_filesystem_access(store: FileAssetStore) -> None:
    with pytest.raises(UnsafeIdentifierError):
        store.read_asset("../secret.png")
    with pytest.raises(UnsafeIdentifierError):
        store.write_asset("../evil", "png", b"x")
    with pytest.raises(UnsafeIdentifierError):
        store.write_structured_source(AssetCategory.DRAWIO, "drawio-a/../../b", b"<x/>")


def test_write_asset_creates_and_never_overwrites(store: FileAssetStore, uploads: Path) -> None:
    assert store.write_asset("abc", "png", b"one") == "abc.png"
    assert (uploads / "abc.png").read_bytes() == b"one"
    with pytest.raises(StorageError):
        store.write_asset("abc", "png", b"two")
    assert (uploads / "abc.png").read_bytes() == b"one"


def test_write_structured_source_creates_category_dir(
    store: FileAssetStore, uploads: Path, mindmap_json: bytes
) -> None:
    name = store.write_structured_source(AssetCategory.MINDMAP, "mindmap-new", mindmap_json)
    assert name == "mindmap-new.json"
    assert (uploads / "mindmap" / "mindmap-new.json").read_bytes() == mindmap_json


def test_write_errors_are_classified(store: FileAssetStore, monkeypatch: Any) -> None:
    def boom(self: Path, *args: Any, **kwargs: Any) -> Any:
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(Path, "open", boom)
    with pytest.raises(StorageError) as info:
        store.write_asset("abc", "png", b"x")
    assert info.value.kind == "disk_full"


def test_listing(store: FileAssetStore, uploads: Path, drawio_xml: bytes) -> None:
    (uploads / "b.png").write_bytes(b"b")
    (uploads / "a.png").write_bytes(b"a")
    store.write_structured_source(AssetCategory.DRAWIO, "drawio-1", drawio_xml)
    assert store.list_assets() == ["a.png", "b.png"]
    assert store.list_structured_sources(AssetCategory.DRAWIO) == ["drawio-1.xml"]
    assert store.list_structured_sources(AssetCategory.MINDMAP) == []
    assert FileAssetStore(uploads / "missing").list_assets() == []


def test_sniff_source(drawio_xml: bytes, mindmap_json: bytes) -> None:
    assert sniff_source(AssetCategory.DRAWIO, drawio_xml)
    assert sniff_source(AssetCategory.DRAWIO, b"\xef\xbb\xbf  \n<?xml version='1.0'?><mxfile/>")
    assert not sniff_source(AssetCategory.DRAWIO, mindmap_json)
    assert sniff_source(AssetCategory.MINDMAP, mindmap_json)
    assert sniff_source(AssetCategory.MINDMAP, b"  [1, 2]")
    assert not sniff_source(AssetCategory.MINDMAP, drawio_xml)
    assert not sniff_source(AssetCategory.PLAIN_IMAGE, b"<svg/>")


def test_document_store_round_trip(documents: FileDocumentStore) -> None:
    handle = documents.create_document("# Title\n")
    assert documents.read_document(handle) == "# Title\n"
    assert documents.path_for(handle).name == f"{handle}.md"
    assert documents.create_document("x") != handle


def test_atomic_write_text_replaces(tmp_path: Path) -> None:
    target = tmp_path / "deep" / "file.md"
    atomic_write_text(target, "one")
    atomic_write_text(target, "two")
    assert target.read_text(encoding="utf-8") == "two"
    assert [p.name for p in target.parent.iterdir()] == ["file.md"]


def test_non_file_paths_count_as_missing(store: FileAssetStore, uploads: Path) -> None:
    (uploads / "drawio").mkdir()
    with pytest.raises(AssetNotFoundError):
        store.open_asset("drawio")

    (uploads / "mindmap").write_bytes(b"not a directory")
    with pytest.raises(AssetNotFoundError):
        store.open_structured_source(AssetCategory.MINDMAP, "mindmap-ab")


def test_sizes_and_removal(store: FileAssetStore, uploads: Path, drawio_xml: bytes) -> None:
    (uploads / "drawio-ab.svg").write_text("<svg/>")
    store.write_structured_source(AssetCategory.DRAWIO, "drawio-ab", drawio_xml)

    assert store.asset_size("drawio-ab.svg") == 6
    assert store.source_size(AssetCategory.DRAWIO, "drawio-ab") == len(drawio_xml)

    assert store.remove_asset("drawio-ab.svg") == 6
    assert store.remove_structured_source(AssetCategory.DRAWIO, "drawio-ab") == len(drawio_xml)
    assert store.list_assets() == []
    assert store.list_structured_sources(AssetCategory.DRAWIO) == []

    with pytest.raises(AssetNotFoundError):
        store.remove_asset("drawio-ab.svg")
    with pytest.raises(UnsafeIdentifierError):
        store.remove_asset("../drawio-ab.svg")


def test_remove_refuses_directories(store: FileAssetStore, uploads: Path) -> None:
    (uploads / "drawio").mkdir()
    with pytest.raises(AssetNotFoundError):
        store.remove_asset("drawio")
    assert (uploads / "drawio").is_dir()


def test_document_store_keeps_line_endings(documents: FileDocumentStore) -> None:
    handle = documents.create_document("a\r\nb\n")
    assert documents.path_for(handle).read_bytes() == b"a\r\nb\n"
    assert documents.read_document(handle) == "a\r\nb\n"
