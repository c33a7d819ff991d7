from __future__ import annotations

import pytest

from notepack.model.assets import AssetCategory
from notepack.parser.classify import classify, classify_source

DRAWIO = "drawio-3f2a9c1e-4b5d-4e6f-8a9b-0c1d2e3f4a5b"


def test_drawio_png_and_svg() -> None:
    for ext in ("png", "svg"):
        info = classify(f"{DRAWIO}.{ext}")
        assert info is not None
        assert info.category is AssetCategory.DRAWIO
        assert info.id_stem == DRAWIO
        assert info.extension == ext


def test_mindmap_is_second_structured_type() -> None:
    info = classify("mindmap-abc123.png")
    assert info is not None
    assert info.category is AssetCategory.MINDMAP
    assert info.id_stem == "mindmap-abc123"


def test_plain_image_uses_name_without_extension() -> None:
    info = classify("9b1c2d3e-aaaa-bbbb-cccc-123456789abc.jpeg")
    assert info is not None
    assert info.category is AssetCategory.PLAIN_IMAGE
    assert info.id_stem == "9b1c2d3e-aaaa-bbbb-cccc-123456789abc"
    assert info.extension == "jpeg"


@pytest.mark.parametrize("ext", ["png", "jpg", "jpeg", "gif", "svg", "webp"])
def test_recognized_image_extensions(ext: str) -> None:
    info = classify(f"photo.{ext}")
    assert info is not None
    assert info.category is AssetCategory.PLAIN_IMAGE


def test_extension_match_is_case_insensitive() -> None:
    info = classify("drawio-abc123.PNG")
    assert info is not None
    assert info.category is AssetCategory.DRAWIO
    assert info.extension == "PNG"


def test_stem_match_is_case_sensitive() -> None:
    # Upper-case hex does not fit the diagram shape; it is still an image
    info = classify("drawio-ABC123.svg")
    assert info is not None
    assert info.category is AssetCategory.PLAIN_IMAGE

    info = classify("Drawio-abc123.svg")
    assert info is not None
    assert info.category is AssetCategory.PLAIN_IMAGE


def test_drawio_with_other_extension_is_plain_or_unknown() -> None:
    info = classify("drawio-abc123.jpg")
    assert info is not None
    assert info.category is AssetCategory.PLAIN_IMAGE
    assert classify("drawio-abc123.xml") is None


@pytest.mark.parametrize("name", ["notes.txt", "archive.zip", "png", ".png", ""])
def test_unrecognized_names(name: str) -> None:
    assert classify(name) is None


def test_classification_is_pure() -> None:
    names = ["drawio-abc.svg", "mindmap-0f.png", "cat.gif", "readme.md"]
    first = [classify(n) for n in names]
    second = [classify(n) for n in names]
    assert first == second


def test_classify_source_names() -> None:
    assert classify_source("drawio-abc123.xml", AssetCategory.DRAWIO) == "drawio-abc123"
    assert classify_source("mindmap-abc123.json", AssetCategory.MINDMAP) == "mindmap-abc123"
    assert classify_source("drawio-abc123.json", AssetCategory.DRAWIO) is None
    assert classify_source("mindmap-abc123.json", AssetCategory.DRAWIO) is None
    assert classify_source("photo.png", AssetCategory.PLAIN_IMAGE) is None


def test_category_properties() -> None:
    assert AssetCategory.DRAWIO.archive_dir == "drawio-source"
    assert AssetCategory.DRAWIO.source_extension == "xml"
    assert AssetCategory.DRAWIO.store_dir == "drawio"
    assert AssetCategory.MINDMAP.archive_dir == "mindmap-source"
    assert AssetCategory.MINDMAP.source_extension == "json"
    assert AssetCategory.PLAIN_IMAGE.archive_dir is None
    assert AssetCategory.PLAIN_IMAGE.id_prefix == ""
    assert not AssetCategory.PLAIN_IMAGE.is_structured
