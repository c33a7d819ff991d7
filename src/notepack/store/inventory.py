"""Pairing of rendered structured images with their source payloads.

Also hosts the two cleanup operations: removing one structured asset by
id, and removing every structured asset no given note references.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from notepack.errors import AssetNotFoundError, NotePackError, UnsafeIdentifierError
from notepack.ids import validate_identifier
from notepack.model.assets import STRUCTURED_CATEGORIES, AssetCategory
from notepack.parser.classify import classify, classify_source
from notepack.store.assets import FileAssetStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StructuredAsset:
    id_stem: str
    category: AssetCategory
    images: list[str] = field(default_factory=list)
    source: str | None = None
    image_bytes: int = 0
    source_bytes: int = 0

    @property
    def has_source(self) -> bool:
        return self.source is not None

    @property
    def size(self) -> int:
        return self.image_bytes + self.source_bytes


@dataclass(slots=True)
class OrphanReport:
    # Source payload present, no rendered image in the store
    sources_without_image: list[StructuredAsset] = field(default_factory=list)
    # Rendered image present, source payload missing
    images_without_source: list[StructuredAsset] = field(default_factory=list)
    # Complete assets that no given note references
    unreferenced: list[StructuredAsset] = field(default_factory=list)


@dataclass(slots=True)
class CleanupReport:
    # Store-relative paths, sources as "<category>/<id>.<ext>"
    deleted: list[str] = field(default_factory=list)
    freed_bytes: int = 0
    # Ids whose removal failed; the rest of the cleanup went ahead
    failed: list[str] = field(default_factory=list)


def scan_structured_assets(store: FileAssetStore) -> dict[str, StructuredAsset]:
    """Index every structured asset in ``store`` by id stem, with file sizes."""

    found: dict[str, StructuredAsset] = {}
    for category in STRUCTURED_CATEGORIES:
        for name in store.list_structured_sources(category):
            stem = classify_source(name, category)
            # only canonical names are reachable through source_path
            if stem is None or name != f"{stem}.{category.source_extension}":
                continue
            entry = found.setdefault(stem, StructuredAsset(stem, category))
            entry.source = name
            entry.source_bytes = store.source_size(category, stem)

    for name in store.list_assets():
        info = classify(name)
        if info is None or not info.category.is_structured:
            continue
        entry = found.setdefault(info.id_stem, StructuredAsset(info.id_stem, info.category))
        entry.images.append(name)
        entry.image_bytes += store.asset_size(name)

    return dict(sorted(found.items()))


def find_orphans(
    inventory: dict[str, StructuredAsset], referenced_ids: set[str] | None = None
) -> OrphanReport:
    """Split ``inventory`` into unpaired and (optionally) unreferenced assets.

    When ``referenced_ids`` is None, reference checking is skipped.
    """

    report = OrphanReport()
    for entry in inventory.values():
        if not entry.images:
            report.sources_without_image.append(entry)
        elif not entry.has_source:
            report.images_without_source.append(entry)
        elif referenced_ids is not None and entry.id_stem not in referenced_ids:
            report.unreferenced.append(entry)
    return report


def structured_category(id_stem: str) -> AssetCategory:
    """Category of a structured asset id.

    Raises:
        UnsafeIdentifierError: If ``id_stem`` is unsafe or not a drawio-/mindmap- id
    """
    validate_identifier(id_stem)
    for category in STRUCTURED_CATEGORIES:
        if classify_source(f"{id_stem}.{category.source_extension}", category) == id_stem:
            return category
    raise UnsafeIdentifierError(id_stem)


def remove_structured_asset(store: FileAssetStore, id_stem: str) -> CleanupReport:
    """Delete the source payload and every rendering of one structured asset.

    Raises:
        UnsafeIdentifierError: If ``id_stem`` is not a safe structured id
        AssetNotFoundError: If the store holds no file for ``id_stem``
        StorageError: If a deletion fails
    """
    category = structured_category(id_stem)
    report = CleanupReport()

    source_name = f"{id_stem}.{category.source_extension}"
    if source_name in store.list_structured_sources(category):
        report.freed_bytes += store.remove_structured_source(category, id_stem)
        report.deleted.append(f"{category.store_dir}/{source_name}")

    for name in store.list_assets():
        info = classify(name)
        if info is None or info.category is not category or info.id_stem != id_stem:
            continue
        report.freed_bytes += store.remove_asset(name)
        report.deleted.append(name)

    if not report.deleted:
        raise AssetNotFoundError(id_stem)
    return report


def clean_unreferenced(
    store: FileAssetStore, inventory: dict[str, StructuredAsset], referenced_ids: set[str]
) -> CleanupReport:
    """Remove every structured asset in ``inventory`` not in ``referenced_ids``.

    A failure on one asset is logged and recorded in ``failed``; the
    remaining assets are still removed.
    """

    report = CleanupReport()
    for entry in inventory.values():
        if entry.id_stem in referenced_ids:
            continue
        try:
            removed = remove_structured_asset(store, entry.id_stem)
        except NotePackError as exc:
            logger.warning("cleanup: skipped %s (%s)", entry.id_stem, exc)
            report.failed.append(entry.id_stem)
            continue
        report.deleted.extend(removed.deleted)
        report.freed_bytes += removed.freed_bytes
    logger.info(
        "Cleanup removed %d file(s), %d byte(s) freed", len(report.deleted), report.freed_bytes
    )
    return report


__all__ = [
    "CleanupReport",
    "OrphanReport",
    "StructuredAsset",
    "clean_unreferenced",
    "find_orphans",
    "remove_structured_asset",
    "scan_structured_assets",
    "structured_category",
]
