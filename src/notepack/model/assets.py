"""Asset data structures shared by extraction, packaging and unpacking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class AssetCategory(Enum):
    """Asset category derived from an uploaded file's name."""

    PLAIN_IMAGE = "image"
    DRAWIO = "drawio"  # rendered draw.io diagram with an XML source
    MINDMAP = "mindmap"  # rendered mind map with a JSON source

    @property
    def is_structured(self) -> bool:
        return self is not AssetCategory.PLAIN_IMAGE

    @property
    def id_prefix(self) -> str:
        """Fixed prefix of minted identifiers ("" for plain images)."""
        return "" if self is AssetCategory.PLAIN_IMAGE else f"{self.value}-"

    @property
    def source_extension(self) -> str | None:
        return _SOURCE_EXTENSIONS.get(self)

    @property
    def store_dir(self) -> str | None:
        """Subdirectory of the asset store holding source payloads."""
        return self.value if self.is_structured else None

    @property
    def archive_dir(self) -> str | None:
        """Directory inside an export archive holding source payloads."""
        return f"{self.value}-source" if self.is_structured else None


_SOURCE_EXTENSIONS = {
    AssetCategory.DRAWIO: "xml",
    AssetCategory.MINDMAP: "json",
}

STRUCTURED_CATEGORIES: tuple[AssetCategory, ...] = (AssetCategory.DRAWIO, AssetCategory.MINDMAP)


@dataclass(frozen=True, slots=True)
class ClassifiedName:
    category: AssetCategory
    id_stem: str
    extension: str  # as written in the filename, case preserved


@dataclass(frozen=True, slots=True)
class Occurrence:
    # Exact substring found in the note (may carry a query string)
    raw_url: str
    filename: str


@dataclass(frozen=True, slots=True)
class DistinctFile:
    filename: str
    category: AssetCategory
    structured_id: str | None = None


@dataclass(slots=True)
class ExtractedReferences:
    occurrences: list[Occurrence] = field(default_factory=list)
    # filename -> record, insertion order follows first occurrence
    distinct_files: dict[str, DistinctFile] = field(default_factory=dict)


@dataclass(slots=True)
class IdMapping:
    """Old -> new identifier translation for one asset id stem."""

    old_id: str
    new_id: str
    category: AssetCategory
    extensions: list[str] = field(default_factory=list)

    def replacements(self) -> dict[str, str]:
        pairs = {f"{self.old_id}.{ext}": f"{self.new_id}.{ext}" for ext in self.extensions}
        pairs[self.old_id] = self.new_id
        return pairs


@dataclass(slots=True)
class ExportSummary:
    title: str
    filename: str
    occurrences: int = 0
    assets_added: list[str] = field(default_factory=list)
    assets_missing: list[str] = field(default_factory=list)
    sources_added: list[str] = field(default_factory=list)
    sources_missing: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ImportResult:
    success: bool
    document_handle: str | None = None
    reason: str | None = None
    error_type: str | None = None
    hint: str | None = None
    # keyed by (category, old id stem); one stem may appear under two categories
    mappings: dict[tuple[AssetCategory, str], IdMapping] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    def mapping_for(self, old_id: str, category: AssetCategory | None = None) -> IdMapping:
        """Mapping of ``old_id``; without a category, a structured mapping wins a tie."""
        if category is not None:
            return self.mappings[(category, old_id)]
        found = [m for (_, stem), m in self.mappings.items() if stem == old_id]
        if not found:
            raise KeyError(old_id)
        return max(found, key=lambda m: m.category.is_structured)


__all__ = [
    "STRUCTURED_CATEGORIES",
    "AssetCategory",
    "ClassifiedName",
    "DistinctFile",
    "ExportSummary",
    "ExtractedReferences",
    "IdMapping",
    "ImportResult",
    "Occurrence",
]
