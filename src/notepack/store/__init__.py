from __future__ import annotations

__all__ = [
    "AssetStore",
    "DocumentStore",
    "FileAssetStore",
    "FileDocumentStore",
    "sniff_source",
]

from .assets import AssetStore as AssetStore
from .assets import FileAssetStore as FileAssetStore
from .assets import sniff_source as sniff_source
from .documents import DocumentStore as DocumentStore
from .documents import FileDocumentStore as FileDocumentStore
