from __future__ import annotations

__all__ = [
    "IMAGE_EXTENSIONS",
    "classify",
    "classify_source",
    "extract_references",
    "referenced_structured_ids",
    "url_filename",
]

# Re-export primary functions from submodules (explicit alias marks intent for linters)
from .classify import IMAGE_EXTENSIONS as IMAGE_EXTENSIONS
from .classify import classify as classify
from .classify import classify_source as classify_source
from .references import extract_references as extract_references
from .references import referenced_structured_ids as referenced_structured_ids
from .references import url_filename as url_filename
