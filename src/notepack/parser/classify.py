from __future__ import annotations

import re

from notepack.model.assets import AssetCategory, ClassifiedName

IMAGE_EXTENSIONS: tuple[str, ...] = ("png", "jpg", "jpeg", "gif", "svg", "webp")

# Most specific first; stems are case-sensitive, extensions are not
_PATTERNS: tuple[tuple[AssetCategory, re.Pattern[str]], ...] = (
    (AssetCategory.DRAWIO, re.compile(r"^(?P<stem>drawio-[a-f0-9-]+)\.(?P<ext>(?i:png|svg))$")),
    (AssetCategory.MINDMAP, re.compile(r"^(?P<stem>mindmap-[a-f0-9-]+)\.(?P<ext>(?i:png|svg))$")),
    (
        AssetCategory.PLAIN_IMAGE,
        re.compile(r"^(?P<stem>.+)\.(?P<ext>(?i:" + "|".join(IMAGE_EXTENSIONS) + r"))$"),
    ),
)

_SOURCE_PATTERNS: dict[AssetCategory, re.Pattern[str]] = {
    AssetCategory.DRAWIO: re.compile(r"^(?P<stem>drawio-[a-f0-9-]+)\.(?i:xml)$"),
    AssetCategory.MINDMAP: re.compile(r"^(?P<stem>mindmap-[a-f0-9-]+)\.(?i:json)$"),
}


def classify(filename: str) -> ClassifiedName | None:
    """Recognize an uploaded file's category from its name.

    Returns None when the name has no recognized image extension.
    """

    for category, pattern in _PATTERNS:
        m = pattern.match(filename)
        if m:
            return ClassifiedName(category=category, id_stem=m.group("stem"), extension=m.group("ext"))
    return None


def classify_source(filename: str, category: AssetCategory) -> str | None:
    """Return the id stem of a structured source payload name, or None."""

    pattern = _SOURCE_PATTERNS.get(category)
    if pattern is None:
        return None
    m = pattern.match(filename)
    return m.group("stem") if m else None


__all__ = ["IMAGE_EXTENSIONS", "classify", "classify_source"]
