from __future__ import annotations

import re

from notepack.model.assets import AssetCategory, DistinctFile, ExtractedReferences, Occurrence
from notepack.model.options import DEFAULT_PUBLIC_PREFIX
from notepack.parser.classify import classify

# ![alt](url) or ![alt](url "title"); the url has no whitespace and no ')'
IMAGE_RE = re.compile(r'!\[(?P<alt>[^\]]*)\]\((?P<url>[^)\s]+)(?:\s+"[^"]*")?\)')


def url_filename(url: str) -> str:
    """Final path segment of ``url`` with query string and fragment removed."""

    clean = url.split("?", 1)[0].split("#", 1)[0]
    return clean.rsplit("/", 1)[-1]


def extract_references(
    markdown: str, public_prefix: str = DEFAULT_PUBLIC_PREFIX
) -> ExtractedReferences:
    """Collect uploaded-asset references from Markdown image syntax.

    Occurrences keep left-to-right order and every raw URL, including
    repeats; distinct files are keyed by filename in first-seen order.
    URLs outside ``public_prefix`` are ignored.
    """

    refs = ExtractedReferences()
    for m in IMAGE_RE.finditer(markdown or ""):
        url = m.group("url")
        if public_prefix not in url:
            continue
        filename = url_filename(url)
        if not filename:
            continue
        refs.occurrences.append(Occurrence(raw_url=url, filename=filename))
        if filename in refs.distinct_files:
            continue
        info = classify(filename)
        if info is None:
            refs.distinct_files[filename] = DistinctFile(filename, AssetCategory.PLAIN_IMAGE)
        else:
            refs.distinct_files[filename] = DistinctFile(
                filename,
                info.category,
                info.id_stem if info.category.is_structured else None,
            )
    return refs


def referenced_structured_ids(
    texts: list[str], public_prefix: str = DEFAULT_PUBLIC_PREFIX
) -> set[str]:
    """Ids of structured assets referenced by any of ``texts``."""

    ids: set[str] = set()
    for text in texts:
        for record in extract_references(text, public_prefix).distinct_files.values():
            if record.structured_id:
                ids.add(record.structured_id)
    return ids


__all__ = ["IMAGE_RE", "extract_references", "referenced_structured_ids", "url_filename"]
