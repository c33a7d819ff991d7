from __future__ import annotations

import re
from collections.abc import Mapping

from notepack.model.assets import Occurrence
from notepack.model.options import DEFAULT_PUBLIC_PREFIX

ARCHIVE_ASSETS_DIR = "assets"
RELATIVE_ASSETS_PREFIX = f"./{ARCHIVE_ASSETS_DIR}/"


def replace_tokens(text: str, replacements: Mapping[str, str]) -> str:
    """Replace every key of ``replacements`` in a single left-to-right pass.

    Keys are tried longest first at each position, so a key that is a
    prefix of another never clips the longer one. Replaced text is never
    rescanned.
    """

    keys = [k for k in replacements if k]
    if not text or not keys:
        return text
    keys.sort(key=lambda k: (-len(k), k))
    pattern = re.compile("|".join(re.escape(k) for k in keys))
    return pattern.sub(lambda m: replacements[m.group(0)], text)


def relative_asset_path(filename: str) -> str:
    return f"{RELATIVE_ASSETS_PREFIX}{filename}"


def rewrite_to_archive_paths(markdown: str, occurrences: list[Occurrence]) -> str:
    """Point every occurrence's raw URL at ``./assets/<filename>``."""

    replacements = {occ.raw_url: relative_asset_path(occ.filename) for occ in occurrences}
    return replace_tokens(markdown, replacements)


def normalize_asset_urls(markdown: str, public_prefix: str = DEFAULT_PUBLIC_PREFIX) -> str:
    """Bring absolute and archive-relative asset URLs back to the bare prefix form.

    - https://host:port/uploads/x.png -> /uploads/x.png
    - ./assets/x.png -> /uploads/x.png
    """

    absolute = re.compile(r"https?://[^/\s()]+" + re.escape(public_prefix))
    markdown = absolute.sub(lambda _m: public_prefix, markdown)
    return markdown.replace(RELATIVE_ASSETS_PREFIX, public_prefix)


__all__ = [
    "ARCHIVE_ASSETS_DIR",
    "RELATIVE_ASSETS_PREFIX",
    "normalize_asset_urls",
    "relative_asset_path",
    "replace_tokens",
    "rewrite_to_archive_paths",
]
