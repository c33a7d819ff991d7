"""Export a note and every uploaded asset it references as one ZIP archive.

Archive layout::

    note.md                  note with asset URLs rewritten to ./assets/<file>
    note-original.md         note exactly as stored
    README.md                manifest
    assets/<file>            one entry per distinct referenced file
    drawio-source/<id>.xml   draw.io sources of referenced diagrams
    mindmap-source/<id>.json mind map sources of referenced mind maps
"""

from __future__ import annotations

import contextlib
import logging
import re
import shutil
import zipfile
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote

from notepack.builder.event_logger import log_export_summary, log_soft_failure
from notepack.errors import (
    ArchiveWriteError,
    AssetNotFoundError,
    UnsafeIdentifierError,
    classify_os_error,
)
from notepack.model.assets import DistinctFile, ExportSummary, ExtractedReferences
from notepack.model.options import StoreOptions
from notepack.parser.references import extract_references
from notepack.store.assets import AssetStore
from notepack.transform.rewrite import ARCHIVE_ASSETS_DIR, rewrite_to_archive_paths

logger = logging.getLogger(__name__)

NOTE_ENTRY = "note.md"
ORIGINAL_ENTRY = "note-original.md"
README_ENTRY = "README.md"
DEFAULT_TITLE = "note-export"

# Also C0 control characters and DEL
_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
_NON_ASCII = re.compile(r"[^\x00-\x7f]")

ProgressCallback = Callable[[str, dict[str, int | str]], None] | None


def _safe_emit(on_progress: ProgressCallback, event: str, payload: dict[str, int | str]) -> None:
    if on_progress is None:
        return
    with contextlib.suppress(Exception):
        on_progress(event, payload)


def safe_title(title: str | None) -> str:
    """Title with filesystem-illegal and control characters replaced by '_'."""
    return _ILLEGAL_FILENAME_CHARS.sub("_", (title or "").strip()) or DEFAULT_TITLE


def archive_filename(title: str | None) -> str:
    return f"{safe_title(title)}.zip"


def attachment_headers(title: str | None, suffix: str = ".zip") -> dict[str, str]:
    """HTTP headers for serving an export as a download.

    Content-Disposition carries both an ASCII fallback and an RFC 5987
    UTF-8 form so non-ASCII titles survive in every browser.
    """
    name = safe_title(title)
    ascii_name = _NON_ASCII.sub("_", name) + suffix
    utf8_name = quote(name, safe="!~*'()") + suffix
    return {
        "Content-Type": "application/zip",
        "Content-Disposition": (
            f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{utf8_name}"
        ),
    }


def build_readme(refs: ExtractedReferences, exported_at: datetime) -> str:
    structured = [r for r in refs.distinct_files.values() if r.category.is_structured]
    lines = [
        "# Export",
        "",
        "This archive contains:",
        "",
        f"- `{NOTE_ENTRY}` - the note, with image paths rewritten to relative paths",
        f"- `{ORIGINAL_ENTRY}` - the note as stored, with its original URLs",
        f"- `{ARCHIVE_ASSETS_DIR}/` - every referenced image ({len(refs.distinct_files)} file(s))",
    ]
    categories = sorted({r.category for r in structured}, key=lambda c: c.value)
    for category in categories:
        lines.append(
            f"- `{category.archive_dir}/` - {category.value} source files, editable again after import"
        )
    lines += [
        "",
        "## Usage",
        "",
        f"1. Unpack the archive and open `{NOTE_ENTRY}` in any Markdown editor.",
        "2. Import the archive to restore the note with all of its images.",
        "",
        f"Exported at: {exported_at.isoformat()}",
        "",
    ]
    return "\n".join(lines)


def _add_asset(
    zf: zipfile.ZipFile,
    store: AssetStore,
    record: DistinctFile,
    options: StoreOptions,
    summary: ExportSummary,
    on_progress: ProgressCallback,
) -> None:
    arcname = f"{ARCHIVE_ASSETS_DIR}/{record.filename}"
    try:
        src = store.open_asset(record.filename)
    except (AssetNotFoundError, UnsafeIdentifierError) as exc:
        log_soft_failure("export", record.filename, str(exc))
        summary.assets_missing.append(record.filename)
        _safe_emit(on_progress, "asset:missing", {"name": record.filename})
        return
    except OSError as exc:
        raise classify_os_error(exc) from exc
    with src, zf.open(arcname, "w") as dest:
        shutil.copyfileobj(src, dest, options.chunk_size)
    logger.debug("Added %s", arcname)
    summary.assets_added.append(record.filename)
    _safe_emit(on_progress, "asset:added", {"name": record.filename})


def _add_source(
    zf: zipfile.ZipFile,
    store: AssetStore,
    record: DistinctFile,
    options: StoreOptions,
    summary: ExportSummary,
    on_progress: ProgressCallback,
) -> None:
    category = record.category
    name = f"{record.structured_id}.{category.source_extension}"
    arcname = f"{category.archive_dir}/{name}"
    try:
        src = store.open_structured_source(category, str(record.structured_id))
    except (AssetNotFoundError, UnsafeIdentifierError) as exc:
        log_soft_failure("export", name, str(exc))
        summary.sources_missing.append(name)
        _safe_emit(on_progress, "source:missing", {"name": name})
        return
    except OSError as exc:
        raise classify_os_error(exc) from exc
    with src, zf.open(arcname, "w") as dest:
        shutil.copyfileobj(src, dest, options.chunk_size)
    logger.debug("Added %s", arcname)
    summary.sources_added.append(name)
    _safe_emit(on_progress, "source:added", {"name": name})


def build_archive(
    markdown: str,
    title: str | None,
    sink: BinaryIO,
    store: AssetStore,
    options: StoreOptions,
    *,
    on_progress: ProgressCallback = None,
    exported_at: datetime | None = None,
) -> ExportSummary:
    """Stream an export archive of ``markdown`` into ``sink``.

    Missing assets and source payloads are logged and left out. Returns
    once the central directory has been written and ``sink`` flushed.

    Raises:
        ArchiveWriteError: If writing to ``sink`` fails
        StorageError: If reading from the asset store fails for a reason
            other than a missing file
    """
    title = title or DEFAULT_TITLE
    refs = extract_references(markdown, options.public_prefix)
    rewritten = rewrite_to_archive_paths(markdown, refs.occurrences)
    summary = ExportSummary(
        title=title,
        filename=archive_filename(title),
        occurrences=len(refs.occurrences),
    )
    _safe_emit(
        on_progress,
        "export:start",
        {"title": title, "assets": len(refs.distinct_files), "occurrences": len(refs.occurrences)},
    )

    try:
        with zipfile.ZipFile(
            sink, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=options.compress_level
        ) as zf:
            zf.writestr(NOTE_ENTRY, rewritten)
            zf.writestr(ORIGINAL_ENTRY, markdown)
            zf.writestr(
                README_ENTRY,
                build_readme(refs, exported_at or datetime.now(timezone.utc)),
            )

            for record in refs.distinct_files.values():
                _add_asset(zf, store, record, options, summary, on_progress)

            # Two renderings of one diagram share a single source payload
            seen_sources: set[str] = set()
            for record in refs.distinct_files.values():
                if not record.category.is_structured or record.structured_id in seen_sources:
                    continue
                seen_sources.add(str(record.structured_id))
                _add_source(zf, store, record, options, summary, on_progress)

        flush = getattr(sink, "flush", None)
        if callable(flush):
            flush()
    except (OSError, ValueError) as exc:
        logger.error("Archive write failed for %s: %s", title, exc)
        raise ArchiveWriteError(title, cause=exc) from exc

    _safe_emit(
        on_progress,
        "export:finalized",
        {"assets": len(summary.assets_added), "missing": len(summary.assets_missing)},
    )
    log_export_summary(summary)
    return summary


def export_to_path(
    markdown: str,
    title: str | None,
    out_path: Path,
    store: AssetStore,
    options: StoreOptions,
    *,
    on_progress: ProgressCallback = None,
) -> ExportSummary:
    """Write an export archive to ``out_path``; a partial file is removed on failure."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with out_path.open("wb") as fh:
            return build_archive(markdown, title, fh, store, options, on_progress=on_progress)
    except Exception:
        with contextlib.suppress(OSError):
            out_path.unlink()
        raise


__all__ = [
    "DEFAULT_TITLE",
    "NOTE_ENTRY",
    "ORIGINAL_ENTRY",
    "README_ENTRY",
    "archive_filename",
    "attachment_headers",
    "build_archive",
    "build_readme",
    "export_to_path",
    "safe_title",
]
