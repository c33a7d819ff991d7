"""Import an export archive as a new note with freshly named assets.

Every asset id found in the archive is re-minted so the import can never
collide with files already in the store; all references in the note are
rewritten to the new ids in one pass.
"""

from __future__ import annotations

import contextlib
import io
import logging
import shutil
import tempfile
import zipfile
from collections.abc import Callable
from pathlib import Path

from notepack.builder.event_logger import log_import_summary, log_soft_failure
from notepack.builder.packaging import NOTE_ENTRY, ORIGINAL_ENTRY
from notepack.errors import NotePackError, StructuralError, classify_os_error
from notepack.ids import mint_identifier, validate_member_name
from notepack.model.assets import STRUCTURED_CATEGORIES, AssetCategory, IdMapping, ImportResult
from notepack.model.options import StoreOptions
from notepack.parser.classify import classify, classify_source
from notepack.store.assets import AssetStore, sniff_source
from notepack.store.documents import DocumentStore
from notepack.transform.rewrite import ARCHIVE_ASSETS_DIR, normalize_asset_urls, replace_tokens

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "notepack-import-"

ProgressCallback = Callable[[str, dict[str, int | str]], None] | None
MappingKey = tuple[AssetCategory, str]


def _safe_emit(on_progress: ProgressCallback, event: str, payload: dict[str, int | str]) -> None:
    if on_progress is None:
        return
    with contextlib.suppress(Exception):
        on_progress(event, payload)


def extract_to_scratch(archive_bytes: bytes, scratch: Path) -> list[str]:
    """Validate every member name, then extract the archive into ``scratch``.

    Raises:
        StructuralError: If the bytes are not a readable ZIP archive
        UnsafeIdentifierError: If any member name is absolute or contains '..'
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(archive_bytes))
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        raise StructuralError("Invalid export archive: not a readable ZIP file", cause=exc) from exc
    with zf:
        names = zf.namelist()
        for name in names:
            validate_member_name(name)
        try:
            zf.extractall(scratch)
        except (zipfile.BadZipFile, EOFError, NotImplementedError) as exc:
            raise StructuralError("Invalid export archive: corrupt entry", cause=exc) from exc
    return names


def read_document(scratch: Path) -> str:
    """Return the note text, preferring the untouched original over note.md."""
    for entry in (ORIGINAL_ENTRY, NOTE_ENTRY):
        path = scratch / entry
        if path.is_file():
            break
    else:
        raise StructuralError(
            f"Invalid export archive: missing {ORIGINAL_ENTRY} or {NOTE_ENTRY}"
        )
    try:
        # decoded from bytes so CRLF line endings are kept
        text = path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise StructuralError(f"Invalid export archive: {entry} is not UTF-8 text", cause=exc) from exc
    if not text.strip():
        raise StructuralError(f"Invalid export archive: {entry} is empty")
    logger.debug("Using %s as document source", entry)
    return text


def import_assets(
    scratch: Path,
    store: AssetStore,
    result: ImportResult,
    on_progress: ProgressCallback = None,
) -> dict[MappingKey, IdMapping]:
    """Copy every classifiable file under assets/ into the store under a new id.

    Files sharing a stem and a category share one new id. The same stem
    under another category (drawio-x.gif next to drawio-x.svg) gets its own.
    """
    mappings: dict[MappingKey, IdMapping] = {}
    assets_dir = scratch / ARCHIVE_ASSETS_DIR
    if not assets_dir.is_dir():
        return mappings

    for path in sorted(assets_dir.iterdir()):
        if not path.is_file():
            continue
        info = classify(path.name)
        if info is None:
            result.skipped.append(path.name)
            log_soft_failure("import", path.name, "not a recognized image name")
            continue
        key = (info.category, info.id_stem)
        mapping = mappings.get(key)
        if mapping is None:
            mapping = IdMapping(
                old_id=info.id_stem,
                new_id=mint_identifier(info.category),
                category=info.category,
            )
            mappings[key] = mapping
        mapping.extensions.append(info.extension)
        new_name = store.write_asset(mapping.new_id, info.extension, path.read_bytes())
        logger.debug("Imported asset %s -> %s", path.name, new_name)
        _safe_emit(on_progress, "asset:imported", {"name": path.name, "new_name": new_name})
    return mappings


def import_sources(
    scratch: Path,
    store: AssetStore,
    mappings: dict[MappingKey, IdMapping],
    result: ImportResult,
    on_progress: ProgressCallback = None,
) -> None:
    """Copy source payloads whose id was remapped; orphaned payloads are ignored."""
    for category in STRUCTURED_CATEGORIES:
        source_dir = scratch / str(category.archive_dir)
        if not source_dir.is_dir():
            continue
        for path in sorted(source_dir.iterdir()):
            if not path.is_file():
                continue
            stem = classify_source(path.name, category)
            if stem is None:
                continue
            mapping = mappings.get((category, stem))
            if mapping is None:
                logger.debug("Ignoring orphaned source %s", path.name)
                continue
            data = path.read_bytes()
            if not sniff_source(category, data):
                result.skipped.append(path.name)
                log_soft_failure("import", path.name, f"not a {category.source_extension} payload")
                continue
            new_name = store.write_structured_source(category, mapping.new_id, data)
            logger.debug("Imported %s source %s -> %s", category.value, path.name, new_name)
            _safe_emit(on_progress, "source:imported", {"name": path.name, "new_name": new_name})


def rewrite_document(
    markdown: str, mappings: dict[MappingKey, IdMapping], public_prefix: str
) -> str:
    """Normalize asset URLs, then swap every old id for its new id.

    When a stem is mapped under two categories, the bare stem follows the
    structured mapping.
    """
    markdown = normalize_asset_urls(markdown, public_prefix)
    replacements: dict[str, str] = {}
    for mapping in sorted(mappings.values(), key=lambda m: m.category.is_structured):
        replacements.update(mapping.replacements())
    return replace_tokens(markdown, replacements)


def import_archive(
    archive_bytes: bytes,
    store: AssetStore,
    documents: DocumentStore,
    options: StoreOptions,
    *,
    on_progress: ProgressCallback = None,
    scratch_root: Path | None = None,
) -> ImportResult:
    """Import ``archive_bytes`` as a new document.

    Never raises: every failure is reported through the returned
    ImportResult, and the scratch directory (created below ``scratch_root``
    or the system temp dir) is removed on every path.
    """
    result = ImportResult(success=False)
    _safe_emit(on_progress, "import:start", {"bytes": len(archive_bytes)})
    scratch: Path | None = None
    try:
        scratch = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=scratch_root))
        names = extract_to_scratch(archive_bytes, scratch)
        logger.debug("Extracted %d entries", len(names))
        _safe_emit(on_progress, "import:extracted", {"entries": len(names)})

        markdown = read_document(scratch)
        try:
            mappings = import_assets(scratch, store, result, on_progress)
            import_sources(scratch, store, mappings, result, on_progress)
        except OSError as exc:
            raise classify_os_error(exc) from exc
        result.mappings = mappings

        markdown = rewrite_document(markdown, mappings, options.public_prefix)
        result.document_handle = documents.create_document(markdown)
        result.success = True
        _safe_emit(
            on_progress,
            "import:finalized",
            {"document": str(result.document_handle), "assets": len(mappings)},
        )
    except NotePackError as exc:
        result.reason = str(exc)
        result.error_type = exc.error_type
        result.hint = exc.hint or None
    except OSError as exc:
        storage_error = classify_os_error(exc)
        result.reason = str(storage_error)
        result.error_type = storage_error.error_type
        result.hint = storage_error.hint or None
    except Exception as exc:
        logger.exception("Unexpected import failure")
        result.reason = f"Import failed: {type(exc).__name__}"
        result.error_type = "unknown"
    finally:
        if scratch is not None:
            shutil.rmtree(scratch, ignore_errors=True)

    log_import_summary(result)
    return result


def import_from_path(
    archive_path: Path,
    store: AssetStore,
    documents: DocumentStore,
    options: StoreOptions,
    *,
    on_progress: ProgressCallback = None,
) -> ImportResult:
    try:
        data = archive_path.read_bytes()
    except OSError as exc:
        storage_error = classify_os_error(exc)
        result = ImportResult(
            success=False,
            reason=str(storage_error),
            error_type=storage_error.error_type,
            hint=storage_error.hint or None,
        )
        log_import_summary(result)
        return result
    return import_archive(data, store, documents, options, on_progress=on_progress)


__all__ = [
    "SCRATCH_PREFIX",
    "extract_to_scratch",
    "import_archive",
    "import_assets",
    "import_from_path",
    "import_sources",
    "read_document",
    "rewrite_document",
]
