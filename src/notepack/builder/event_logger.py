"""Centralized logging for notepack export and import.

Progress callbacks drive the user-facing display; this module covers the
informative log lines used for debugging and for auditing soft failures.
"""

from __future__ import annotations

import logging

from notepack.model.assets import ExportSummary, ImportResult
from notepack.model.options import StoreOptions

logger = logging.getLogger(__name__)


def log_store_configuration(options: StoreOptions) -> None:
    logger.debug("Store configuration:")
    logger.debug("  Uploads path: %s", options.uploads_path)
    logger.debug("  Public prefix: %s", options.public_prefix)
    logger.debug("  Compression level: %d", options.compress_level)


def log_soft_failure(operation: str, name: str, reason: str) -> None:
    """Log a failure that omits one entry but lets the operation continue.

    Args:
        operation: "export" or "import"
        name: Asset or source payload that was skipped
        reason: Short description of why it was skipped
    """
    logger.warning("%s: skipped %s (%s)", operation, name, reason)


def log_export_summary(summary: ExportSummary) -> None:
    logger.info(
        "Export finished: %s, %d asset(s), %d source(s)",
        summary.title,
        len(summary.assets_added),
        len(summary.sources_added),
    )
    missing = len(summary.assets_missing) + len(summary.sources_missing)
    if missing:
        logger.warning("Export of %s omitted %d missing file(s)", summary.title, missing)


def log_import_summary(result: ImportResult) -> None:
    if result.success:
        logger.info(
            "Import finished: document %s, %d asset id(s) remapped",
            result.document_handle,
            len(result.mappings),
        )
    else:
        logger.error("Import failed (%s): %s", result.error_type, result.reason)


__all__ = [
    "log_export_summary",
    "log_import_summary",
    "log_soft_failure",
    "log_store_configuration",
]
