"""Exception types raised by notepack.

Structural, storage and unsafe-identifier errors abort an export or import.
Missing assets are soft failures: callers log them and carry on.
"""

from __future__ import annotations

import errno

from notepack.model.assets import AssetCategory


class NotePackError(Exception):
    """Base class for all notepack errors.

    ``str(error)`` is always safe to show to an end user: it never contains
    a traceback or a filesystem path.
    """

    error_type = "unknown"
    hint = ""


class StructuralError(NotePackError):
    """The archive or the document inside it is unusable."""

    error_type = "structural"

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class UnsafeIdentifierError(NotePackError):
    """An identifier or archive member name tries to escape its directory."""

    error_type = "invalid_identifier"

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Unsafe identifier rejected: {identifier!r}")


class AssetNotFoundError(NotePackError):
    """A referenced asset or source payload is absent from the store."""

    error_type = "asset_missing"

    def __init__(self, name: str, category: AssetCategory | None = None) -> None:
        self.name = name
        self.category = category
        if category is not None and category.is_structured:
            super().__init__(f"{category.value} source {name} not found")
        else:
            super().__init__(f"Asset {name} not found")


class StorageError(NotePackError):
    """Writing to or reading from the asset store failed."""

    def __init__(self, kind: str, message: str, hint: str, *, cause: OSError | None = None) -> None:
        self.kind = kind
        self.hint = hint
        self.cause = cause
        super().__init__(message)

    @property
    def error_type(self) -> str:  # type: ignore[override]
        return self.kind


class ArchiveWriteError(NotePackError):
    """The archive output stream failed while an export was in progress."""

    error_type = "archive_write"

    def __init__(self, title: str, *, cause: Exception | None = None) -> None:
        self.title = title
        self.cause = cause
        if cause is not None:
            super().__init__(f"Failed to write archive for {title!r}: {type(cause).__name__}")
        else:
            super().__init__(f"Failed to write archive for {title!r}")


_OS_ERROR_KINDS: dict[int, tuple[str, str, str]] = {
    errno.EACCES: (
        "permission",
        "Permission denied while writing to the asset store",
        "Check that the uploads directory is writable by the service user",
    ),
    errno.EPERM: (
        "permission",
        "Permission denied while writing to the asset store",
        "Check that the uploads directory is writable by the service user",
    ),
    errno.ENOENT: (
        "not_found",
        "A required directory does not exist",
        "Check that the uploads directory exists",
    ),
    errno.ENOSPC: (
        "disk_full",
        "Not enough disk space",
        "Free some disk space and try again",
    ),
    errno.EDQUOT: (
        "disk_full",
        "Disk quota exceeded",
        "Free some disk space and try again",
    ),
}


def classify_os_error(exc: OSError) -> StorageError:
    """Map an OSError to a user-facing StorageError by its errno."""

    kind, message, hint = _OS_ERROR_KINDS.get(
        exc.errno or 0,
        ("unknown", "Saving failed, please try again", ""),
    )
    return StorageError(kind, message, hint, cause=exc)


__all__ = [
    "ArchiveWriteError",
    "AssetNotFoundError",
    "NotePackError",
    "StorageError",
    "StructuralError",
    "UnsafeIdentifierError",
    "classify_os_error",
]
