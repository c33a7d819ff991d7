"""Store configuration for notepack export and import.

The asset store location and its public URL prefix are always passed in
explicitly; nothing in the core reads them from process state.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_PUBLIC_PREFIX = "/uploads/"


@dataclass
class StoreOptions:
    """Configuration shared by the packager and the unpacker."""

    # Directory holding uploaded files (drawio/ and mindmap/ live below it)
    uploads_path: Path

    # URL path under which uploads are served; only these references are packed
    public_prefix: str = DEFAULT_PUBLIC_PREFIX

    # zlib level for ZIP_DEFLATED entries
    compress_level: int = 6

    # Chunk size used when streaming asset bytes into the archive
    chunk_size: int = 64 * 1024

    @classmethod
    def from_cli(
        cls,
        *,
        uploads: str | Path,
        public_prefix: str = DEFAULT_PUBLIC_PREFIX,
        compress_level: int = 6,
    ) -> StoreOptions:
        """Build StoreOptions from CLI argument values.

        Raises:
            ValueError: If any argument has an invalid value
        """
        if not public_prefix or not public_prefix.startswith("/"):
            raise ValueError(f"Invalid public prefix '{public_prefix}'. It must start with '/'")
        if not public_prefix.endswith("/"):
            public_prefix = f"{public_prefix}/"

        if not 0 <= compress_level <= 9:
            raise ValueError(
                f"Invalid compression level {compress_level}. Valid values: 0-9"
            )

        return cls(
            uploads_path=Path(uploads),
            public_prefix=public_prefix,
            compress_level=compress_level,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization/logging."""
        return {
            "uploads_path": str(self.uploads_path),
            "public_prefix": self.public_prefix,
            "compress_level": self.compress_level,
            "chunk_size": self.chunk_size,
        }


__all__ = ["DEFAULT_PUBLIC_PREFIX", "StoreOptions"]
