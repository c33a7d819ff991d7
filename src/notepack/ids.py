from __future__ import annotations

import uuid

from notepack.errors import UnsafeIdentifierError
from notepack.model.assets import AssetCategory


def mint_identifier(category: AssetCategory) -> str:
    """Mint a fresh asset identifier for ``category``.

    Plain images get a bare uuid4; structured assets keep their category
    prefix (``drawio-<uuid4>``, ``mindmap-<uuid4>``) so the new name is
    classified the same way as the old one.
    """

    return f"{category.id_prefix}{uuid.uuid4()}"


def validate_identifier(identifier: str) -> str:
    """Reject identifiers that could address a path outside their directory."""

    if not identifier or ".." in identifier or "/" in identifier or "\\" in identifier:
        raise UnsafeIdentifierError(identifier)
    if "\x00" in identifier:
        raise UnsafeIdentifierError(identifier)
    return identifier


def validate_member_name(name: str) -> str:
    """Reject archive member names that are absolute or contain ``..``."""

    if not name or ".." in name or "\\" in name or name.startswith("/") or "\x00" in name:
        raise UnsafeIdentifierError(name)
    # Drive-qualified names such as "C:foo" are only meaningful on Windows
    if len(name) > 1 and name[1] == ":":
        raise UnsafeIdentifierError(name)
    return name


__all__ = ["mint_identifier", "validate_identifier", "validate_member_name"]
