"""Caller-side helpers for naming permission bits.

Example:
    >>> from bitperm.sdk import PermissionCatalog
    >>> catalog = PermissionCatalog()
    >>> catalog.define("read")
    1
"""

from . import permissions
from .permissions import (
    PermissionCatalog,
    PermissionCatalogError,
    PermissionCollisionError,
    PermissionEntry,
    UnknownPermissionError,
    load_catalog,
    parse_literal,
)

__all__ = [
    "PermissionCatalog",
    "PermissionCatalogError",
    "PermissionCollisionError",
    "PermissionEntry",
    "UnknownPermissionError",
    "load_catalog",
    "parse_literal",
    "permissions",
]
