"""Named permission catalogs for applications built on bitperm.

The core operations know nothing about names: a caller decides which bit
means what. :class:`PermissionCatalog` helps with that bookkeeping by
allocating bits sequentially, refusing to hand out the same bit or name
twice, and resolving ``READ|WRITE`` style expressions back to masks.

Example:
    >>> catalog = PermissionCatalog()
    >>> catalog.define("read")
    1
    >>> catalog.define("write")
    2
    >>> catalog.define_role("editor", "read", "write")
    3
    >>> catalog.names_in(catalog.parse("editor"))
    ['read', 'write']

Catalogs can also be loaded from YAML::

    permissions:
      - read
      - name: write
        description: Modify documents
      - name: admin
        position: 255
    roles:
      editor: [read, write]
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from ..core.permission_set import (
    NO_PERMISSION,
    UINT256_BITS,
    UINT256_MAX,
    PermissionRangeError,
    bit_positions,
    check,
    combine,
    grant,
    permission_bit,
    to_uint256,
)
from ..observability.loguru_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

__all__ = [
    "PermissionCatalog",
    "PermissionCatalogError",
    "PermissionCollisionError",
    "PermissionEntry",
    "UnknownPermissionError",
    "load_catalog",
    "parse_literal",
]

_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_.:-]*$")

log = get_logger("catalog")


class PermissionCatalogError(Exception):
    """Raised when a catalog definition or expression is invalid."""


class PermissionCollisionError(PermissionCatalogError):
    """Raised when a name or bit position is defined twice."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot define {name!r}: {reason}")


class UnknownPermissionError(PermissionCatalogError, KeyError):
    """Raised when a name is not defined in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown permission or role: {name!r}")

    def __str__(self) -> str:
        return str(self.args[0])


@dataclass(frozen=True)
class PermissionEntry:
    """A named permission (one bit) or role (OR of permissions)."""

    name: str
    value: int
    description: str = ""
    is_role: bool = False


class PermissionCatalog:
    """Ordered registry of named permissions and roles."""

    def __init__(self) -> None:
        self._entries: dict[str, PermissionEntry] = {}
        self._assigned = NO_PERMISSION
        self._owners: dict[int, str] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[PermissionEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def assigned(self) -> int:
        """Mask of every bit owned by a permission."""
        return self._assigned

    def define(self, name: str, *, description: str = "", position: int | None = None) -> int:
        """Define a permission and return its single-bit value.

        Parameters
        ----------
        name
            Permission name
        description
            Human readable description
        position
            Explicit bit position; the lowest free bit is used when omitted

        Raises
        ------
        PermissionCollisionError
            If the name or the bit is already taken
        PermissionRangeError
            If the position is outside the 256-bit range or no bit is free
        """
        self._ensure_new_name(name)

        if position is None:
            position = self._next_free_position()
        bit = permission_bit(position)

        if check(self._assigned, bit):
            raise PermissionCollisionError(name, f"bit {position} already assigned to {self._owners[position]!r}")

        self._assigned = grant(self._assigned, bit)
        self._owners[position] = name
        self._entries[name] = PermissionEntry(name=name, value=bit, description=description)
        log.debug("Defined permission", name=name, position=position)
        return bit

    def define_role(self, name: str, *members: str, description: str = "") -> int:
        """Define a role as the OR of existing permissions or roles.

        Roles own no bits of their own; they are flat combinations.
        """
        self._ensure_new_name(name)
        if not members:
            raise PermissionCatalogError(f"Role {name!r} needs at least one member")

        value = self.mask(*members)
        self._entries[name] = PermissionEntry(name=name, value=value, description=description, is_role=True)
        log.debug("Defined role", name=name, members=list(members))
        return value

    def get(self, name: str) -> PermissionEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise UnknownPermissionError(name) from None

    def value_of(self, name: str) -> int:
        return self.get(name).value

    def describe(self, name: str) -> str:
        """Return the human readable description for ``name``."""
        return self.get(name).description

    def mask(self, *names: str) -> int:
        """Return the OR of the named permissions and roles."""
        return combine(*(self.value_of(name) for name in names))

    def permissions(self) -> list[PermissionEntry]:
        return [entry for entry in self._entries.values() if not entry.is_role]

    def roles(self) -> list[PermissionEntry]:
        return [entry for entry in self._entries.values() if entry.is_role]

    def names_in(self, value: int) -> list[str]:
        """Return names of the permissions set in ``value``, lowest bit first.

        Bits without a name are skipped.
        """
        return [self._owners[position] for position in bit_positions(value) if position in self._owners]

    def roles_in(self, value: int) -> list[str]:
        """Return names of the roles fully contained in ``value``."""
        return [entry.name for entry in self.roles() if check(value, entry.value)]

    def unnamed_bits(self, value: int) -> int:
        """Return the bits of ``value`` that no permission owns."""
        return to_uint256(value) & ~self._assigned

    def parse(self, expression: str) -> int:
        """Resolve an expression such as ``"read|write|0x10"`` to a mask.

        Tokens are separated by ``|`` and may be names or integer literals
        (decimal, ``0x``, ``0b``, ``0o``). An empty expression is
        ``NO_PERMISSION``.
        """
        expression = expression.strip()
        if not expression:
            return NO_PERMISSION

        result = NO_PERMISSION
        for raw_token in expression.split("|"):
            token = raw_token.strip()
            if not token:
                raise PermissionCatalogError(f"Empty term in expression: {expression!r}")
            result = grant(result, self._resolve_token(token))
        return result

    def _resolve_token(self, token: str) -> int:
        if token[0].isdigit():
            return parse_literal(token)
        return self.value_of(token)

    def _ensure_new_name(self, name: str) -> None:
        if not isinstance(name, str) or not _NAME_PATTERN.match(name):
            raise PermissionCatalogError(f"Invalid permission name: {name!r}")
        if name in self._entries:
            raise PermissionCollisionError(name, "name already defined")

    def _next_free_position(self) -> int:
        free = UINT256_MAX & ~self._assigned
        if not free:
            raise PermissionRangeError(UINT256_BITS, "all permission bits are assigned")
        return (free & -free).bit_length() - 1

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PermissionCatalog:
        """Build a catalog from a ``{permissions: [...], roles: {...}}`` mapping."""
        if not isinstance(data, dict):
            raise PermissionCatalogError("Catalog document must be a mapping")

        unknown_keys = set(data) - {"permissions", "roles"}
        if unknown_keys:
            raise PermissionCatalogError(f"Unknown catalog sections: {sorted(unknown_keys)}")

        catalog = cls()

        permissions = data.get("permissions") or []
        if not isinstance(permissions, list):
            raise PermissionCatalogError("'permissions' must be a list")

        for item in permissions:
            if isinstance(item, str):
                catalog.define(item)
            elif isinstance(item, dict) and "name" in item:
                position = item.get("position")
                if position is not None and (isinstance(position, bool) or not isinstance(position, int)):
                    raise PermissionCatalogError(f"Position of {item['name']!r} must be an integer")
                if position is not None and not 0 <= position < UINT256_BITS:
                    raise PermissionCatalogError(
                        f"Position of {item['name']!r} must be between 0 and {UINT256_BITS - 1}, got {position}"
                    )
                catalog.define(
                    item["name"],
                    description=str(item.get("description") or ""),
                    position=position,
                )
            else:
                raise PermissionCatalogError(f"Invalid permission entry: {item!r}")

        roles = data.get("roles") or {}
        if not isinstance(roles, dict):
            raise PermissionCatalogError("'roles' must be a mapping")

        # Roles may reference roles defined later in the document
        pending = dict(roles)
        while pending:
            progressed = False
            for role_name, definition in list(pending.items()):
                members, description = _role_definition(role_name, definition)
                if all(member in catalog for member in members):
                    catalog.define_role(role_name, *members, description=description)
                    del pending[role_name]
                    progressed = True
            if not progressed:
                missing = sorted(
                    member
                    for role_name, definition in pending.items()
                    for member in _role_definition(role_name, definition)[0]
                    if member not in catalog and member not in pending
                )
                if missing:
                    raise UnknownPermissionError(missing[0])
                raise PermissionCatalogError(f"Circular role definitions: {sorted(pending)}")

        return catalog


def _role_definition(role_name: str, definition: Any) -> tuple[list[str], str]:
    if isinstance(definition, list):
        members, description = definition, ""
    elif isinstance(definition, dict):
        members, description = definition.get("members") or [], str(definition.get("description") or "")
    else:
        raise PermissionCatalogError(f"Invalid role definition for {role_name!r}: {definition!r}")

    if not isinstance(members, list) or not all(isinstance(member, str) for member in members):
        raise PermissionCatalogError(f"Role {role_name!r} members must be names")
    return list(members), description


def parse_literal(token: str) -> int:
    """Parse a decimal, ``0x``, ``0b`` or ``0o`` literal into a uint256 value."""
    try:
        number = int(token, 0)
    except ValueError:
        raise PermissionCatalogError(f"Invalid integer literal: {token!r}") from None
    return to_uint256(number)


def load_catalog(path: Path | str) -> PermissionCatalog:
    """Load a catalog from a YAML file.

    Parameters
    ----------
    path
        Path to YAML file

    Raises
    ------
    PermissionCatalogError
        If the document is not valid UTF-8 YAML or not a valid catalog
    OSError
        If the file cannot be read
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise PermissionCatalogError(f"Invalid YAML in {path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise PermissionCatalogError(f"Catalog {path} is not valid UTF-8: {exc}") from exc

    catalog = PermissionCatalog.from_mapping(data)
    log.debug("Loaded catalog", path=str(path), entries=len(catalog))
    return catalog
