"""Permission sets encoded as 256-bit unsigned integer bitmasks.

Every permission occupies one bit of a 256-bit unsigned value. Bit ``i`` is
the ``(i + 1)``-th permission (value ``1 << i``), least significant first.
Roles are plain ORs of permissions and share the same representation.

The three operations below are pure, total over ``[0, 2**256 - 1]`` and use
a fixed number of bitwise operations::

    >>> READ, WRITE, EXECUTE = 1, 2, 4
    >>> grant(0, READ)
    1
    >>> revoke(READ | WRITE | EXECUTE, EXECUTE)
    3
    >>> check(3, READ | WRITE)
    True
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing import SupportsIndex

__all__ = [
    "NO_PERMISSION",
    "UINT256_BITS",
    "UINT256_MAX",
    "PermissionRangeError",
    "PermissionSet",
    "bit_positions",
    "check",
    "combine",
    "grant",
    "is_single_permission",
    "permission_bit",
    "revoke",
    "to_uint256",
]

UINT256_BITS = 256
UINT256_MAX = (1 << UINT256_BITS) - 1
NO_PERMISSION = 0


class PermissionRangeError(ValueError):
    """Raised when a value does not fit the unsigned 256-bit domain."""

    def __init__(self, value: int, reason: str = "") -> None:
        self.value = value
        msg = f"Value out of uint256 range: {value}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


def to_uint256(value: SupportsIndex) -> int:
    """Return ``value`` as a plain ``int`` inside the uint256 domain.

    Parameters
    ----------
    value
        Any integer-like object (``int``, ``IntFlag`` member,
        :class:`PermissionSet`). ``bool`` is rejected.

    Raises
    ------
    TypeError
        If ``value`` is not an integer
    PermissionRangeError
        If ``value`` is negative or wider than 256 bits
    """
    if isinstance(value, bool):
        raise TypeError("Permission values must be integers, not bool")

    try:
        number = operator.index(value)
    except TypeError:
        raise TypeError(f"Permission values must be integers, got {type(value).__name__}") from None

    if number < 0:
        raise PermissionRangeError(number, "negative")
    if number > UINT256_MAX:
        raise PermissionRangeError(number, f"wider than {UINT256_BITS} bits")

    return number


def check(permission: SupportsIndex, required_permission: SupportsIndex) -> bool:
    """Return ``True`` if every bit of ``required_permission`` is set in ``permission``.

    ``check(x, 0)`` is always ``True``. Multi-bit roles are checked in one
    call.
    """
    held = to_uint256(permission)
    required = to_uint256(required_permission)
    return (held & required) == required


def grant(permission: SupportsIndex, permission_to_add: SupportsIndex) -> int:
    """Return ``permission`` with every bit of ``permission_to_add`` set."""
    return to_uint256(permission) | to_uint256(permission_to_add)


def revoke(permission: SupportsIndex, permission_to_remove: SupportsIndex) -> int:
    """Return ``permission`` with every bit of ``permission_to_remove`` cleared.

    Bits that were never set stay cleared; revoking them is not an error.
    """
    return to_uint256(permission) & ~to_uint256(permission_to_remove)


def combine(*permissions: SupportsIndex) -> int:
    """Grant all ``permissions`` onto an empty set."""
    result = NO_PERMISSION
    for permission in permissions:
        result = grant(result, permission)
    return result


def permission_bit(position: int) -> int:
    """Return the single-bit value for bit ``position`` (0-based, LSB first)."""
    if not 0 <= position < UINT256_BITS:
        raise PermissionRangeError(position, f"bit position must be in [0, {UINT256_BITS})")
    return 1 << position


def is_single_permission(value: SupportsIndex) -> bool:
    """Return ``True`` if ``value`` has exactly one bit set."""
    number = to_uint256(value)
    return number != 0 and number & (number - 1) == 0


def bit_positions(value: SupportsIndex) -> list[int]:
    """Return the positions of all set bits in ascending order."""
    number = to_uint256(value)
    positions = []
    while number:
        lowest = number & -number
        positions.append(lowest.bit_length() - 1)
        number ^= lowest
    return positions


@dataclass(frozen=True, order=True)
class PermissionSet:
    """Immutable permission set value.

    Two sets with the same bit pattern are equal, hash alike and compare by
    their numeric value, so a set holding a higher bit sorts after one that
    does not.

    Example
    -------
    >>> admin = PermissionSet(7)
    >>> (admin - 4).value
    3
    >>> 2 in admin
    True
    """

    value: int = NO_PERMISSION

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", to_uint256(self.value))

    @classmethod
    def empty(cls) -> PermissionSet:
        return cls(NO_PERMISSION)

    @classmethod
    def full(cls) -> PermissionSet:
        return cls(UINT256_MAX)

    @classmethod
    def from_positions(cls, *positions: int) -> PermissionSet:
        """Build a set from bit positions."""
        return cls(combine(*(permission_bit(position) for position in positions)))

    def __index__(self) -> int:
        return self.value

    def __int__(self) -> int:
        return self.value

    def __bool__(self) -> bool:
        return self.value != NO_PERMISSION

    def __contains__(self, required: Any) -> bool:
        return check(self.value, required)

    def __or__(self, other: SupportsIndex) -> PermissionSet:
        return self.grant(other)

    def __sub__(self, other: SupportsIndex) -> PermissionSet:
        return self.revoke(other)

    def __repr__(self) -> str:
        return f"PermissionSet({self.to_hex()})"

    def has(self, required: SupportsIndex) -> bool:
        return check(self.value, required)

    def grant(self, other: SupportsIndex) -> PermissionSet:
        return PermissionSet(grant(self.value, other))

    def revoke(self, other: SupportsIndex) -> PermissionSet:
        return PermissionSet(revoke(self.value, other))

    def is_empty(self) -> bool:
        return self.value == NO_PERMISSION

    def positions(self) -> list[int]:
        return bit_positions(self.value)

    def to_hex(self) -> str:
        """Return the value as ``0x`` followed by 64 hex digits."""
        return f"0x{self.value:0{UINT256_BITS // 4}x}"

    def to_bin(self) -> str:
        return f"0b{self.value:b}"
