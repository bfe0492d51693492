"""Permission sets packed into a single 256-bit unsigned integer.

Example:
    >>> from bitperm import check, grant, revoke
    >>> user = grant(0, 0b011)
    >>> check(user, 0b001)
    True
    >>> revoke(user, 0b010)
    1
"""

from .core.permission_set import (
    NO_PERMISSION,
    UINT256_BITS,
    UINT256_MAX,
    PermissionRangeError,
    PermissionSet,
    check,
    grant,
    revoke,
)

__version__ = "0.1.0"

__all__ = [
    "NO_PERMISSION",
    "UINT256_BITS",
    "UINT256_MAX",
    "PermissionRangeError",
    "PermissionSet",
    "check",
    "grant",
    "revoke",
]
