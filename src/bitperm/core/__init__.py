"""Core permission bitmask operations."""

from .permission_set import (
    NO_PERMISSION,
    UINT256_BITS,
    UINT256_MAX,
    PermissionRangeError,
    PermissionSet,
    bit_positions,
    check,
    combine,
    grant,
    is_single_permission,
    permission_bit,
    revoke,
    to_uint256,
)

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
