"""
tokenguard.address — address coercion and the null address.

Addresses are raw 20-byte ``bytes`` inside the ledger. Public entry points also
accept hex strings (with or without "0x") and normalize them here, so state maps
are always keyed by the same representation.

Design notes
------------
- Only the byte length is enforced; no checksum casing is required.
- The null address (twenty zero bytes) is a valid *value* here. Whether it is
  acceptable for a given role (recipient, spender, owner) is decided by the
  ledger and ownership modules, which raise the dedicated ``ZeroAddress*``
  errors.
"""

from __future__ import annotations

import hashlib
from typing import Iterable, List, Union

from .errors import InvalidAddress

ADDRESS_LEN = 20

ZERO_ADDRESS: bytes = b"\x00" * ADDRESS_LEN

AddressLike = Union[bytes, bytearray, memoryview, str]


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_address(value: AddressLike) -> bytes:
    """
    Coerce `value` to a 20-byte address.

    - If str, interpret as hex (with or without '0x').
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
    elif isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) != ADDRESS_LEN * 2:
            raise InvalidAddress(data={"value": value})
        try:
            raw = bytes.fromhex(h)
        except ValueError as e:
            raise InvalidAddress(data={"value": value}) from e
    else:
        raise InvalidAddress(data={"type": type(value).__name__})
    if len(raw) != ADDRESS_LEN:
        raise InvalidAddress(data={"len": len(raw)})
    return raw


def to_addresses(values: Iterable[AddressLike]) -> List[bytes]:
    """Normalize a batch, preserving order and duplicates."""
    if isinstance(values, (str, bytes, bytearray)):
        raise InvalidAddress("expected a list of addresses, got a single value")
    return [to_address(v) for v in values]


def is_zero(addr: bytes) -> bool:
    return addr == ZERO_ADDRESS


def to_hex(addr: Union[bytes, bytearray, memoryview]) -> str:
    """Encode an address as 0x-prefixed lowercase hex."""
    return "0x" + bytes(addr).hex()


def derive_address(tag: str) -> bytes:
    """
    Produce a stable 20-byte address from a tag (SHA3-256, first 20 bytes).

    Used for local token instances and test accounts; not a key derivation.
    """
    return hashlib.sha3_256(tag.encode("utf-8")).digest()[:ADDRESS_LEN]


__all__ = [
    "ADDRESS_LEN",
    "ZERO_ADDRESS",
    "AddressLike",
    "to_address",
    "to_addresses",
    "is_zero",
    "to_hex",
    "derive_address",
]
