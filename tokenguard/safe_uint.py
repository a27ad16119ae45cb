# -*- coding: utf-8 -*-
"""
tokenguard.safe_uint
====================

Checked unsigned-integer helpers for the token ledger.

Goals
-----
- **U256**-oriented arithmetic that never uses Python floats.
- **Checked** only: every helper fails fast with ``NumericOverflow`` instead of
  wrapping or clamping. A failed check aborts the whole call (the runner reverts
  the journal).
- Input validation is separate: values coming from callers are checked with
  :func:`require_u256`, which raises ``InvalidAmount``.
"""

from __future__ import annotations

from typing import Final

from .errors import InvalidAmount, NumericOverflow

U256_MAX: Final[int] = (1 << 256) - 1

# Allowance value that transfer_from / burn_from never decrement.
UNLIMITED_ALLOWANCE: Final[int] = U256_MAX


def is_u256(x: object) -> bool:
    """True iff x is an int (not bool) in [0, U256_MAX]."""
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= U256_MAX


def require_u256(x: object, *, name: str = "amount") -> int:
    """Return x unchanged, or raise InvalidAmount if it is outside the u256 domain."""
    if not is_u256(x):
        raise InvalidAmount(data={"field": name, "value": repr(x)})
    return x  # type: ignore[return-value]


def _assert_operands(x: int, y: int) -> None:
    if not (is_u256(x) and is_u256(y)):
        raise NumericOverflow("operand outside u256 domain", data={"x": repr(x), "y": repr(y)})


def u256_add(x: int, y: int) -> int:
    """Checked add: raise NumericOverflow on overflow."""
    _assert_operands(x, y)
    s = x + y
    if s > U256_MAX:
        raise NumericOverflow("u256 addition overflow")
    return s


def u256_sub(x: int, y: int) -> int:
    """Checked sub: raise NumericOverflow on underflow (y > x)."""
    _assert_operands(x, y)
    if y > x:
        raise NumericOverflow("u256 subtraction underflow")
    return x - y


def u256_mul(x: int, y: int) -> int:
    """Checked multiply; used when scaling whole-token amounts by 10**decimals."""
    _assert_operands(x, y)
    p = x * y
    if p > U256_MAX:
        raise NumericOverflow("u256 multiplication overflow")
    return p


__all__ = [
    "U256_MAX",
    "UNLIMITED_ALLOWANCE",
    "is_u256",
    "require_u256",
    "u256_add",
    "u256_sub",
    "u256_mul",
]
