# -*- coding: utf-8 -*-
"""
tokenguard.ledger
=================

Ledger core: balances, allowances and total supply for the guarded token.

Deterministic, float-free bookkeeping over an explicit :class:`TokenState`.
The functions here do *not* consult the pause flag or the anti-bot policy;
the token facade calls them after those gates, in a fixed order:

    transfer       : require_endpoints -> [gate] -> move
    transfer_from  : require_endpoints -> spend_allowance -> [gate] -> move
    burn           : burn
    burn_from      : spend_allowance -> burn

Highlights
----------
- u256-checked math via :mod:`tokenguard.safe_uint` (no silent wrap).
- Events are staged on the state's journal:
    - Transfer { from, to, value }    (mint: from = ZERO, burn: to = ZERO)
    - Approval { owner, spender, value }
- ``UNLIMITED_ALLOWANCE`` (= U256_MAX) is never decremented by spends.

Public interface
----------------
balance_of(state, addr) -> int
allowance_of(state, owner, spender) -> int
require_endpoints(frm, to) -> None
move(state, frm, to, amount) -> None
spend_allowance(state, owner, spender, amount) -> None
approve(state, owner, spender, amount) -> None
increase_allowance(state, owner, spender, added) -> None
decrease_allowance(state, owner, spender, subtracted) -> None
burn(state, account, amount) -> None
mint(state, to, amount) -> None        # genesis only; the facade enforces once
"""

from __future__ import annotations

from .address import ZERO_ADDRESS, is_zero
from .errors import (InsufficientAllowance, InsufficientBalance,
                     ZeroAddressRecipient, ZeroAddressSender,
                     ZeroAddressSpender)
from .events import EV_APPROVAL, EV_TRANSFER
from .safe_uint import UNLIMITED_ALLOWANCE, u256_add, u256_sub
from .state import TokenState

# ------------------------------------------------------------------------------
# Views
# ------------------------------------------------------------------------------


def balance_of(state: TokenState, addr: bytes) -> int:
    return state.balance(addr)


def allowance_of(state: TokenState, owner: bytes, spender: bytes) -> int:
    return state.allowance(owner, spender)


# ------------------------------------------------------------------------------
# Transfers
# ------------------------------------------------------------------------------


def require_endpoints(frm: bytes, to: bytes) -> None:
    """Reject transfers from or to the null address."""
    if is_zero(frm):
        raise ZeroAddressSender()
    if is_zero(to):
        raise ZeroAddressRecipient()


def move(state: TokenState, frm: bytes, to: bytes, amount: int) -> None:
    """
    Debit `frm` and credit `to`. Emits Transfer even for a zero amount.
    """
    from_bal = state.balance(frm)
    if from_bal < amount:
        raise InsufficientBalance(data={"balance": from_bal, "amount": amount})

    if frm != to:
        state.set_balance(frm, u256_sub(from_bal, amount))
        state.set_balance(to, u256_add(state.balance(to), amount))

    state.stage(EV_TRANSFER, **{"from": frm, "to": to, "value": amount})


# ------------------------------------------------------------------------------
# Allowances
# ------------------------------------------------------------------------------


def _write_allowance(state: TokenState, owner: bytes, spender: bytes, amount: int) -> None:
    state.set_allowance(owner, spender, amount)
    state.stage(EV_APPROVAL, owner=owner, spender=spender, value=amount)


def approve(state: TokenState, owner: bytes, spender: bytes, amount: int) -> None:
    if is_zero(owner):
        raise ZeroAddressSender("ERC20: approve from the zero address")
    if is_zero(spender):
        raise ZeroAddressSpender()
    _write_allowance(state, owner, spender, amount)


def increase_allowance(state: TokenState, owner: bytes, spender: bytes, added: int) -> None:
    approve(state, owner, spender, u256_add(state.allowance(owner, spender), added))


def decrease_allowance(state: TokenState, owner: bytes, spender: bytes, subtracted: int) -> None:
    current = state.allowance(owner, spender)
    if current < subtracted:
        raise InsufficientAllowance(
            "ERC20: decreased allowance below zero",
            data={"allowance": current, "amount": subtracted},
        )
    approve(state, owner, spender, current - subtracted)


def spend_allowance(state: TokenState, owner: bytes, spender: bytes, amount: int) -> None:
    """
    Consume `amount` of `spender`'s allowance over `owner`'s balance.

    The unlimited sentinel is left untouched and no Approval is emitted for it.
    """
    current = state.allowance(owner, spender)
    if current == UNLIMITED_ALLOWANCE:
        return
    if current < amount:
        raise InsufficientAllowance(data={"allowance": current, "amount": amount})
    _write_allowance(state, owner, spender, u256_sub(current, amount))


# ------------------------------------------------------------------------------
# Supply
# ------------------------------------------------------------------------------


def mint(state: TokenState, to: bytes, amount: int) -> None:
    """
    Credit `to` and grow total supply. No permission check here; the facade
    only calls this from the one-time initializer.
    """
    if is_zero(to):
        raise ZeroAddressRecipient("ERC20: mint to the zero address")
    state.set_field("total_supply", u256_add(state.total_supply, amount))
    state.set_balance(to, u256_add(state.balance(to), amount))
    state.stage(EV_TRANSFER, **{"from": ZERO_ADDRESS, "to": to, "value": amount})


def burn(state: TokenState, account: bytes, amount: int) -> None:
    """Destroy `amount` from `account`, reducing total supply irreversibly."""
    if is_zero(account):
        raise ZeroAddressSender("ERC20: burn from the zero address")
    bal = state.balance(account)
    if bal < amount:
        raise InsufficientBalance(
            "ERC20: burn amount exceeds balance",
            data={"balance": bal, "amount": amount},
        )
    state.set_balance(account, u256_sub(bal, amount))
    state.set_field("total_supply", u256_sub(state.total_supply, amount))
    state.stage(EV_TRANSFER, **{"from": account, "to": ZERO_ADDRESS, "value": amount})


__all__ = [
    "balance_of",
    "allowance_of",
    "require_endpoints",
    "move",
    "approve",
    "increase_allowance",
    "decrease_allowance",
    "spend_allowance",
    "mint",
    "burn",
]
