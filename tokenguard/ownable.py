# -*- coding: utf-8 -*-
"""
tokenguard.ownable
==================

Single-owner access control for the guarded token.

This module provides a focused owner surface over :class:`TokenState`:
- read the current owner (`get_owner`)
- set the owner once at genesis (`init_owner`)
- check that a caller is the owner (`require_owner`)
- transfer ownership to a new account (`transfer_ownership`)
- renounce ownership (`renounce_ownership`)

Events:
    - "OwnershipTransferred" args: {"previous": bytes, "new": bytes}

Safety notes
------------
- `transfer_ownership` rejects the null address; use `renounce_ownership`
  explicitly to leave the token without an owner.
- Renouncing is irreversible. Afterwards the owner is the null address, no
  caller can match it, and every owner-gated operation fails with NotOwner.
"""
from __future__ import annotations

from .address import ZERO_ADDRESS, is_zero
from .errors import NotOwner, ZeroAddressOwner
from .events import EV_OWNERSHIP_TRANSFERRED
from .state import TokenState

__all__ = [
    "get_owner",
    "init_owner",
    "require_owner",
    "transfer_ownership",
    "renounce_ownership",
]


def get_owner(state: TokenState) -> bytes:
    """Current owner, or the null address after renounce."""
    return state.owner


def _set_owner(state: TokenState, new_owner: bytes) -> None:
    previous = state.owner
    state.set_field("owner", new_owner)
    state.stage(EV_OWNERSHIP_TRANSFERRED, previous=previous, new=new_owner)


def init_owner(state: TokenState, owner: bytes) -> None:
    """Genesis assignment (previous owner is the null address)."""
    if is_zero(owner):
        raise ZeroAddressOwner()
    _set_owner(state, owner)


def require_owner(state: TokenState, caller: bytes) -> None:
    """
    Raise NotOwner unless `caller` equals the current owner.
    """
    if is_zero(state.owner) or state.owner != caller:
        raise NotOwner(data={"caller": "0x" + caller.hex()})


def transfer_ownership(state: TokenState, caller: bytes, new_owner: bytes) -> None:
    """
    Owner-only: transfer ownership to `new_owner` (must be non-null).
    """
    require_owner(state, caller)
    if is_zero(new_owner):
        raise ZeroAddressOwner()
    _set_owner(state, new_owner)


def renounce_ownership(state: TokenState, caller: bytes) -> None:
    """
    Owner-only: set the owner to the null address. Destructive and permanent.
    """
    require_owner(state, caller)
    _set_owner(state, ZERO_ADDRESS)
