"""
tokenguard.whitelist — addresses exempt from the anti-bot policy.

Membership has two sources:

- the explicit set on ``TokenState.whitelist`` (owner-edited in batches), and
- two permanent members: the current owner and the token's own address.

The permanent members answer true regardless of the set, and removal batches
skip them silently, so no normal edit path can take them out. The null address
is skipped by both add and remove and is never a member (this also covers the
owner after renounce).

Every batch emits exactly one ``WhiteListUpdated {added, addresses}`` carrying
the caller's original list, skipped entries included.
"""

from __future__ import annotations

from typing import List, Sequence

from .address import is_zero
from .events import EV_WHITELIST_UPDATED
from .ownable import require_owner
from .state import TokenState


def is_permanent(state: TokenState, addr: bytes) -> bool:
    if is_zero(addr):
        return False
    return addr == state.owner or addr == state.address


def is_whitelisted(state: TokenState, addr: bytes) -> bool:
    if is_zero(addr):
        return False
    return is_permanent(state, addr) or addr in state.whitelist


def add(state: TokenState, caller: bytes, addresses: Sequence[bytes]) -> List[bytes]:
    """Owner-only batch add. Returns the entries actually applied."""
    require_owner(state, caller)
    applied = [a for a in addresses if not is_zero(a)]
    for addr in applied:
        state.whitelist_add(addr)
    state.stage(EV_WHITELIST_UPDATED, added=True, addresses=list(addresses))
    return applied


def remove(state: TokenState, caller: bytes, addresses: Sequence[bytes]) -> List[bytes]:
    """Owner-only batch remove. Returns the entries actually applied."""
    require_owner(state, caller)
    applied = [a for a in addresses if not is_zero(a) and not is_permanent(state, a)]
    for addr in applied:
        state.whitelist_discard(addr)
    state.stage(EV_WHITELIST_UPDATED, added=False, addresses=list(addresses))
    return applied


__all__ = ["is_permanent", "is_whitelisted", "add", "remove"]
