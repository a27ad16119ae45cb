# -*- coding: utf-8 -*-
"""
tokenguard.pausable
===================

Global pause switch for the guarded token.

Key Points
----------
- The paused flag is **global to the token** (single boolean on TokenState).
- Changing pause state requires the **Owner**.
- Emitted Events (on change only):
  * ``Paused``   : {"account": bytes}
  * ``Unpaused`` : {"account": bytes}
- Only balance-mutating calls check the flag; administrative calls ignore it.

Public API
----------
- ``is_paused(state) -> bool``
- ``require_not_paused(state) -> None``: raise ContractPaused if paused
- ``pause(state, caller) -> None``: set paused (owner only, no-op if already set)
- ``unpause(state, caller) -> None``: clear paused (owner only, no-op if clear)
"""
from __future__ import annotations

from .errors import ContractPaused
from .events import EV_PAUSED, EV_UNPAUSED
from .ownable import require_owner
from .state import TokenState

__all__ = [
    "is_paused",
    "require_not_paused",
    "pause",
    "unpause",
]


def is_paused(state: TokenState) -> bool:
    return state.paused


def require_not_paused(state: TokenState) -> None:
    if state.paused:
        raise ContractPaused()


def pause(state: TokenState, caller: bytes) -> None:
    require_owner(state, caller)
    if state.paused:
        return
    state.set_field("paused", True)
    state.stage(EV_PAUSED, account=caller)


def unpause(state: TokenState, caller: bytes) -> None:
    require_owner(state, caller)
    if not state.paused:
        return
    state.set_field("paused", False)
    state.stage(EV_UNPAUSED, account=caller)
