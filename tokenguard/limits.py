"""
tokenguard.limits — per-transaction and per-wallet caps.

Both caps are plain u256 values on TokenState, independently settable by the
owner to anything in [0, U256_MAX]. Zero is legal and means that no non-exempt
transfer can pass that check. The anti-bot orchestrator reads them on every
gated transfer; they have no effect while protection is disabled.
"""

from __future__ import annotations

from .events import EV_TX_LIMIT_UPDATED, EV_WALLET_LIMIT_UPDATED
from .ownable import require_owner
from .safe_uint import require_u256
from .state import TokenState


def get_transaction_limit(state: TokenState) -> int:
    return state.transaction_limit


def get_wallet_balance_limit(state: TokenState) -> int:
    return state.wallet_balance_limit


def set_transaction_limit(state: TokenState, caller: bytes, limit: int) -> None:
    require_owner(state, caller)
    require_u256(limit, name="transaction_limit")
    state.set_field("transaction_limit", limit)
    state.stage(EV_TX_LIMIT_UPDATED, limit=limit)


def set_wallet_balance_limit(state: TokenState, caller: bytes, limit: int) -> None:
    require_owner(state, caller)
    require_u256(limit, name="wallet_balance_limit")
    state.set_field("wallet_balance_limit", limit)
    state.stage(EV_WALLET_LIMIT_UPDATED, limit=limit)


__all__ = [
    "get_transaction_limit",
    "get_wallet_balance_limit",
    "set_transaction_limit",
    "set_wallet_balance_limit",
]
