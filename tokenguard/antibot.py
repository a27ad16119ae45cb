"""
tokenguard.antibot — the anti-bot orchestrator.

A two-state machine (``Disabled`` / ``Enabled``) plus the policy gate that
every transfer-class call passes through before touching the ledger.

Gate order when enabled (first failing check wins):

    1. either party whitelisted            -> EXEMPT (skip all limits)
    2. amount > transaction_limit          -> TransactionLimitExceeded
    3. balance(to) + amount > wallet_limit -> WalletBalanceLimitExceeded
    4.                                      -> PASSED

When disabled the gate answers ``DISABLED`` without reading any policy state.
The wallet check uses the literal formula, so a self-transfer counts the
sender's current balance plus the amount.
"""

from __future__ import annotations

from enum import Enum

from . import whitelist
from .errors import TransactionLimitExceeded, WalletBalanceLimitExceeded
from .events import EV_ANTIBOT_UPDATED
from .ownable import require_owner
from .state import TokenState


class AntiBotState(str, Enum):
    DISABLED = "Disabled"
    ENABLED = "Enabled"


class GateDecision(str, Enum):
    """Outcome of a gate evaluation that let the transfer through."""
    DISABLED = "disabled"
    EXEMPT = "exempt"
    PASSED = "passed"


def status(state: TokenState) -> bool:
    return state.anti_bot_enabled


def machine_state(state: TokenState) -> AntiBotState:
    return AntiBotState.ENABLED if state.anti_bot_enabled else AntiBotState.DISABLED


def toggle(state: TokenState, caller: bytes, enabled: bool) -> None:
    """
    Owner-only. Setting the current value is allowed and still emits
    ``AntiBotProtectionUpdated``.
    """
    require_owner(state, caller)
    enabled = bool(enabled)
    if state.anti_bot_enabled != enabled:
        state.set_field("anti_bot_enabled", enabled)
    state.stage(EV_ANTIBOT_UPDATED, enabled=enabled)


def check_transfer(state: TokenState, frm: bytes, to: bytes, amount: int) -> GateDecision:
    """Evaluate the policy for a transfer of `amount` from `frm` to `to`."""
    if not state.anti_bot_enabled:
        return GateDecision.DISABLED

    if whitelist.is_whitelisted(state, frm) or whitelist.is_whitelisted(state, to):
        return GateDecision.EXEMPT

    if amount > state.transaction_limit:
        raise TransactionLimitExceeded(
            data={"amount": amount, "limit": state.transaction_limit},
        )

    resulting = state.balance(to) + amount
    if resulting > state.wallet_balance_limit:
        raise WalletBalanceLimitExceeded(
            data={"balance_after": resulting, "limit": state.wallet_balance_limit},
        )

    return GateDecision.PASSED


__all__ = ["AntiBotState", "GateDecision", "status", "machine_state", "toggle", "check_transfer"]
