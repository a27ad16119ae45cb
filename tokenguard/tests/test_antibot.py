# -*- coding: utf-8 -*-
"""
Anti-bot orchestrator: limits, whitelist bypass, toggling, check ordering.

Reference deployment: supply=1_000_000, tx limit=500, wallet limit=1_000.
`funded` gives alice (not whitelisted) 1_000 through an exempt owner transfer.
"""
from __future__ import annotations

import pytest

from tokenguard import antibot, metrics
from tokenguard.antibot import AntiBotState, GateDecision
from tokenguard.errors import (InsufficientAllowance, InsufficientBalance,
                               InvalidAmount,
                               TransactionLimitExceeded,
                               WalletBalanceLimitExceeded)
from tokenguard.safe_uint import U256_MAX
from tokenguard.state import TokenState

from .conftest import TX_LIMIT, WALLET_LIMIT, event_names, make_token


# ---------------------------- limits ------------------------------------------


def test_transfer_at_exact_limit_succeeds(funded, alice, bob):
    funded.transfer(alice, bob, TX_LIMIT)
    assert funded.balance_of(bob) == TX_LIMIT


def test_transfer_one_over_limit_fails(funded, alice, bob):
    with pytest.raises(TransactionLimitExceeded) as ei:
        funded.transfer(alice, bob, TX_LIMIT + 1)
    assert ei.value.message == "Transaction limit exceeded : Please send lesser amounts."
    assert funded.balance_of(bob) == 0


def test_wallet_limit_boundary(funded, owner, alice, bob):
    funded.transfer(owner, bob, 600)
    funded.transfer(alice, bob, WALLET_LIMIT - 600)
    assert funded.balance_of(bob) == WALLET_LIMIT

    with pytest.raises(WalletBalanceLimitExceeded) as ei:
        funded.transfer(alice, bob, 1)
    assert ei.value.message == "Exceeding maximum wallet balance : Please send lesser amounts."
    assert funded.balance_of(bob) == WALLET_LIMIT


def test_non_whitelisted_600_fails(funded, alice, carol):
    with pytest.raises(TransactionLimitExceeded):
        funded.transfer(alice, carol, 600)


def test_whitelisted_sender_600_succeeds(token, owner, carol):
    token.transfer(owner, carol, 600)
    assert token.balance_of(carol) == 600


def test_whitelisted_sender_ignores_wallet_limit(token, owner, carol):
    token.transfer(owner, carol, WALLET_LIMIT * 5)
    assert token.balance_of(carol) == WALLET_LIMIT * 5


def test_whitelisted_recipient_ignores_limits(funded, owner, alice, bob):
    funded.add_to_whitelist(owner, [bob])
    funded.transfer(owner, bob, WALLET_LIMIT)
    funded.transfer(alice, bob, 1_000)
    assert funded.balance_of(bob) == WALLET_LIMIT + 1_000


def test_transfers_to_token_address_are_exempt(funded, alice, accounts):
    funded.transfer(alice, accounts["token"], 1_000)
    assert funded.balance_of(accounts["token"]) == 1_000


def test_self_transfer_counts_current_balance(funded, alice):
    # 1_000 + 1 > wallet limit even though the balance would not change
    with pytest.raises(WalletBalanceLimitExceeded):
        funded.transfer(alice, alice, 1)


def test_zero_transaction_limit_blocks_nonzero_transfers(funded, owner, alice, bob):
    funded.set_transaction_limit(owner, 0)
    with pytest.raises(TransactionLimitExceeded):
        funded.transfer(alice, bob, 1)
    assert funded.transfer(alice, bob, 0)


def test_disabled_protection_bypasses_limits(funded, owner, alice, bob):
    funded.toggle_anti_bot_protection(owner, False)
    funded.transfer(alice, bob, 1_000)
    assert funded.balance_of(bob) == 1_000


def test_gate_runs_before_balance_check(token, bob, carol):
    with pytest.raises(TransactionLimitExceeded):
        token.transfer(bob, carol, 600)


def test_allowance_checked_before_gate(funded, alice, bob, carol):
    with pytest.raises(InsufficientAllowance):
        funded.transfer_from(carol, alice, bob, 600)


def test_transfer_from_is_gated(funded, alice, bob, carol):
    funded.approve(alice, carol, 1_000)
    with pytest.raises(TransactionLimitExceeded):
        funded.transfer_from(carol, alice, bob, 600)
    assert funded.allowance(alice, carol) == 1_000


def test_burns_are_not_gated(funded, alice):
    funded.burn(alice, 1_000)
    assert funded.balance_of(alice) == 0


# ---------------------------- settings ----------------------------------------


def test_limit_setters_emit(token, owner):
    since = len(token.events)
    token.set_transaction_limit(owner, 42)
    token.set_wallet_balance_limit(owner, U256_MAX)
    assert token.get_transaction_limit() == 42
    assert token.get_wallet_balance_limit() == U256_MAX

    evs = token.get_logs(since=since)
    assert event_names(evs) == ["MaximumTransactionLimitUpdated", "MaximumWalletBalanceUpdated"]
    assert evs[0]["limit"] == 42 and evs[1]["limit"] == U256_MAX


def test_limit_must_be_u256(token, owner):
    with pytest.raises(InvalidAmount):
        token.set_transaction_limit(owner, -1)
    with pytest.raises(InvalidAmount):
        token.set_wallet_balance_limit(owner, U256_MAX + 1)


def test_toggle_to_current_value_only_emits(token, owner):
    before = token.snapshot()
    since = len(token.events)
    token.toggle_anti_bot_protection(owner, True)
    assert token.snapshot() == before
    (ev,) = token.get_logs(since=since)
    assert ev.name == "AntiBotProtectionUpdated" and ev["enabled"] is True


def test_toggle_reflected_immediately(token, owner):
    token.toggle_anti_bot_protection(owner, False)
    assert token.get_anti_bot_protection_status() is False
    token.toggle_anti_bot_protection(owner, True)
    assert token.get_anti_bot_protection_status() is True


def test_initial_state_follows_initializer(accounts):
    assert make_token(accounts, anti_bot=False).get_anti_bot_protection_status() is False


# ---------------------------- gate unit ---------------------------------------


def _state(**kw) -> TokenState:
    base = dict(
        address=b"\x0a" * 20,
        owner=b"\x0b" * 20,
        anti_bot_enabled=True,
        transaction_limit=10,
        wallet_balance_limit=20,
    )
    base.update(kw)
    return TokenState(**base)


def test_gate_decisions():
    st = _state()
    a, b = b"\x01" * 20, b"\x02" * 20
    assert antibot.check_transfer(st, a, b, 10) is GateDecision.PASSED
    assert antibot.check_transfer(st, st.owner, b, 10_000) is GateDecision.EXEMPT
    assert antibot.check_transfer(st, a, st.address, 10_000) is GateDecision.EXEMPT
    st.anti_bot_enabled = False
    assert antibot.check_transfer(st, a, b, 10_000) is GateDecision.DISABLED
    assert antibot.machine_state(st) is AntiBotState.DISABLED


def test_gate_checks_transaction_limit_before_wallet_limit():
    st = _state()
    st.balances[b"\x02" * 20] = 20
    with pytest.raises(TransactionLimitExceeded):
        antibot.check_transfer(st, b"\x01" * 20, b"\x02" * 20, 11)
    with pytest.raises(WalletBalanceLimitExceeded):
        antibot.check_transfer(st, b"\x01" * 20, b"\x02" * 20, 1)


def test_gate_decisions_are_counted(funded, owner, alice, bob):
    funded.transfer(alice, bob, 1)
    with pytest.raises(TransactionLimitExceeded):
        funded.transfer(alice, bob, 501)
    funded.transfer(owner, bob, 1)

    assert metrics.sample("tokenguard_gate_decisions_total", decision="passed") == 1
    assert metrics.sample("tokenguard_gate_decisions_total", decision="TransactionLimitExceeded") == 1
    # the funding transfer in the fixture was exempt too
    assert metrics.sample("tokenguard_gate_decisions_total", decision="exempt") == 2


def test_gate_counts_evaluations_even_when_the_balance_check_reverts(token, bob, carol):
    with pytest.raises(InsufficientBalance):
        token.transfer(bob, carol, 10)

    assert metrics.sample("tokenguard_gate_decisions_total", decision="passed") == 1
    assert metrics.sample("tokenguard_calls_total", op="transfer", result="InsufficientBalance") == 1
    assert token.balance_of(carol) == 0
