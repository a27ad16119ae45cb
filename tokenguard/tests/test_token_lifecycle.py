# -*- coding: utf-8 -*-
"""
GuardedToken life cycle and call runner:
- two-phase initialization and the genesis events
- atomicity (failed calls leave state and the event log untouched)
- reentrancy, subscribers, and the before-transfer hook
"""
from __future__ import annotations

import threading

import pytest

from tokenguard import metrics
from tokenguard.address import ZERO_ADDRESS
from tokenguard.config import TokenConfig
from tokenguard.errors import (AlreadyInitialized, InvalidAddress,
                               InvalidAmount, InvalidMetadata, NotInitialized,
                               ReentrantCall, TransactionLimitExceeded,
                               ZeroAddressOwner, error_to_receipt_fields)
from tokenguard.token import GuardedToken

from .conftest import SUPPLY, TX_LIMIT, WALLET_LIMIT, event_names, make_token


# ---------------------------- initialization ----------------------------------


def test_genesis_events(token, owner, accounts):
    evs = list(token.events)
    assert event_names(evs) == ["OwnershipTransferred", "Transfer", "WhiteListUpdated", "Initialized"]
    assert [e.log_index for e in evs] == [0, 1, 2, 3]
    assert evs[0]["previous"] == ZERO_ADDRESS and evs[0]["new"] == owner
    assert evs[1]["from"] == ZERO_ADDRESS and evs[1]["to"] == owner and evs[1]["value"] == SUPPLY
    assert evs[2]["added"] is True and list(evs[2]["addresses"]) == [owner, accounts["token"]]
    assert evs[3]["version"] == 1


def test_policy_state_after_init(token):
    assert token.get_transaction_limit() == TX_LIMIT
    assert token.get_wallet_balance_limit() == WALLET_LIMIT
    assert token.get_anti_bot_protection_status() is True
    assert token.paused() is False
    assert token.is_initialized


def test_calls_before_init_fail(accounts, owner, alice):
    t = GuardedToken(accounts["token"])
    assert not t.is_initialized
    with pytest.raises(NotInitialized):
        t.balance_of(owner)
    with pytest.raises(NotInitialized):
        t.transfer(owner, alice, 1)
    with pytest.raises(NotInitialized):
        t.pause(owner)
    assert len(t.events) == 0


def test_second_initialize_fails(token, owner):
    with pytest.raises(AlreadyInitialized):
        token.initialize("X", "X", 1, 0, owner, 1, 1, False)
    assert token.symbol() == "GTK"
    assert len(token.events) == 4


@pytest.mark.parametrize(
    "kwargs, exc",
    [
        ({"decimals": 256}, InvalidMetadata),
        ({"decimals": -1}, InvalidMetadata),
        ({"name": 5}, InvalidMetadata),
        ({"owner": ZERO_ADDRESS}, ZeroAddressOwner),
        ({"owner": "0x1234"}, InvalidAddress),
        ({"total_supply": -5}, InvalidAmount),
        ({"anti_bot_protection": "yes"}, InvalidMetadata),
    ],
)
def test_initialize_validates(accounts, kwargs, exc):
    args = dict(
        name="T", symbol="T", total_supply=10, decimals=0, owner=accounts["owner"],
        transaction_limit=1, wallet_balance_limit=1, anti_bot_protection=True,
    )
    args.update(kwargs)
    t = GuardedToken(accounts["token"])
    with pytest.raises(exc):
        t.initialize(**args)
    # a failed initializer leaves the token uninitialized and silent
    assert not t.is_initialized
    assert len(t.events) == 0
    t.initialize("T", "T", 10, 0, accounts["owner"], 1, 1, True)
    assert t.total_supply() == 10


def test_null_token_address_rejected():
    with pytest.raises(InvalidAddress):
        GuardedToken(ZERO_ADDRESS)


def test_from_config(accounts):
    cfg = TokenConfig(owner=accounts["owner"], decimals=2, total_supply=10_000, transaction_limit=5, wallet_balance_limit=9)
    t = GuardedToken.from_config(cfg, accounts["token"])
    assert t.decimals() == 2
    assert t.balance_of(accounts["owner"]) == 10_000
    assert t.get_wallet_balance_limit() == 9


# ---------------------------- atomicity ---------------------------------------


def test_failed_call_changes_nothing(funded, alice, bob):
    before = funded.snapshot()
    n = len(funded.events)
    with pytest.raises(TransactionLimitExceeded):
        funded.transfer(alice, bob, 600)
    assert funded.snapshot() == before
    assert len(funded.events) == n


def test_unexpected_exception_reverts_partial_writes(accounts, owner, alice, bob):
    def boom(tok, frm, to, amount):
        raise RuntimeError("hook failed")

    t = make_token(accounts, before_token_transfer=boom)
    t.approve(owner, alice, 100)
    before = t.snapshot()
    n = len(t.events)
    with pytest.raises(RuntimeError):
        # the allowance is spent before the hook runs and must be restored
        t.transfer_from(alice, owner, bob, 10)
    assert t.snapshot() == before
    assert t.allowance(owner, alice) == 100
    assert len(t.events) == n
    assert metrics.sample("tokenguard_calls_total", op="transfer_from", result="error") == 1


def test_error_receipt_fields(funded, alice, bob):
    with pytest.raises(TransactionLimitExceeded) as ei:
        funded.transfer(alice, bob, 600)
    receipt = error_to_receipt_fields(ei.value)
    assert receipt["status"] == "REVERT"
    assert receipt["error"]["code"] == "TransactionLimitExceeded"
    assert receipt["error"]["data"] == {"amount": 600, "limit": TX_LIMIT}


# ---------------------------- reentrancy / hooks ------------------------------


def test_reentrant_call_from_hook_is_rejected(accounts, owner, alice, bob):
    seen = []

    def hook(tok, frm, to, amount):
        try:
            tok.transfer(owner, bob, 1)
        except ReentrantCall as err:
            seen.append(err.code)
        # reads are allowed while a call runs
        seen.append(tok.balance_of(bob))

    t = make_token(accounts, before_token_transfer=hook)
    t.transfer(owner, alice, 5)
    assert seen == ["ReentrantCall", 0]
    assert t.balance_of(alice) == 5
    assert t.balance_of(bob) == 0


def test_propagated_reentrant_error_aborts_outer_call(accounts, owner, alice):
    def hook(tok, frm, to, amount):
        tok.pause(owner)

    t = make_token(accounts, before_token_transfer=hook)
    with pytest.raises(ReentrantCall):
        t.transfer(owner, alice, 5)
    assert t.balance_of(alice) == 0
    assert not t.paused()


# ---------------------------- subscribers -------------------------------------


def test_subscribers_see_committed_batches(token, owner, alice):
    batches = []
    unsubscribe = token.subscribe(lambda batch: batches.append([e.name for e in batch]))

    token.approve(owner, alice, 3)
    with pytest.raises(TransactionLimitExceeded):
        token.transfer(alice, alice, 600)
    token.pause(owner)
    token.pause(owner)  # no-op, no batch
    unsubscribe()
    token.unpause(owner)

    assert batches == [["Approval"], ["Paused"]]


def test_subscriber_may_call_back_into_token(token, owner, alice, bob):
    def forward(batch):
        for e in batch:
            if e.name == "Transfer" and e["to"] == alice and e["value"] == 10:
                token.transfer(owner, bob, 1)

    token.subscribe(forward)
    token.transfer(owner, alice, 10)
    assert token.balance_of(bob) == 1


def test_failing_subscriber_does_not_undo_call(token, owner, alice, caplog):
    def bad(batch):
        raise ValueError("subscriber bug")

    token.subscribe(bad)
    with caplog.at_level("ERROR", logger="tokenguard"):
        token.transfer(owner, alice, 10)
    assert token.balance_of(alice) == 10
    assert any("subscriber failed" in r.getMessage() for r in caplog.records)


# ---------------------------- threads -----------------------------------------


def test_concurrent_transfers_conserve_supply(token, owner, accounts):
    token.toggle_anti_bot_protection(owner, False)
    targets = [accounts[n] for n in ("alice", "bob", "carol", "dave")]

    def worker(dst):
        for _ in range(50):
            token.transfer(owner, dst, 1)

    threads = [threading.Thread(target=worker, args=(d,)) for d in targets]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert all(token.balance_of(d) == 50 for d in targets)
    assert sum(token.snapshot()["balances"].values()) == SUPPLY
