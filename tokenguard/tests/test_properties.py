# -*- coding: utf-8 -*-
"""
Property tests (Hypothesis):
- sum of balances equals total supply after any sequence of calls
- whitelisted parties never fail on policy checks
- any failing call leaves the state and the event log unchanged
"""
from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from tokenguard.errors import (TokenError, TransactionLimitExceeded,
                               WalletBalanceLimitExceeded)
from tokenguard.token import GuardedToken

from .conftest import SUPPLY, _det_address

NAMES = ("owner", "alice", "bob", "carol")
ADDR = {n: _det_address(n) for n in NAMES}
TOKEN_ADDR = _det_address("token")


def _fresh(tx_limit: int = 500, wallet_limit: int = 1_000, anti_bot: bool = True) -> GuardedToken:
    t = GuardedToken(TOKEN_ADDR)
    t.initialize("P", "P", SUPPLY, 0, ADDR["owner"], tx_limit, wallet_limit, anti_bot)
    return t


actor = st.sampled_from(NAMES)
amount = st.integers(min_value=0, max_value=2_000)

op = st.one_of(
    st.tuples(st.just("transfer"), actor, actor, amount),
    st.tuples(st.just("approve"), actor, actor, amount),
    st.tuples(st.just("transfer_from"), actor, actor, actor, amount),
    st.tuples(st.just("burn"), actor, amount),
    st.tuples(st.just("burn_from"), actor, actor, amount),
    st.tuples(st.just("toggle_anti_bot_protection"), st.just("owner"), st.booleans()),
    st.tuples(st.just("add_to_whitelist"), st.just("owner"), st.lists(actor, max_size=3)),
    st.tuples(st.just("remove_from_whitelist"), st.just("owner"), st.lists(actor, max_size=3)),
    st.tuples(st.just("pause"), actor),
    st.tuples(st.just("unpause"), actor),
)


def _apply(token: GuardedToken, step) -> None:
    name, *args = step
    resolved = [
        [ADDR[a] for a in x] if isinstance(x, list) else ADDR.get(x, x) if isinstance(x, str) else x
        for x in args
    ]
    getattr(token, name)(*resolved)


@given(st.lists(op, max_size=30))
def test_supply_invariant_and_atomicity(steps):
    token = _fresh()
    for step in steps:
        before = token.snapshot()
        n_events = len(token.events)
        try:
            _apply(token, step)
        except TokenError:
            assert token.snapshot() == before
            assert len(token.events) == n_events
        snap = token.snapshot()
        assert sum(snap["balances"].values()) == snap["total_supply"]
        assert all(v > 0 for v in snap["balances"].values())


@given(
    tx_limit=st.integers(min_value=0, max_value=1_000),
    wallet_limit=st.integers(min_value=0, max_value=1_000),
    value=st.integers(min_value=0, max_value=SUPPLY),
    recipient_whitelisted=st.booleans(),
)
def test_whitelisted_transfers_never_hit_policy(tx_limit, wallet_limit, value, recipient_whitelisted):
    token = _fresh(tx_limit, wallet_limit)
    owner, alice, bob = ADDR["owner"], ADDR["alice"], ADDR["bob"]

    try:
        token.transfer(owner, alice, value)
        if recipient_whitelisted:
            token.add_to_whitelist(owner, [bob])
            token.transfer(alice, bob, value)
    except (TransactionLimitExceeded, WalletBalanceLimitExceeded) as err:  # pragma: no cover
        raise AssertionError(f"whitelisted transfer hit policy: {err.code}")

    assert token.balance_of(alice) == (0 if recipient_whitelisted else value)


@given(flag=st.booleans(), repeat=st.integers(min_value=1, max_value=3))
def test_toggle_to_current_value_is_idempotent(flag, repeat):
    token = _fresh(anti_bot=flag)
    before = token.snapshot()
    for _ in range(repeat):
        token.toggle_anti_bot_protection(ADDR["owner"], flag)
    assert token.snapshot() == before
