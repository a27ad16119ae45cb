"""
tokenguard.token — the GuardedToken facade.

`GuardedToken` is the public entry point. It owns one :class:`TokenState`,
an :class:`EventLog`, and runs every call through a small atomic runner:

    lock -> reentrancy check -> trace scope -> journal.begin()
         -> body(state)
         -> commit + publish events   |   revert + re-raise
         -> metrics/logging
    notify subscribers (after the lock is released)

Two-phase life cycle
--------------------
A token starts ``Uninitialized``. Exactly one successful :meth:`initialize`
moves it to ``Initialized(state)``; every other call before that raises
NotInitialized, and a second initialize raises AlreadyInitialized.

Call order inside transfer-class operations
-------------------------------------------
    transfer       : paused -> endpoints -> hook -> gate -> balance
    transfer_from  : paused -> endpoints -> allowance -> hook -> gate -> balance
    burn           : paused -> balance
    burn_from      : paused -> allowance -> balance

Mutations take the acting address (`caller`) as their first argument. Reads
take no caller. Addresses may be 20-byte ``bytes`` or hex strings.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar, Union

from . import antibot, ledger, limits, metrics, ownable, pausable, whitelist
from . import logging as tlog
from .address import AddressLike, derive_address, is_zero, to_address, to_addresses
from .config import TokenConfig
from .errors import (AlreadyInitialized, InvalidAddress, InvalidMetadata,
                     NotInitialized, ReentrantCall, TokenError,
                     TransactionLimitExceeded, WalletBalanceLimitExceeded)
from .events import EV_INITIALIZED, Event, EventLog, Subscriber
from .safe_uint import require_u256
from .state import TokenState
from .version import INITIALIZER_VERSION

log = tlog.get_logger(__name__)

T = TypeVar("T")

# Called before the anti-bot gate of every transfer-class call with
# (token, from, to, amount). Raising aborts the call.
BeforeTransferHook = Callable[["GuardedToken", bytes, bytes, int], None]


@dataclass(frozen=True)
class Uninitialized:
    pass


@dataclass(frozen=True)
class Initialized:
    state: TokenState


Phase = Union[Uninitialized, Initialized]


def _require_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidMetadata(f"{name} must be a bool", data={name: repr(value)})
    return value


class GuardedToken:
    """
    Fungible token with owner controls, a pause switch and anti-bot limits.

    Example
    -------
        token = GuardedToken(derive_address("my-token"))
        token.initialize("Guarded", "GTK", 10**24, 18, owner, 500 * 10**18, 1000 * 10**18, True)
        token.transfer(owner, alice, 100)
    """

    def __init__(
        self,
        address: AddressLike,
        *,
        before_token_transfer: Optional[BeforeTransferHook] = None,
    ) -> None:
        self._address = to_address(address)
        if is_zero(self._address):
            raise InvalidAddress("token address must not be the null address")
        self._phase: Phase = Uninitialized()
        self._lock = threading.RLock()
        self._in_call = False
        self._call_seq = 0
        self._before_transfer = before_token_transfer
        self.events = EventLog()

    @classmethod
    def from_config(
        cls,
        config: TokenConfig,
        address: Optional[AddressLike] = None,
        **kwargs: Any,
    ) -> "GuardedToken":
        """Build and initialize a token from a :class:`TokenConfig`."""
        if address is None:
            address = derive_address(f"tokenguard:{config.symbol}")
        token = cls(address, **kwargs)
        token.initialize(
            config.name,
            config.symbol,
            config.total_supply,
            config.decimals,
            config.require_owner(),
            config.transaction_limit,
            config.wallet_balance_limit,
            config.anti_bot_protection,
        )
        return token

    def __repr__(self) -> str:
        phase = type(self._phase).__name__
        return f"GuardedToken(address=0x{self._address.hex()}, phase={phase})"

    # ------------------------------------------------------------------
    # Runner
    # ------------------------------------------------------------------

    @property
    def address(self) -> bytes:
        return self._address

    @property
    def is_initialized(self) -> bool:
        return isinstance(self._phase, Initialized)

    def _require_state(self) -> TokenState:
        phase = self._phase
        if not isinstance(phase, Initialized):
            raise NotInitialized()
        return phase.state

    def _call(
        self,
        op: str,
        body: Callable[[TokenState], T],
        *,
        caller: Any = None,
        state: Optional[TokenState] = None,
    ) -> T:
        with self._lock:
            with tlog.trace_scope(token=self._address, op=op, caller=caller):
                try:
                    if self._in_call:
                        raise ReentrantCall(data={"op": op})
                    st = state if state is not None else self._require_state()
                    self._in_call = True
                    try:
                        result, batch = self._atomic(st, body)
                    finally:
                        self._in_call = False
                except TokenError as err:
                    metrics.observe_call(op=op, result=err.code)
                    log.info("call rejected", extra={"code": err.code, "reason": err.message})
                    raise
                except Exception:
                    metrics.observe_call(op=op, result="error")
                    log.exception("call failed")
                    raise
                metrics.observe_call(op=op, result="ok")
                log.debug("call committed", extra={"events": [e.name for e in batch]})
        self.events.notify(batch)
        return result

    def _atomic(self, st: TokenState, body: Callable[[TokenState], T]):
        journal = st.journal
        journal.begin()
        try:
            result = body(st)
        except BaseException:
            journal.revert()
            raise
        journal.commit()
        pending = journal.flush()
        self._call_seq += 1
        batch = self.events.append_batch(pending, call_seq=self._call_seq)
        metrics.observe_events(e.name for e in batch)
        return result, batch

    def _gate(self, st: TokenState, frm: bytes, to: bytes, amount: int) -> antibot.GateDecision:
        if self._before_transfer is not None:
            self._before_transfer(self, frm, to, amount)
        try:
            decision = antibot.check_transfer(st, frm, to, amount)
        except (TransactionLimitExceeded, WalletBalanceLimitExceeded) as err:
            metrics.observe_gate(err.code)
            raise
        metrics.observe_gate(decision.value)
        return decision

    # ------------------------------------------------------------------
    # Initializer
    # ------------------------------------------------------------------

    def initialize(
        self,
        name: str,
        symbol: str,
        total_supply: int,
        decimals: int,
        owner: AddressLike,
        transaction_limit: int,
        wallet_balance_limit: int,
        anti_bot_protection: bool,
    ) -> None:
        """
        One-time setup: mint the full supply to `owner`, whitelist the owner
        and the token address, and set the policy state.
        """
        def _already(_st: TokenState) -> None:
            raise AlreadyInitialized()

        def body(st: TokenState) -> None:
            if not isinstance(name, str) or not isinstance(symbol, str):
                raise InvalidMetadata("name and symbol must be strings")
            if isinstance(decimals, bool) or not isinstance(decimals, int) or not (0 <= decimals <= 255):
                raise InvalidMetadata("decimals must be an integer in [0, 255]", data={"decimals": repr(decimals)})
            supply = require_u256(total_supply, name="total_supply")
            tx_limit = require_u256(transaction_limit, name="transaction_limit")
            wallet_limit = require_u256(wallet_balance_limit, name="wallet_balance_limit")
            enabled = _require_bool(anti_bot_protection, name="anti_bot_protection")
            owner_addr = to_address(owner)

            st.set_field("name", name)
            st.set_field("symbol", symbol)
            st.set_field("decimals", decimals)
            ownable.init_owner(st, owner_addr)
            ledger.mint(st, owner_addr, supply)
            whitelist.add(st, owner_addr, [owner_addr, st.address])
            st.set_field("transaction_limit", tx_limit)
            st.set_field("wallet_balance_limit", wallet_limit)
            st.set_field("anti_bot_enabled", enabled)
            st.stage(EV_INITIALIZED, version=INITIALIZER_VERSION)

        with self._lock:
            if isinstance(self._phase, Initialized):
                # through the runner so the rejection is logged and counted
                self._call("initialize", _already, state=self._phase.state)
                return
            st = TokenState(address=self._address)
            self._call("initialize", body, state=st)
            self._phase = Initialized(st)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _read(self, fn: Callable[[TokenState], T]) -> T:
        with self._lock:
            return fn(self._require_state())

    def name(self) -> str:
        return self._read(lambda st: st.name)

    def symbol(self) -> str:
        return self._read(lambda st: st.symbol)

    def decimals(self) -> int:
        return self._read(lambda st: st.decimals)

    def total_supply(self) -> int:
        return self._read(lambda st: st.total_supply)

    def balance_of(self, account: AddressLike) -> int:
        addr = to_address(account)
        return self._read(lambda st: ledger.balance_of(st, addr))

    def allowance(self, owner: AddressLike, spender: AddressLike) -> int:
        o, s = to_address(owner), to_address(spender)
        return self._read(lambda st: ledger.allowance_of(st, o, s))

    def owner(self) -> bytes:
        return self._read(ownable.get_owner)

    def paused(self) -> bool:
        return self._read(pausable.is_paused)

    def is_whitelisted(self, account: AddressLike) -> bool:
        addr = to_address(account)
        return self._read(lambda st: whitelist.is_whitelisted(st, addr))

    def get_transaction_limit(self) -> int:
        return self._read(limits.get_transaction_limit)

    def get_wallet_balance_limit(self) -> int:
        return self._read(limits.get_wallet_balance_limit)

    def get_anti_bot_protection_status(self) -> bool:
        return self._read(antibot.status)

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data copy of the full state (tests, tooling)."""
        return self._read(lambda st: st.snapshot())

    # ------------------------------------------------------------------
    # Ledger mutations
    # ------------------------------------------------------------------

    def transfer(self, caller: AddressLike, to: AddressLike, amount: int) -> bool:
        def body(st: TokenState) -> bool:
            frm, dst = to_address(caller), to_address(to)
            value = require_u256(amount)
            pausable.require_not_paused(st)
            ledger.require_endpoints(frm, dst)
            self._gate(st, frm, dst, value)
            ledger.move(st, frm, dst, value)
            return True

        return self._call("transfer", body, caller=caller)

    def transfer_from(self, caller: AddressLike, sender: AddressLike, to: AddressLike, amount: int) -> bool:
        """Move `amount` from `sender` to `to` using `caller`'s allowance."""
        def body(st: TokenState) -> bool:
            spender, frm, dst = to_address(caller), to_address(sender), to_address(to)
            value = require_u256(amount)
            pausable.require_not_paused(st)
            ledger.require_endpoints(frm, dst)
            ledger.spend_allowance(st, frm, spender, value)
            self._gate(st, frm, dst, value)
            ledger.move(st, frm, dst, value)
            return True

        return self._call("transfer_from", body, caller=caller)

    def approve(self, caller: AddressLike, spender: AddressLike, amount: int) -> bool:
        def body(st: TokenState) -> bool:
            ledger.approve(st, to_address(caller), to_address(spender), require_u256(amount))
            return True

        return self._call("approve", body, caller=caller)

    def increase_allowance(self, caller: AddressLike, spender: AddressLike, added: int) -> bool:
        def body(st: TokenState) -> bool:
            ledger.increase_allowance(st, to_address(caller), to_address(spender), require_u256(added))
            return True

        return self._call("increase_allowance", body, caller=caller)

    def decrease_allowance(self, caller: AddressLike, spender: AddressLike, subtracted: int) -> bool:
        def body(st: TokenState) -> bool:
            ledger.decrease_allowance(st, to_address(caller), to_address(spender), require_u256(subtracted))
            return True

        return self._call("decrease_allowance", body, caller=caller)

    def burn(self, caller: AddressLike, amount: int) -> bool:
        def body(st: TokenState) -> bool:
            account, value = to_address(caller), require_u256(amount)
            pausable.require_not_paused(st)
            ledger.burn(st, account, value)
            return True

        return self._call("burn", body, caller=caller)

    def burn_from(self, caller: AddressLike, account: AddressLike, amount: int) -> bool:
        def body(st: TokenState) -> bool:
            spender, holder = to_address(caller), to_address(account)
            value = require_u256(amount)
            pausable.require_not_paused(st)
            ledger.spend_allowance(st, holder, spender, value)
            ledger.burn(st, holder, value)
            return True

        return self._call("burn_from", body, caller=caller)

    # ------------------------------------------------------------------
    # Administrative mutations (owner only)
    # ------------------------------------------------------------------

    def pause(self, caller: AddressLike) -> None:
        self._call("pause", lambda st: pausable.pause(st, to_address(caller)), caller=caller)

    def unpause(self, caller: AddressLike) -> None:
        self._call("unpause", lambda st: pausable.unpause(st, to_address(caller)), caller=caller)

    def add_to_whitelist(self, caller: AddressLike, addresses: Sequence[AddressLike]) -> None:
        def body(st: TokenState) -> None:
            whitelist.add(st, to_address(caller), to_addresses(addresses))

        self._call("add_to_whitelist", body, caller=caller)

    def remove_from_whitelist(self, caller: AddressLike, addresses: Sequence[AddressLike]) -> None:
        def body(st: TokenState) -> None:
            whitelist.remove(st, to_address(caller), to_addresses(addresses))

        self._call("remove_from_whitelist", body, caller=caller)

    def set_transaction_limit(self, caller: AddressLike, limit: int) -> None:
        self._call(
            "set_transaction_limit",
            lambda st: limits.set_transaction_limit(st, to_address(caller), limit),
            caller=caller,
        )

    def set_wallet_balance_limit(self, caller: AddressLike, limit: int) -> None:
        self._call(
            "set_wallet_balance_limit",
            lambda st: limits.set_wallet_balance_limit(st, to_address(caller), limit),
            caller=caller,
        )

    def toggle_anti_bot_protection(self, caller: AddressLike, enabled: bool) -> None:
        def body(st: TokenState) -> None:
            antibot.toggle(st, to_address(caller), _require_bool(enabled, name="enabled"))

        self._call("toggle_anti_bot_protection", body, caller=caller)

    def transfer_ownership(self, caller: AddressLike, new_owner: AddressLike) -> None:
        self._call(
            "transfer_ownership",
            lambda st: ownable.transfer_ownership(st, to_address(caller), to_address(new_owner)),
            caller=caller,
        )

    def renounce_ownership(self, caller: AddressLike) -> None:
        self._call(
            "renounce_ownership",
            lambda st: ownable.renounce_ownership(st, to_address(caller)),
            caller=caller,
        )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Receive each committed batch of events; returns an unsubscribe function."""
        return self.events.subscribe(callback)

    def get_logs(self, name: Optional[str] = None, *, since: int = 0) -> List[Event]:
        return self.events.get_logs(name, since=since)


__all__ = ["GuardedToken", "BeforeTransferHook", "Uninitialized", "Initialized", "Phase"]
