"""
tokenguard.state — the explicit state handle and its undo journal.

All token state (metadata, balances, allowances, whitelist, limits, flags,
owner) lives in one :class:`TokenState` object. Component modules receive it as
their first argument; nothing is stored in module globals.

Writes are journaled. The journal keeps a stack of layers: the root layer plus
one layer per open checkpoint. Every write made through a ``TokenState``
mutator records an undo entry in the top layer, and every event is *staged* in
the top layer rather than published.

    j = state.journal
    j.begin()                      # open a checkpoint for one call
    state.set_balance(addr, 10)    # undo entry + write
    state.stage(EV_TRANSFER, ...)  # staged, not yet visible in the EventLog
    j.commit()                     # merge the layer into its parent
    events = j.flush()             # take staged events, drop undo entries

``revert()`` discards the top layer after replaying its undo entries in reverse
order, restoring every touched value and dropping its staged events. Because
the call runner always either commits or reverts, a failed call leaves the
state exactly as it found it.

Notes
-----
- Zero balances and zero allowances are deleted from their maps.
- The journal does not enforce ledger rules; component modules validate
  before writing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, MutableMapping, MutableSet, Set, Tuple

from .address import ZERO_ADDRESS
from .events import PendingEvent

_MISSING = object()


# =============================================================================
# Journal
# =============================================================================


@dataclass
class _Undo:
    kind: str           # "map" | "set" | "attr"
    target: Any
    key: Any
    old: Any = _MISSING

    def apply(self) -> None:
        if self.kind == "map":
            if self.old is _MISSING:
                self.target.pop(self.key, None)
            else:
                self.target[self.key] = self.old
        elif self.kind == "set":
            if self.old:
                self.target.add(self.key)
            else:
                self.target.discard(self.key)
        else:
            setattr(self.target, self.key, self.old)


@dataclass
class _Layer:
    undo: List[_Undo] = field(default_factory=list)
    events: List[PendingEvent] = field(default_factory=list)


class Journal:
    """
    Undo journal with nested checkpoints.

    API highlights
    --------------
    - begin() / commit() / revert() / revert_to(marker)
    - record_map(), record_set(), record_attr()
    - stage(), staged(), flush()
    """

    def __init__(self) -> None:
        # Start with a root layer so unit-level writes outside a call still work.
        self._layers: List[_Layer] = [_Layer()]

    # --- checkpointing -------------------------------------------------------

    def depth(self) -> int:
        """Number of layers (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Open a checkpoint. Returns the depth marker to revert back to."""
        marker = len(self._layers)
        self._layers.append(_Layer())
        return marker

    def commit(self) -> None:
        """Merge the top layer into its parent (the root layer absorbs the last one)."""
        if len(self._layers) == 1:
            raise RuntimeError("commit() without a matching begin()")
        top = self._layers.pop()
        parent = self._layers[-1]
        parent.undo.extend(top.undo)
        parent.events.extend(top.events)

    def revert(self) -> None:
        """Undo and discard the top layer (or clear the root layer)."""
        top = self._layers[-1]
        for entry in reversed(top.undo):
            entry.apply()
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Layer()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    # --- recording -----------------------------------------------------------

    def record_map(self, target: MutableMapping[Any, Any], key: Any) -> None:
        self._layers[-1].undo.append(_Undo("map", target, key, target.get(key, _MISSING)))

    def record_set(self, target: MutableSet[Any], member: Any) -> None:
        self._layers[-1].undo.append(_Undo("set", target, member, member in target))

    def record_attr(self, target: Any, name: str) -> None:
        self._layers[-1].undo.append(_Undo("attr", target, name, getattr(target, name)))

    # --- events --------------------------------------------------------------

    def stage(self, event: PendingEvent) -> None:
        self._layers[-1].events.append(event)

    def staged(self) -> List[PendingEvent]:
        """All events staged in every open layer, oldest first."""
        return [e for layer in self._layers for e in layer.events]

    def flush(self) -> List[PendingEvent]:
        """
        Finalize the root layer: forget its undo entries and return its events.

        Only valid when no checkpoint is open.
        """
        if len(self._layers) != 1:
            raise RuntimeError("flush() with open checkpoints")
        root = self._layers[0]
        self._layers[0] = _Layer()
        return root.events


# =============================================================================
# State handle
# =============================================================================


@dataclass
class TokenState:
    """
    Complete mutable state of one token instance.

    Read fields directly; write only through the mutators below so every
    change is journaled.
    """

    address: bytes
    name: str = ""
    symbol: str = ""
    decimals: int = 18
    total_supply: int = 0
    owner: bytes = ZERO_ADDRESS
    paused: bool = False
    anti_bot_enabled: bool = False
    transaction_limit: int = 0
    wallet_balance_limit: int = 0
    balances: Dict[bytes, int] = field(default_factory=dict)
    allowances: Dict[Tuple[bytes, bytes], int] = field(default_factory=dict)
    whitelist: Set[bytes] = field(default_factory=set)
    journal: Journal = field(default_factory=Journal, repr=False, compare=False)

    # --- reads ---------------------------------------------------------------

    def balance(self, addr: bytes) -> int:
        return self.balances.get(addr, 0)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.allowances.get((owner, spender), 0)

    # --- journaled writes ----------------------------------------------------

    def set_field(self, name: str, value: Any) -> None:
        if name in ("balances", "allowances", "whitelist", "journal", "address"):
            raise AttributeError(f"{name} is not a scalar field")
        self.journal.record_attr(self, name)
        setattr(self, name, value)

    def set_balance(self, addr: bytes, amount: int) -> None:
        self.journal.record_map(self.balances, addr)
        if amount == 0:
            self.balances.pop(addr, None)
        else:
            self.balances[addr] = amount

    def set_allowance(self, owner: bytes, spender: bytes, amount: int) -> None:
        key = (owner, spender)
        self.journal.record_map(self.allowances, key)
        if amount == 0:
            self.allowances.pop(key, None)
        else:
            self.allowances[key] = amount

    def whitelist_add(self, addr: bytes) -> None:
        self.journal.record_set(self.whitelist, addr)
        self.whitelist.add(addr)

    def whitelist_discard(self, addr: bytes) -> None:
        self.journal.record_set(self.whitelist, addr)
        self.whitelist.discard(addr)

    def stage(self, name: str, **args: Any) -> None:
        """Stage an event for publication when the current call commits."""
        self.journal.stage(PendingEvent(name=name, args=dict(args)))

    # --- snapshots (tests, tooling) -----------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data copy of everything a call could change."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "owner": self.owner,
            "paused": self.paused,
            "anti_bot_enabled": self.anti_bot_enabled,
            "transaction_limit": self.transaction_limit,
            "wallet_balance_limit": self.wallet_balance_limit,
            "balances": dict(self.balances),
            "allowances": dict(self.allowances),
            "whitelist": frozenset(self.whitelist),
        }


__all__ = ["Journal", "TokenState"]
