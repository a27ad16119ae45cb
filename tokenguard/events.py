"""
tokenguard.events — notification records, the committed event log, subscribers.

Every state change the token performs is announced by an event. Events are
*staged* in the call's journal while the call runs and are only appended here
after the call commits, so a failed call never leaves a notification behind.
After appending, the log notifies its subscribers (effects, then notify).

Event names and argument keys
-----------------------------
  Transfer                         {from, to, value}
  Approval                         {owner, spender, value}
  Paused / Unpaused                {account}
  WhiteListUpdated                 {added, addresses}
  MaximumTransactionLimitUpdated   {limit}
  MaximumWalletBalanceUpdated      {limit}
  AntiBotProtectionUpdated         {enabled}
  OwnershipTransferred             {previous, new}
  Initialized                      {version}

Addresses inside args are raw 20-byte ``bytes``; ``to_jsonable`` renders them as
0x-hex for tooling.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (Any, Callable, Dict, Iterable, Iterator, List, Mapping,
                    Optional, Sequence, Tuple)

log = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# Canonical event names
# ------------------------------------------------------------------------------

EV_TRANSFER = "Transfer"
EV_APPROVAL = "Approval"
EV_PAUSED = "Paused"
EV_UNPAUSED = "Unpaused"
EV_WHITELIST_UPDATED = "WhiteListUpdated"
EV_TX_LIMIT_UPDATED = "MaximumTransactionLimitUpdated"
EV_WALLET_LIMIT_UPDATED = "MaximumWalletBalanceUpdated"
EV_ANTIBOT_UPDATED = "AntiBotProtectionUpdated"
EV_OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
EV_INITIALIZED = "Initialized"


# ------------------------------------------------------------------------------
# Records
# ------------------------------------------------------------------------------


@dataclass(frozen=True)
class Event:
    """
    A committed event.

    Fields
    ------
    name      : canonical event name (see module docstring)
    args      : read-only mapping of argument name -> value
    log_index : 0-based position in the token's log
    call_seq  : sequence number of the call that emitted it
    """

    name: str
    args: Mapping[str, Any]
    log_index: int = 0
    call_seq: int = 0

    def __getitem__(self, key: str) -> Any:
        return self.args[key]


@dataclass
class PendingEvent:
    """An event staged by a running call; becomes an :class:`Event` on commit."""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[Sequence[Event]], None]


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(value)
    if isinstance(value, bytearray):
        return bytes(value)
    return value


def to_jsonable(value: Any) -> Any:
    """Render event values (bytes, tuples, nested mappings) as JSON-safe data."""
    if isinstance(value, Event):
        return {"name": value.name, "args": to_jsonable(dict(value.args)), "log_index": value.log_index}
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    return value


# ------------------------------------------------------------------------------
# Log
# ------------------------------------------------------------------------------


class EventLog:
    """
    Append-only, thread-safe in-memory log of committed events.

    Subscribers receive each committed batch (all events of one call, in
    emission order) after it has been appended. A subscriber that raises is
    logged and skipped; the call that produced the batch has already committed.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: List[Event] = []
        self._subscribers: List[Subscriber] = []

    # --- writes (used by the call runner) -----------------------------------

    def append_batch(self, pending: Iterable[PendingEvent], *, call_seq: int) -> Tuple[Event, ...]:
        with self._lock:
            start = len(self._records)
            batch = tuple(
                Event(
                    name=p.name,
                    args=MappingProxyType({k: _freeze(v) for k, v in p.args.items()}),
                    log_index=start + i,
                    call_seq=call_seq,
                )
                for i, p in enumerate(pending)
            )
            self._records.extend(batch)
        return batch

    def notify(self, batch: Sequence[Event]) -> None:
        if not batch:
            return
        with self._lock:
            subscribers = list(self._subscribers)
        for cb in subscribers:
            try:
                cb(batch)
            except Exception:
                log.exception("event subscriber failed", extra={"subscriber": getattr(cb, "__name__", repr(cb))})

    # --- subscribers ---------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback`; returns a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    # --- reads ---------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[Event]:
        with self._lock:
            return iter(tuple(self._records))

    def get_logs(self, name: Optional[str] = None, *, since: int = 0, limit: Optional[int] = None) -> List[Event]:
        """Events with log_index >= since, optionally filtered by name."""
        with self._lock:
            out = [e for e in self._records[since:] if name is None or e.name == name]
        return out if limit is None else out[:limit]

    def names(self) -> List[str]:
        with self._lock:
            return [e.name for e in self._records]

    def last(self, name: Optional[str] = None) -> Optional[Event]:
        with self._lock:
            for e in reversed(self._records):
                if name is None or e.name == name:
                    return e
        return None


__all__ = [
    "EV_TRANSFER",
    "EV_APPROVAL",
    "EV_PAUSED",
    "EV_UNPAUSED",
    "EV_WHITELIST_UPDATED",
    "EV_TX_LIMIT_UPDATED",
    "EV_WALLET_LIMIT_UPDATED",
    "EV_ANTIBOT_UPDATED",
    "EV_OWNERSHIP_TRANSFERRED",
    "EV_INITIALIZED",
    "Event",
    "PendingEvent",
    "Subscriber",
    "EventLog",
    "to_jsonable",
]
