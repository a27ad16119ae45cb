"""
tokenguard.logging
------------------

Per-call structured logging on top of the stdlib ``logging`` package.

Every token call runs inside :func:`trace_scope`, which binds a trace id plus
the token address, operation and caller into a ``contextvars`` mapping. Both
formatters merge that mapping into each record, so a single call can be
followed through its log lines:

    from tokenguard import logging as tlog

    tlog.configure(json=True, level="DEBUG")
    with tlog.trace_scope(token=addr, op="transfer"):
        tlog.get_logger(__name__).info("call accepted")
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Union

_CALL_FIELDS: ContextVar[Dict[str, Any]] = ContextVar("tokenguard_call_fields", default={})

# Order in which bound fields appear in text output.
_TEXT_FIELDS = ("trace_id", "token", "op", "caller")

# Attributes every LogRecord carries; anything else came in through `extra=`.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}


def context() -> Dict[str, Any]:
    """Copy of the fields bound for the current call."""
    return dict(_CALL_FIELDS.get())


def bind(**fields: Any) -> None:
    merged = dict(_CALL_FIELDS.get())
    merged.update((k, _jsonable(v)) for k, v in fields.items())
    _CALL_FIELDS.set(merged)


@contextmanager
def trace_scope(trace_id: Optional[str] = None, **fields: Any) -> Iterator[str]:
    """
    Bind `fields` and a trace id for the duration of the block and yield the id.

    A nested scope keeps the enclosing trace id unless one is passed. The
    previous bindings are restored on exit, including on error.
    """
    token = _CALL_FIELDS.set(dict(_CALL_FIELDS.get()))
    try:
        tid = trace_id or _CALL_FIELDS.get().get("trace_id") or uuid.uuid4().hex[:12]
        bind(trace_id=tid, **fields)
        yield tid
    finally:
        _CALL_FIELDS.reset(token)


def _jsonable(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if isinstance(v, Enum):
        return v.value
    if isinstance(v, (list, tuple, set, frozenset)):
        return [_jsonable(x) for x in v]
    if isinstance(v, dict):
        return {str(k): _jsonable(x) for k, x in v.items()}
    if is_dataclass(v) and not isinstance(v, type):
        return _jsonable(asdict(v))
    return str(v)


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _jsonable(v)
        for k, v in vars(record).items()
        if k not in _STANDARD_ATTRS and not k.startswith("_")
    }


def _timestamp(record: logging.LogRecord) -> str:
    ts = _dt.datetime.fromtimestamp(record.created, tz=_dt.timezone.utc)
    return ts.isoformat(timespec="milliseconds")


class JSONFormatter(logging.Formatter):
    """One JSON object per line: call fields first, then `extra=` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context())
        for k, v in _record_extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


class TextFormatter(logging.Formatter):
    """
    ``<ts> | <LEVEL> | <logger> | trace_id=.. op=.. code=.. | <message>``
    """

    def format(self, record: logging.LogRecord) -> str:
        bound = context()
        fields = [f"{k}={bound[k]}" for k in _TEXT_FIELDS if bound.get(k) is not None]
        fields += [f"{k}={v}" for k, v in _record_extras(record).items() if k not in bound]

        parts = [_timestamp(record), record.levelname, record.name]
        if fields:
            parts.append(" ".join(fields))
        parts.append(record.getMessage())
        line = " | ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure(
    *,
    json: Optional[bool] = None,
    level: Union[str, int] = "INFO",
    stream: io.TextIOBase = sys.stderr,
) -> None:
    """
    Replace the handlers on the ``tokenguard`` logger with one stream handler.

    ``json=None`` reads TOKENGUARD_LOG_FORMAT (json|text) and otherwise picks
    text for an interactive terminal and JSON for everything else.
    """
    if json is None:
        env = os.environ.get("TOKENGUARD_LOG_FORMAT", "").strip().lower()
        json = env == "json" if env in ("json", "text") else not _is_tty(stream)

    root = logging.getLogger("tokenguard")
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(_level(level))

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter() if json else TextFormatter())
    root.addHandler(handler)


def configure_from_config(cfg: Any, *, stream: io.TextIOBase = sys.stderr) -> None:
    """Configure from a :class:`tokenguard.config.TokenConfig`."""
    fmt = cfg.log_format
    configure(json=None if fmt is None else fmt == "json", level=cfg.log_level, stream=stream)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "tokenguard")


def _level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _is_tty(stream: io.TextIOBase) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


__all__ = [
    "context",
    "bind",
    "trace_scope",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "configure_from_config",
    "get_logger",
]
