"""
tokenguard.config — deployment parameters for a guarded token.

Parameters come from environment variables using the same names as the
original deployment tooling. Amounts in the environment are given in *whole*
token units and scaled by ``10**decimals`` here, exactly as the deployer does
before calling the initializer.

Environment variables (all optional except OWNER when building a token):
  TOKEN_NAME              -> token name (default: "Guarded Token")
  TOKEN_SYMBOL            -> ticker (default: "GTK")
  TOKEN_SUPPLY            -> whole units minted to the owner (default: 1_000_000)
  TOKEN_DECIMALS          -> 0..255 (default: 18)
  OWNER                   -> 0x-hex owner address
  TXN_LIMIT               -> whole units per transaction (default: 500)
  WALLET_BALANCE_LIMIT    -> whole units per wallet (default: 1_000)
  ANTI_BOT_PROTECTION     -> 0/1/true/false (default: true)
  TOKENGUARD_LOG_LEVEL    -> DEBUG/INFO/... (default: INFO)
  TOKENGUARD_LOG_FORMAT   -> json/text (default: auto)

Integers accept decimal, 0x-hex and ``_`` separators.

Programmatic usage:
    from tokenguard.config import load_config
    cfg = load_config()
    token = GuardedToken.from_config(cfg, address)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Mapping, Optional

from .address import to_address, to_hex
from .errors import InvalidAddress, NumericOverflow
from .safe_uint import u256_mul

DEFAULT_NAME = "Guarded Token"
DEFAULT_SYMBOL = "GTK"
DEFAULT_DECIMALS = 18
DEFAULT_SUPPLY_UNITS = 1_000_000
DEFAULT_TXN_LIMIT_UNITS = 500
DEFAULT_WALLET_LIMIT_UNITS = 1_000


class ConfigError(ValueError):
    """Malformed configuration value (names the offending variable)."""


# ----------------------------- helpers -------------------------------------


_BOOL_TRUE = {"1", "true", "yes", "on"}
_BOOL_FALSE = {"0", "false", "no", "off"}


def _bool_env(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    v = raw.strip().lower()
    if v in _BOOL_TRUE:
        return True
    if v in _BOOL_FALSE:
        return False
    raise ConfigError(f"{key}: expected a boolean, got {raw!r}")


def _parse_int(key: str, raw: str) -> int:
    s = raw.strip().replace("_", "")
    try:
        n = int(s, 16) if s.lower().startswith("0x") else int(s, 10)
    except ValueError:
        raise ConfigError(f"{key}: expected an integer, got {raw!r}") from None
    if n < 0:
        raise ConfigError(f"{key}: must be non-negative, got {raw!r}")
    return n


def _int_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    return _parse_int(key, raw)


def scale_units(whole: int, decimals: int) -> int:
    """Convert whole token units to base units (``whole * 10**decimals``)."""
    if whole < 0:
        raise ValueError("whole must be non-negative")
    if not (0 <= decimals <= 255):
        raise ValueError("decimals must be in [0, 255]")
    if whole == 0:
        return 0
    return u256_mul(whole, 10 ** decimals)


def _scaled(key: str, whole: int, decimals: int) -> int:
    try:
        return scale_units(whole, decimals)
    except NumericOverflow:
        raise ConfigError(f"{key}: {whole} * 10**{decimals} exceeds 2**256-1") from None


# ------------------------------ dataclass -----------------------------------


@dataclass(frozen=True)
class TokenConfig:
    name: str = DEFAULT_NAME
    symbol: str = DEFAULT_SYMBOL
    total_supply: int = DEFAULT_SUPPLY_UNITS * 10 ** DEFAULT_DECIMALS
    decimals: int = DEFAULT_DECIMALS
    owner: Optional[bytes] = None
    transaction_limit: int = DEFAULT_TXN_LIMIT_UNITS * 10 ** DEFAULT_DECIMALS
    wallet_balance_limit: int = DEFAULT_WALLET_LIMIT_UNITS * 10 ** DEFAULT_DECIMALS
    anti_bot_protection: bool = True
    log_level: str = "INFO"
    log_format: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TokenConfig":
        env = os.environ if environ is None else environ

        decimals = _int_env(env, "TOKEN_DECIMALS", DEFAULT_DECIMALS)
        if decimals > 255:
            raise ConfigError(f"TOKEN_DECIMALS: must be in [0, 255], got {decimals}")

        owner: Optional[bytes] = None
        raw_owner = env.get("OWNER", "").strip()
        if raw_owner:
            try:
                owner = to_address(raw_owner)
            except InvalidAddress:
                raise ConfigError(f"OWNER: not a 20-byte hex address: {raw_owner!r}") from None

        log_format = env.get("TOKENGUARD_LOG_FORMAT", "").strip().lower() or None
        if log_format not in (None, "json", "text"):
            raise ConfigError(f"TOKENGUARD_LOG_FORMAT: expected json or text, got {log_format!r}")

        return cls(
            name=env.get("TOKEN_NAME", DEFAULT_NAME),
            symbol=env.get("TOKEN_SYMBOL", DEFAULT_SYMBOL),
            total_supply=_scaled(
                "TOKEN_SUPPLY", _int_env(env, "TOKEN_SUPPLY", DEFAULT_SUPPLY_UNITS), decimals
            ),
            decimals=decimals,
            owner=owner,
            transaction_limit=_scaled(
                "TXN_LIMIT", _int_env(env, "TXN_LIMIT", DEFAULT_TXN_LIMIT_UNITS), decimals
            ),
            wallet_balance_limit=_scaled(
                "WALLET_BALANCE_LIMIT",
                _int_env(env, "WALLET_BALANCE_LIMIT", DEFAULT_WALLET_LIMIT_UNITS),
                decimals,
            ),
            anti_bot_protection=_bool_env(env, "ANTI_BOT_PROTECTION", True),
            log_level=env.get("TOKENGUARD_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            log_format=log_format,
        )

    def require_owner(self) -> bytes:
        if self.owner is None:
            raise ConfigError("OWNER: required to build a token")
        return self.owner

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "total_supply": self.total_supply,
            "decimals": self.decimals,
            "owner": to_hex(self.owner) if self.owner is not None else None,
            "transaction_limit": self.transaction_limit,
            "wallet_balance_limit": self.wallet_balance_limit,
            "anti_bot_protection": self.anti_bot_protection,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }


@lru_cache(maxsize=1)
def load_config() -> TokenConfig:
    """Cached process-wide config read from ``os.environ``."""
    return TokenConfig.from_env()


__all__ = ["ConfigError", "TokenConfig", "load_config", "scale_units"]
