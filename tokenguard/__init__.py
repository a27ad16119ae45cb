"""
tokenguard — a fungible token ledger with owner controls, a pause switch and
an anti-bot transfer guard (whitelist, per-transaction and per-wallet limits).

Quick start
-----------
    from tokenguard import GuardedToken, derive_address

    owner = derive_address("owner")
    token = GuardedToken(derive_address("token"))
    token.initialize("Guarded", "GTK", 1_000_000, 18, owner, 500, 1_000, True)
    token.transfer(owner, derive_address("alice"), 600)   # owner is exempt
"""

from .address import ZERO_ADDRESS, derive_address, to_address, to_hex
from .antibot import AntiBotState, GateDecision
from .config import ConfigError, TokenConfig, load_config, scale_units
from .errors import TokenError, error_to_receipt_fields
from .events import Event, EventLog
from .safe_uint import U256_MAX, UNLIMITED_ALLOWANCE
from .token import GuardedToken
from .version import __version__

__all__ = [
    "GuardedToken",
    "TokenConfig",
    "ConfigError",
    "load_config",
    "scale_units",
    "TokenError",
    "error_to_receipt_fields",
    "Event",
    "EventLog",
    "AntiBotState",
    "GateDecision",
    "U256_MAX",
    "UNLIMITED_ALLOWANCE",
    "ZERO_ADDRESS",
    "derive_address",
    "to_address",
    "to_hex",
    "__version__",
]
