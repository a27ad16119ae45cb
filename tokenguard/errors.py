"""
tokenguard.errors — typed rejections raised by the guarded token.

Every failed call surfaces as a *typed exception* carrying a stable ``code``
string. Callers (tests, tooling, the simulation CLI) match on ``code`` or on the
exception class, never on side effects: a failed call leaves no side effects.

Hierarchy
---------
TokenError (base)
 ├─ NotOwner                    : caller lacks privilege for an owner-gated op
 ├─ ContractPaused              : transfer-class call while paused
 ├─ AlreadyInitialized          : second call to the one-time initializer
 ├─ NotInitialized              : any call before the initializer ran
 ├─ ReentrantCall               : call issued while another call is executing
 ├─ InsufficientBalance
 ├─ InsufficientAllowance
 ├─ ZeroAddressRecipient / ZeroAddressSender / ZeroAddressSpender / ZeroAddressOwner
 ├─ NumericOverflow             : checked u256 arithmetic over/underflow
 ├─ TransactionLimitExceeded    : anti-bot policy, per-transaction cap
 ├─ WalletBalanceLimitExceeded  : anti-bot policy, per-wallet cap
 └─ InvalidAddress / InvalidAmount / InvalidMetadata

Messages reuse the wording of the ERC-20 reference implementation so operators
comparing against that family of tokens see familiar text.

These classes import nothing from the rest of the package so low-level modules
(safe_uint, address) can raise them without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional


@dataclass(eq=False)
class TokenError(Exception):
    """
    Base token error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'NotOwner', 'ContractPaused').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "token error"
    code: str = "TokenError"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs/CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class _CodedError(TokenError):
    """TokenError whose code and default message are fixed per class."""

    CODE: ClassVar[str] = "TokenError"
    MESSAGE: ClassVar[str] = "token error"

    def __init__(self, message: Optional[str] = None, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message or self.MESSAGE, code=self.CODE, data=data)


# -------- authorization ------------------------------------------------------


class NotOwner(_CodedError):
    """Caller is not the current owner (or ownership has been renounced)."""
    CODE = "NotOwner"
    MESSAGE = "Ownable: caller is not the owner"


# -------- lifecycle ----------------------------------------------------------


class ContractPaused(_CodedError):
    CODE = "ContractPaused"
    MESSAGE = "Pausable: paused"


class AlreadyInitialized(_CodedError):
    CODE = "AlreadyInitialized"
    MESSAGE = "Initializable: contract is already initialized"


class NotInitialized(_CodedError):
    CODE = "NotInitialized"
    MESSAGE = "Initializable: contract is not initialized"


class ReentrantCall(_CodedError):
    """A call reached the token while another call on it was still executing."""
    CODE = "ReentrantCall"
    MESSAGE = "ReentrancyGuard: reentrant call"


# -------- ledger -------------------------------------------------------------


class InsufficientBalance(_CodedError):
    CODE = "InsufficientBalance"
    MESSAGE = "ERC20: transfer amount exceeds balance"


class InsufficientAllowance(_CodedError):
    CODE = "InsufficientAllowance"
    MESSAGE = "ERC20: insufficient allowance"


class ZeroAddressRecipient(_CodedError):
    CODE = "ZeroAddressRecipient"
    MESSAGE = "ERC20: transfer to the zero address"


class ZeroAddressSender(_CodedError):
    CODE = "ZeroAddressSender"
    MESSAGE = "ERC20: transfer from the zero address"


class ZeroAddressSpender(_CodedError):
    CODE = "ZeroAddressSpender"
    MESSAGE = "ERC20: approve to the zero address"


class ZeroAddressOwner(_CodedError):
    CODE = "ZeroAddressOwner"
    MESSAGE = "Ownable: new owner is the zero address"


class NumericOverflow(_CodedError):
    """
    Checked u256 arithmetic left the [0, 2**256-1] domain.

    Fatal for the call: the runner reverts every write made so far.
    """
    CODE = "NumericOverflow"
    MESSAGE = "arithmetic overflow or underflow"


# -------- policy -------------------------------------------------------------


class TransactionLimitExceeded(_CodedError):
    CODE = "TransactionLimitExceeded"
    MESSAGE = "Transaction limit exceeded : Please send lesser amounts."


class WalletBalanceLimitExceeded(_CodedError):
    CODE = "WalletBalanceLimitExceeded"
    MESSAGE = "Exceeding maximum wallet balance : Please send lesser amounts."


# -------- input validation ---------------------------------------------------


class InvalidAddress(_CodedError):
    CODE = "InvalidAddress"
    MESSAGE = "address must be 20 bytes or a 40-digit hex string"


class InvalidAmount(_CodedError):
    CODE = "InvalidAmount"
    MESSAGE = "amount must be an integer in [0, 2**256-1]"


class InvalidMetadata(_CodedError):
    CODE = "InvalidMetadata"
    MESSAGE = "invalid token metadata"


# -------- helper utilities ---------------------------------------------------


def error_to_receipt_fields(err: TokenError) -> Dict[str, Any]:
    """
    Map a TokenError to receipt-like fields for tooling output.

    Returns:
        {"status": "REVERT", "error": {code, message, data?}}
    """
    return {"status": "REVERT", "error": err.to_dict()}


__all__ = [
    "TokenError",
    "NotOwner",
    "ContractPaused",
    "AlreadyInitialized",
    "NotInitialized",
    "ReentrantCall",
    "InsufficientBalance",
    "InsufficientAllowance",
    "ZeroAddressRecipient",
    "ZeroAddressSender",
    "ZeroAddressSpender",
    "ZeroAddressOwner",
    "NumericOverflow",
    "TransactionLimitExceeded",
    "WalletBalanceLimitExceeded",
    "InvalidAddress",
    "InvalidAmount",
    "InvalidMetadata",
    "error_to_receipt_fields",
]
