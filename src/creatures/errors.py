"""Typed error taxonomy for registry operations.

Every failure a registry operation can report is a ``CreatureError``
subclass. Each carries a machine-readable code, a category, and retry
guidance so callers (the CLI, tests, any outer dispatcher) can switch on
the code rather than parse messages.

Usage:
    from src.creatures.errors import CreatureError

    try:
        service.mint("alice")
    except CreatureError as exc:
        response = exc.to_response()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error classification.

    - VALIDATION: Caller provided bad input
    - PERMISSION: Caller not authorized
    - RESOURCE: Missing creature, exhausted capacity or counter
    - SYSTEM: Broken invariant (should never happen)
    """

    VALIDATION = "validation"
    PERMISSION = "permission"
    RESOURCE = "resource"
    SYSTEM = "system"


class ErrorCode(str, Enum):
    """Specific error codes for programmatic handling."""

    # Validation errors
    INVALID_ARGUMENT = "invalid_argument"
    TRANSFER_TO_SELF = "transfer_to_self"
    BUYER_IS_OWNER = "buyer_is_owner"
    BID_TOO_LOW = "bid_too_low"

    # Permission errors
    NOT_AUTHENTICATED = "not_authenticated"
    NOT_OWNER = "not_owner"
    INSUFFICIENT_FUNDS = "insufficient_funds"

    # Resource errors
    NOT_FOUND = "not_found"
    NOT_FOR_SALE = "not_for_sale"
    EXCEED_MAX_OWNED = "exceed_max_owned"
    COUNTER_OVERFLOW = "counter_overflow"
    BALANCE_OVERFLOW = "balance_overflow"

    # System errors
    ALREADY_EXISTS = "already_exists"
    PAYMENT_FAILED = "payment_failed"


@dataclass
class ErrorResponse:
    """Standardized error response.

    All error responses include:
    - success: Always False
    - error: Human-readable message
    - code: Machine-readable error code
    - category: Error category (validation, permission, etc.)
    - retriable: Whether the operation should be retried
    - details: Optional additional context
    """

    success: bool = False
    error: str = ""
    code: str = ""
    category: str = ""
    retriable: bool = False
    details: dict[str, object] | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        result: dict[str, object] = {
            "success": self.success,
            "error": self.error,
            "code": self.code,
            "category": self.category,
            "retriable": self.retriable,
        }
        if self.details:
            result["details"] = self.details
        return result


class CreatureError(Exception):
    """Base class for all registry errors.

    Subclasses set ``code`` and ``category``. Nothing in the registry is
    retried internally: every failure is either a precondition violation
    or a hard limit, so ``retriable`` defaults to False.
    """

    code: ErrorCode = ErrorCode.INVALID_ARGUMENT
    category: ErrorCategory = ErrorCategory.VALIDATION
    retriable: bool = False

    def __init__(self, message: str, **details: object) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, object] = dict(details)

    def to_response(self) -> dict[str, object]:
        """Convert to a standardized error response dict."""
        return ErrorResponse(
            error=self.message,
            code=self.code.value,
            category=self.category.value,
            retriable=self.retriable,
            details=self.details or None,
        ).to_dict()


class CounterOverflowError(CreatureError):
    """The global creature count is already at its u64 ceiling."""

    code = ErrorCode.COUNTER_OVERFLOW
    category = ErrorCategory.RESOURCE


class ExceedMaxOwnedError(CreatureError):
    """The owner already holds ``max_owned`` creatures."""

    code = ErrorCode.EXCEED_MAX_OWNED
    category = ErrorCategory.RESOURCE


class AssetNotFoundError(CreatureError):
    """The referenced creature id is not in the store."""

    code = ErrorCode.NOT_FOUND
    category = ErrorCategory.RESOURCE


class DuplicateIdentifierError(CreatureError):
    """An identifier collided with an existing creature on insert."""

    code = ErrorCode.ALREADY_EXISTS
    category = ErrorCategory.SYSTEM


class UnauthenticatedError(CreatureError):
    """The caller identity could not be resolved from the origin."""

    code = ErrorCode.NOT_AUTHENTICATED
    category = ErrorCategory.PERMISSION


class NotOwnerError(CreatureError):
    """The caller does not own the creature it is acting on."""

    code = ErrorCode.NOT_OWNER
    category = ErrorCategory.PERMISSION


class TransferToSelfError(CreatureError):
    """A creature cannot be transferred to its current owner."""

    code = ErrorCode.TRANSFER_TO_SELF


class BuyerIsOwnerError(CreatureError):
    """The buyer already owns the creature."""

    code = ErrorCode.BUYER_IS_OWNER


class NotForSaleError(CreatureError):
    """The creature has no asking price."""

    code = ErrorCode.NOT_FOR_SALE
    category = ErrorCategory.RESOURCE


class BidPriceTooLowError(CreatureError):
    """The bid is below the asking price."""

    code = ErrorCode.BID_TOO_LOW


class NotEnoughBalanceError(CreatureError):
    """The buyer cannot cover the bid."""

    code = ErrorCode.INSUFFICIENT_FUNDS
    category = ErrorCategory.PERMISSION


class BalanceOverflowError(CreatureError):
    """The seller's balance cannot absorb the bid."""

    code = ErrorCode.BALANCE_OVERFLOW
    category = ErrorCategory.RESOURCE


class PaymentFailedError(CreatureError):
    """The currency ledger refused a payment the pre-checks allowed."""

    code = ErrorCode.PAYMENT_FAILED
    category = ErrorCategory.SYSTEM


class CodecError(CreatureError):
    """Bytes could not be decoded as a creature record."""


class CheckpointError(CreatureError):
    """A checkpoint file violates the registry invariants."""
