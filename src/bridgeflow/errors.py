"""Error taxonomy for bridge attempts.

Every error carries a human-readable message and a machine-checkable
category. Errors raised before broadcast are safe to retry with a fresh
request; anything after broadcast is terminal for the attempt.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """Machine-checkable error category."""

    VALIDATION = "validation"
    QUOTE_UNAVAILABLE = "quote-unavailable"
    WOULD_REVERT = "would-revert"
    INSUFFICIENT_BALANCE = "insufficient-balance"
    INVALID_IDENTIFIER = "invalid-identifier"
    IDENTIFIER_REUSED = "identifier-reused"
    USER_REJECTED = "user-rejected"
    NETWORK = "network"
    SETTLEMENT_REVERTED = "settlement-reverted"
    CONFIRMATION_TIMEOUT = "confirmation-timeout"
    RECONCILIATION = "reconciliation"


class DecodedRevert(str, Enum):
    """Known settlement-contract revert reasons, by custom error."""

    INSUFFICIENT_BALANCE = "insufficient-balance"
    INVALID_IDENTIFIER = "invalid-identifier"
    IDENTIFIER_REUSED = "identifier-reused"


class BridgeError(Exception):
    """Base class for all bridge errors."""

    category: ErrorCategory = ErrorCategory.NETWORK
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "message": self.message,
            "retryable": self.retryable,
        }


class ValidationError(BridgeError):
    """Bad input, raised before any network call."""

    category = ErrorCategory.VALIDATION
    retryable = True

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class QuoteUnavailable(BridgeError):
    """Both pricing backends failed."""

    category = ErrorCategory.QUOTE_UNAVAILABLE
    retryable = True

    def __init__(self, message: str, errors: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


class SimulationFailed(BridgeError):
    """Preflight gas simulation rejected the batch. Nothing was submitted."""

    retryable = True

    def __init__(
        self,
        message: str,
        revert: Optional[DecodedRevert] = None,
        reason: Optional[str] = None,
        revert_data: Optional[str] = None,
    ):
        super().__init__(message)
        self.revert = revert
        self.reason = reason
        self.revert_data = revert_data

    @property
    def category(self) -> ErrorCategory:  # type: ignore[override]
        if self.revert is not None:
            return ErrorCategory(self.revert.value)
        return ErrorCategory.WOULD_REVERT


class UserRejected(BridgeError):
    """The signer declined to sign or send the transaction."""

    category = ErrorCategory.USER_REJECTED
    retryable = True


class NetworkError(BridgeError):
    """Transport failure talking to a node. Safe to retry before broadcast."""

    category = ErrorCategory.NETWORK

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.tx_hash is None


class SettlementReverted(BridgeError):
    """The batch was mined but reverted. Funds did not move."""

    category = ErrorCategory.SETTLEMENT_REVERTED

    def __init__(self, message: str, tx_hash: str, receipt: Optional[dict] = None):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.receipt = receipt


class ConfirmationTimeout(BridgeError):
    """The batch was broadcast but not seen mined within the wait window.

    The transaction may still be included later; the caller must track
    ``tx_hash`` rather than resubmit.
    """

    category = ErrorCategory.CONFIRMATION_TIMEOUT

    def __init__(self, message: str, tx_hash: str):
        super().__init__(message)
        self.tx_hash = tx_hash


class ReconciliationWarning(BridgeError):
    """Funds moved but no settlement event was found in the receipt logs.

    Attached to successful results, never raised by the pipeline.
    """

    category = ErrorCategory.RECONCILIATION

    def __init__(self, message: str, tx_hash: str):
        super().__init__(message)
        self.tx_hash = tx_hash
