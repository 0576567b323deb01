"""Data model for one bridge attempt.

Amounts are integer base units throughout. The only place decimal strings
appear is BridgeRequest.amount (user input) and the formatted fields of
BridgeResult.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

from eth_utils import is_address, to_checksum_address

from bridgeflow.chains import get_chain
from bridgeflow.errors import ErrorCategory, ReconciliationWarning, ValidationError
from bridgeflow.units import parse_units

if TYPE_CHECKING:
    from bridgeflow.routing.base import RouterBackend


def _checksum(value: Optional[str], field_name: str) -> str:
    if not value or not isinstance(value, str) or not is_address(value):
        raise ValidationError(f"Invalid {field_name} address: {value!r}", field=field_name)
    return to_checksum_address(value)


@dataclass(frozen=True)
class BridgeRequest:
    """A user's request to bridge native value to another chain.

    Validated on construction; an invalid request never reaches the network.
    A request is used for exactly one attempt.
    """

    source_asset: str
    source_chain: str
    destination_chain: str
    amount: str
    requester: str
    recipient: Optional[str] = None

    def __post_init__(self):
        source = get_chain(self.source_chain or "")
        if source is None:
            raise ValidationError(f"Unknown source chain: {self.source_chain}", field="source_chain")
        destination = get_chain(self.destination_chain or "")
        if destination is None:
            raise ValidationError(
                f"Unknown destination chain: {self.destination_chain}", field="destination_chain"
            )
        if source.key == destination.key:
            raise ValidationError(
                "Source and destination chain must differ", field="destination_chain"
            )
        if (self.source_asset or "").upper() != source.native_symbol:
            raise ValidationError(
                f"{self.source_asset} is not the native asset of {source.name}",
                field="source_asset",
            )

        try:
            amount_in = parse_units(self.amount, source.native_decimals)
        except ValueError as e:
            raise ValidationError(str(e), field="amount") from None
        if amount_in <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount")

        requester = _checksum(self.requester, "requester")
        recipient = _checksum(self.recipient or requester, "recipient")

        object.__setattr__(self, "source_chain", source.key)
        object.__setattr__(self, "destination_chain", destination.key)
        object.__setattr__(self, "source_asset", source.native_symbol)
        object.__setattr__(self, "requester", requester)
        object.__setattr__(self, "recipient", recipient)

    @property
    def amount_in(self) -> int:
        """Amount in base units of the source native asset."""
        return parse_units(self.amount, get_chain(self.source_chain).native_decimals)

    @property
    def destination_chain_id(self) -> int:
        return get_chain(self.destination_chain).chain_id

    @property
    def source_chain_id(self) -> int:
        return get_chain(self.source_chain).chain_id


@dataclass(frozen=True)
class AssetPair:
    """Token pair for a quote: what goes into the router and what comes out."""

    token_in: str
    token_out: str

    @property
    def path(self) -> tuple[str, str]:
        return (self.token_in, self.token_out)


@dataclass(frozen=True)
class RouteQuote:
    """Expected and slippage-bounded output for one swap route."""

    backend_id: "RouterBackend"
    router_address: str
    path: tuple[str, ...]
    amount_in: int
    amount_out_expected: int
    amount_out_min: int
    slippage_bps: int

    def __post_init__(self):
        if self.amount_out_min > self.amount_out_expected:
            raise ValueError("amount_out_min must not exceed amount_out_expected")


class StepKind(str, Enum):
    """The four fixed steps of a bridge batch, in execution order."""

    WRAP = "wrap"
    APPROVE = "approve"
    SWAP = "swap"
    SETTLE = "settle"


STEP_ORDER = (StepKind.WRAP, StepKind.APPROVE, StepKind.SWAP, StepKind.SETTLE)


@dataclass(frozen=True)
class CallStep:
    """One call inside the settlement contract's multicall."""

    kind: StepKind
    target: str
    value: int
    payload: bytes
    allow_failure: bool

    def as_call_tuple(self) -> tuple[str, bool, int, bytes]:
        """(target, allowFailure, value, callData) as the multicall expects."""
        return (self.target, self.allow_failure, self.value, self.payload)


@dataclass(frozen=True)
class ComposedBatch:
    """A fully composed, not yet simulated, bridge batch."""

    steps: tuple[CallStep, ...]
    settlement_contract: str
    refund_to: str
    aux_recipient: str
    metadata: bytes
    calldata: bytes
    value: int
    deadline: int
    quote: RouteQuote

    def __post_init__(self):
        kinds = tuple(step.kind for step in self.steps)
        if kinds != STEP_ORDER:
            raise ValueError(f"Batch steps out of order: {[k.value for k in kinds]}")

    def to_transaction(self, sender: str) -> dict:
        """Transaction fields for simulation and submission (no gas/nonce)."""
        return {
            "from": sender,
            "to": self.settlement_contract,
            "value": self.value,
            "data": "0x" + self.calldata.hex(),
        }


@dataclass(frozen=True)
class PreliminaryId:
    """Client-derived identifier, display only, never authoritative."""

    value: bytes
    is_authoritative = False

    @property
    def hex(self) -> str:
        return "0x" + self.value.hex()


@dataclass(frozen=True)
class CanonicalId:
    """Identifier recovered from the settlement event. Source of truth."""

    value: bytes
    is_authoritative = True

    @property
    def hex(self) -> str:
        return "0x" + self.value.hex()


DepositIdentifier = Union[PreliminaryId, CanonicalId]


class SettlementStatus(str, Enum):
    SUCCESS = "success"
    REVERTED = "reverted"


@dataclass(frozen=True)
class SettlementReceipt:
    """Outcome of a mined bridge batch."""

    tx_hash: str
    status: SettlementStatus
    deposit_identifier: DepositIdentifier
    settled_amount: Optional[int]
    reconciled: bool

    def to_dict(self) -> dict:
        return {
            "tx_hash": self.tx_hash,
            "status": self.status.value,
            "deposit_identifier": self.deposit_identifier.hex,
            "identifier_kind": "canonical" if self.reconciled else "preliminary",
            "settled_amount": str(self.settled_amount) if self.settled_amount is not None else None,
            "reconciled": self.reconciled,
        }


@dataclass
class BridgeResult:
    """What the caller gets back from BridgeService.bridge()."""

    success: bool
    message: str
    state: str
    tx_hash: Optional[str] = None
    deposit_identifier: Optional[DepositIdentifier] = None
    reconciled: bool = False
    category: Optional[ErrorCategory] = None
    receipt: Optional[SettlementReceipt] = None
    warning: Optional[ReconciliationWarning] = None
    balances_after: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "txHash": self.tx_hash,
            "message": self.message,
            "depositIdentifier": self.deposit_identifier.hex if self.deposit_identifier else None,
            "reconciled": self.reconciled,
            "category": self.category.value if self.category else None,
            "state": self.state,
        }
