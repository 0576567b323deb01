"""Request and response models for the HTTP API."""

from typing import Optional

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, Field, field_validator


class QuoteRequest(BaseModel):
    """Request body for a bridge quote."""

    amount: str = Field(..., min_length=1, max_length=80, description="Native amount, e.g. '0.5'")


class QuoteResponse(BaseModel):
    """Read-only bridge quote."""

    amount_in: str
    amount_out: str
    amount_out_min: str
    rate: str
    input_symbol: str
    output_symbol: str
    backend: str
    slippage_bps: int


class BalancesResponse(BaseModel):
    """Five-balance overview; a value is None when its lookup failed."""

    address: str
    balances: dict[str, Optional[str]]


class AddressParam(BaseModel):
    """Path parameter wrapper so address checks share one validator."""

    address: str

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Validate and checksum an EVM address."""
        v = v.strip()
        if not is_address(v):
            raise ValueError(f"Invalid address: {v}")
        return to_checksum_address(v)

