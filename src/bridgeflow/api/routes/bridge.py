"""Read-only bridge endpoints: quotes and balances.

There is deliberately no submission endpoint; batches are signed by the
user's own wallet.
"""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from bridgeflow.api.contracts import AddressParam, BalancesResponse, QuoteRequest, QuoteResponse
from bridgeflow.errors import BridgeError, QuoteUnavailable, ValidationError
from bridgeflow.services.balances import BalanceInspector
from bridgeflow.services.bridge_service import BridgeService

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def get_bridge_service() -> BridgeService:
    return BridgeService.from_settings()


@lru_cache
def get_balance_inspector() -> BalanceInspector:
    return BalanceInspector()


@router.post("/bridge/quote", response_model=QuoteResponse)
async def bridge_quote(
    payload: QuoteRequest,
    service: BridgeService = Depends(get_bridge_service),
):
    """Quote a bridge without composing or sending anything."""
    try:
        preview = await service.preview_quote(payload.amount)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_dict())
    except QuoteUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.to_dict())
    except BridgeError as e:
        logger.error(f"Quote failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.to_dict())

    return QuoteResponse(**preview.to_dict())


@router.get("/bridge/balances/{address}", response_model=BalancesResponse)
async def bridge_balances(
    address: str,
    inspector: BalanceInspector = Depends(get_balance_inspector),
):
    """Balances relevant to bridging, across all supported chains."""
    try:
        checked = AddressParam(address=address).address
    except PydanticValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"category": "validation", "message": f"Invalid address: {address}", "retryable": True},
        )

    balances = await inspector.dashboard(checked)
    return BalancesResponse(address=checked, balances=balances)
