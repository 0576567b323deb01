"""Composes the fixed four-step bridge batch.

All steps execute inside the settlement contract's multicall, so the
settlement contract is msg.sender for each of them:

1. wrap    WETH.deposit{value: amountIn}()
2. approve WETH.approve(router, max)              (may fail: allowance already set)
3. swap    router.swapExactTokensForTokens(..., to=settlement contract, deadline)
4. settle  settlement.depositErc20(depositor, USDC, amountOutMin, routing)
"""

import logging
import time
from typing import Callable, Optional

from eth_utils import to_checksum_address

from bridgeflow.bridge import abi
from bridgeflow.bridge.models import (
    BridgeRequest,
    CallStep,
    ComposedBatch,
    PreliminaryId,
    RouteQuote,
    StepKind,
)
from bridgeflow.chains import ChainConfig
from bridgeflow.units import MAX_UINT256

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_SECONDS = 20 * 60


class BatchComposer:
    """Builds ComposedBatch objects for one source chain and settlement contract."""

    def __init__(
        self,
        chain: ChainConfig,
        settlement_contract: str,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        if not chain.can_source_bridge:
            raise ValueError(f"{chain.name} has no wrapped native / settlement asset configured")
        self.chain = chain
        self.settlement_contract = to_checksum_address(settlement_contract)
        self.deadline_seconds = deadline_seconds
        self._clock = clock or time.time

    def compose(
        self,
        request: BridgeRequest,
        quote: RouteQuote,
        preliminary_id: PreliminaryId,
        now: Optional[int] = None,
    ) -> ComposedBatch:
        """Build the batch for a validated request and its quote."""
        wrapped = self.chain.wrapped_native.address
        settlement_asset = self.chain.settlement_asset.address

        if quote.amount_in != request.amount_in:
            raise ValueError("Quote was computed for a different amount")
        if tuple(quote.path) != (wrapped, settlement_asset):
            raise ValueError(f"Quote path {quote.path} does not match the bridge route")

        now = int(self._clock()) if now is None else now
        deadline = now + self.deadline_seconds
        router = quote.router_address

        routing = abi.encode_routing(request.destination_chain_id, request.recipient)

        steps = (
            CallStep(
                kind=StepKind.WRAP,
                target=wrapped,
                value=request.amount_in,
                payload=abi.encode_weth_deposit(),
                allow_failure=False,
            ),
            CallStep(
                kind=StepKind.APPROVE,
                target=wrapped,
                value=0,
                payload=abi.encode_approve(router, MAX_UINT256),
                allow_failure=True,
            ),
            CallStep(
                kind=StepKind.SWAP,
                target=router,
                value=0,
                payload=abi.encode_swap_exact_tokens(
                    quote.amount_in,
                    quote.amount_out_min,
                    list(quote.path),
                    self.settlement_contract,
                    deadline,
                ),
                allow_failure=False,
            ),
            # Only amount_out_min is guaranteed by the swap. Any surplus is left
            # in the settlement contract and is not swept back by this batch;
            # the contract's leftover handling goes to refundTo (the requester).
            CallStep(
                kind=StepKind.SETTLE,
                target=self.settlement_contract,
                value=0,
                payload=abi.encode_deposit_erc20(
                    request.requester,
                    settlement_asset,
                    quote.amount_out_min,
                    routing,
                ),
                allow_failure=False,
            ),
        )

        calldata = abi.encode_multicall(
            [step.as_call_tuple() for step in steps],
            request.requester,
            request.recipient,
            preliminary_id.value,
        )

        batch = ComposedBatch(
            steps=steps,
            settlement_contract=self.settlement_contract,
            refund_to=request.requester,
            aux_recipient=request.recipient,
            metadata=preliminary_id.value,
            calldata=calldata,
            value=request.amount_in,
            deadline=deadline,
            quote=quote,
        )
        logger.info(
            f"Composed bridge batch: {request.amount} {request.source_asset} via "
            f"{quote.backend_id.value} router, settle >= {quote.amount_out_min}, deadline {deadline}"
        )
        return batch
