"""Bridge orchestration.

Runs one BridgeRequest through the fixed pipeline:

    pre-check -> quote -> preliminary id -> compose -> simulate
    -> submit -> confirm -> reconcile -> post-check -> hooks

Nothing is broadcast unless simulation passed. After broadcast there is no
cancellation and no retry; the attempt ends in REVERTED, SETTLED or
UNRECONCILED (or raises with the tx hash attached if confirmation is lost).
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Awaitable, Callable, Optional

from bridgeflow.bridge.composer import BatchComposer
from bridgeflow.bridge.executor import BatchExecutor
from bridgeflow.bridge.identifiers import DepositIdentifierDeriver
from bridgeflow.bridge.models import AssetPair, BridgeRequest, BridgeResult
from bridgeflow.bridge.preflight import PreflightEstimator
from bridgeflow.bridge.reconciler import EventReconciler
from bridgeflow.bridge.state import BridgeAttempt, BridgeState
from bridgeflow.chains import get_chain, get_read_web3
from bridgeflow.config import Settings, get_settings
from bridgeflow.errors import (
    BridgeError,
    NetworkError,
    SettlementReverted,
    ValidationError,
)
from bridgeflow.routing.factory import create_quote_engine
from bridgeflow.routing.quotes import QuoteEngine
from bridgeflow.services.balances import BalanceInspector
from bridgeflow.signing.base import BridgeSigner
from bridgeflow.units import format_units, parse_units, to_decimal

logger = logging.getLogger(__name__)

CompletionHook = Callable[[BridgeRequest, BridgeResult], Awaitable[None]]

RATE_PRECISION = Decimal("0.000001")


@dataclass(frozen=True)
class QuotePreview:
    """Read-only quote shown before the user commits to a bridge."""

    amount_in: str
    amount_out: str
    amount_out_min: str
    rate: str
    input_symbol: str
    output_symbol: str
    backend: str
    slippage_bps: int

    def to_dict(self) -> dict:
        return {
            "amount_in": self.amount_in,
            "amount_out": self.amount_out,
            "amount_out_min": self.amount_out_min,
            "rate": self.rate,
            "input_symbol": self.input_symbol,
            "output_symbol": self.output_symbol,
            "backend": self.backend,
            "slippage_bps": self.slippage_bps,
        }


class BridgeService:
    """Drives bridge attempts from a source chain to any destination chain."""

    def __init__(
        self,
        quote_engine: QuoteEngine,
        composer: BatchComposer,
        preflight: PreflightEstimator,
        executor: BatchExecutor,
        reconciler: EventReconciler,
        balances: BalanceInspector,
        deriver: Optional[DepositIdentifierDeriver] = None,
        hooks: Optional[list[CompletionHook]] = None,
    ):
        self.quote_engine = quote_engine
        self.composer = composer
        self.preflight = preflight
        self.executor = executor
        self.reconciler = reconciler
        self.balances = balances
        self.deriver = deriver or DepositIdentifierDeriver()
        self.hooks: list[CompletionHook] = list(hooks or [])

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        hooks: Optional[list[CompletionHook]] = None,
    ) -> "BridgeService":
        """Wire every component from configuration."""
        settings = settings or get_settings()
        chain = get_chain(settings.source_chain)
        if chain is None:
            raise ValueError(f"Unknown source chain: {settings.source_chain}")

        web3 = get_read_web3(chain.key)
        return cls(
            quote_engine=create_quote_engine(settings, web3),
            composer=BatchComposer(
                chain,
                settings.settlement_contract_address,
                deadline_seconds=settings.swap_deadline_seconds,
            ),
            preflight=PreflightEstimator(web3, gas_buffer_percent=settings.gas_buffer_percent),
            executor=BatchExecutor(
                chain.chain_id,
                confirmation_timeout=settings.confirmation_timeout_seconds,
                poll_interval=settings.confirmation_poll_seconds,
            ),
            reconciler=EventReconciler(settings.settlement_contract_address),
            balances=BalanceInspector(),
            hooks=hooks,
        )

    @property
    def source_chain(self):
        return self.composer.chain

    @property
    def pair(self) -> AssetPair:
        chain = self.source_chain
        return AssetPair(chain.wrapped_native.address, chain.settlement_asset.address)

    def add_hook(self, hook: CompletionHook) -> None:
        """Register an async callable run after every successful settlement."""
        self.hooks.append(hook)

    async def preview_quote(self, amount: str) -> QuotePreview:
        """
        Quote `amount` of the source native asset without composing anything.

        Raises:
            ValidationError: Amount is not a positive decimal
            QuoteUnavailable: Both routers failed
        """
        chain = self.source_chain
        try:
            amount_in = parse_units(amount, chain.native_decimals)
        except ValueError as e:
            raise ValidationError(str(e), field="amount") from None
        if amount_in <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount")

        quote = await self.quote_engine.get_quote(amount_in, self.pair)

        out_token = chain.settlement_asset
        rate = to_decimal(quote.amount_out_expected, out_token.decimals) / to_decimal(
            amount_in, chain.native_decimals
        )
        return QuotePreview(
            amount_in=format_units(amount_in, chain.native_decimals),
            amount_out=format_units(quote.amount_out_expected, out_token.decimals),
            amount_out_min=format_units(quote.amount_out_min, out_token.decimals),
            rate=format(rate.quantize(RATE_PRECISION, rounding=ROUND_DOWN), "f"),
            input_symbol=chain.native_symbol,
            output_symbol=out_token.symbol,
            backend=quote.backend_id.value,
            slippage_bps=quote.slippage_bps,
        )

    async def ensure_network(self, signer: BridgeSigner, chain_id: int) -> None:
        """Make sure the signer is on `chain_id`, asking it to switch if not.

        Raises:
            UserRejected: The switch was refused
            NetworkError: The signer could not reach or stay on the chain
        """
        try:
            current = await signer.get_chain_id()
            if current == chain_id:
                return
            logger.info(f"Signer on chain {current}, switching to {chain_id}")
            await signer.switch_chain(chain_id)
            current = await signer.get_chain_id()
        except BridgeError:
            raise
        except Exception as e:
            raise NetworkError(f"Could not verify signer network: {e}") from e

        if current != chain_id:
            raise NetworkError(f"Signer is on chain {current}, expected {chain_id}")

    async def execute(self, request: BridgeRequest, signer: BridgeSigner) -> BridgeResult:
        """
        Run one bridge attempt, raising typed errors on failure.

        Raises:
            ValidationError, QuoteUnavailable, SimulationFailed, UserRejected,
            NetworkError: Before broadcast (nothing was sent)
            SettlementReverted: Mined but reverted
            ConfirmationTimeout, NetworkError(tx_hash=...): Broadcast but the
                outcome is unknown
        """
        return await self._run(request, signer, BridgeAttempt(label=request.requester))

    async def bridge(self, request: BridgeRequest, signer: BridgeSigner) -> BridgeResult:
        """Like execute(), but every BridgeError becomes a failed BridgeResult."""
        attempt = BridgeAttempt(label=request.requester)
        try:
            return await self._run(request, signer, attempt)
        except BridgeError as e:
            logger.error(f"Bridge failed in state {attempt.state.value}: [{e.category.value}] {e.message}")
            return BridgeResult(
                success=False,
                message=e.message,
                state=attempt.state.value,
                tx_hash=getattr(e, "tx_hash", None),
                category=e.category,
            )

    async def _run(self, request: BridgeRequest, signer: BridgeSigner, attempt: BridgeAttempt) -> BridgeResult:
        chain = self.source_chain

        # Everything up to the broadcast can still end in REJECTED
        try:
            if request.source_chain != chain.key:
                raise ValidationError(
                    f"This service bridges from {chain.name}, not {request.source_chain}",
                    field="source_chain",
                )
            await self.ensure_network(signer, chain.chain_id)
            await self.balances.ensure_sufficient_native(chain.key, request.requester, request.amount_in)

            attempt.advance(BridgeState.QUOTING)
            quote = await self.quote_engine.get_quote(request.amount_in, self.pair)

            attempt.advance(BridgeState.COMPOSING)
            preliminary = self.deriver.derive_preliminary(
                request.requester, request.recipient, request.destination_chain_id
            )
            batch = self.composer.compose(request, quote, preliminary)

            attempt.advance(BridgeState.ESTIMATING)
            gas_limit = await self.preflight.estimate(batch, request.requester)

            tx_hash = await self.executor.broadcast(batch, signer, gas_limit)
        except BridgeError:
            attempt.advance(BridgeState.REJECTED)
            raise
        except Exception as e:
            logger.exception(f"Bridge attempt failed in state {attempt.state.value} before broadcast")
            attempt.advance(BridgeState.REJECTED)
            raise NetworkError(f"Bridge attempt failed before broadcast: {e}") from e
        attempt.advance(BridgeState.SUBMITTED)

        outcome = await self.executor.wait(tx_hash, signer)
        if not outcome.confirmed:
            attempt.advance(BridgeState.REVERTED)
            raise SettlementReverted(
                f"Bridge transaction {tx_hash} reverted on-chain; funds did not move",
                tx_hash=tx_hash,
                receipt=outcome.receipt,
            )
        attempt.advance(BridgeState.CONFIRMED)

        attempt.advance(BridgeState.RECONCILING)
        receipt, warning = self.reconciler.reconcile(tx_hash, outcome.receipt, preliminary)
        attempt.advance(BridgeState.SETTLED if receipt.reconciled else BridgeState.UNRECONCILED)

        balances_after = await self._post_check(request)

        if receipt.reconciled:
            message = f"Bridge settled. Deposit id {receipt.deposit_identifier.hex}"
        else:
            message = (
                f"Bridge settled, but the deposit id could not be confirmed from the "
                f"transaction logs. Preliminary id {receipt.deposit_identifier.hex}"
            )

        result = BridgeResult(
            success=True,
            message=message,
            state=attempt.state.value,
            tx_hash=tx_hash,
            deposit_identifier=receipt.deposit_identifier,
            reconciled=receipt.reconciled,
            receipt=receipt,
            warning=warning,
            balances_after=balances_after,
        )
        await self._run_hooks(request, result)
        return result

    async def _post_check(self, request: BridgeRequest) -> dict:
        queries = self.balances.bridge_queries(request.source_chain, request.destination_chain)
        try:
            readings = await self.balances.snapshot(request.requester, queries)
        except Exception as e:
            logger.warning(f"Post-bridge balance check failed: {e}")
            return {}
        return {label: reading.formatted for label, reading in readings.items()}

    async def _run_hooks(self, request: BridgeRequest, result: BridgeResult) -> None:
        for hook in self.hooks:
            try:
                await hook(request, result)
            except Exception:
                logger.exception(f"Completion hook {getattr(hook, '__name__', hook)!r} failed")

