"""Quote engine with primary/fallback router backends."""

import logging

from bridgeflow.bridge.models import AssetPair, RouteQuote
from bridgeflow.errors import QuoteUnavailable
from bridgeflow.routing.base import PricingBackend, RouterBackend

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000


def apply_slippage(amount_out_expected: int, slippage_bps: int) -> int:
    """Minimum acceptable output, rounded down."""
    return amount_out_expected * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


class QuoteEngine:
    """Prices a swap on the primary router, falling back to the secondary.

    Each backend is tried once with the identical path. This is a read-only
    path with no side effects; nothing is composed until a quote exists.
    """

    def __init__(self, primary: PricingBackend, fallback: PricingBackend, slippage_bps: int = 100):
        if primary.backend_id is not RouterBackend.PRIMARY:
            raise ValueError("primary backend must occupy the PRIMARY slot")
        if fallback.backend_id is not RouterBackend.FALLBACK:
            raise ValueError("fallback backend must occupy the FALLBACK slot")
        if not 0 <= slippage_bps < BPS_DENOMINATOR:
            raise ValueError(f"slippage_bps out of range: {slippage_bps}")
        self.primary = primary
        self.fallback = fallback
        self.slippage_bps = slippage_bps

    @property
    def backends(self) -> tuple[PricingBackend, PricingBackend]:
        return (self.primary, self.fallback)

    async def get_quote(self, amount_in: int, pair: AssetPair) -> RouteQuote:
        """
        Get a slippage-bounded quote for swapping amount_in along pair.

        Args:
            amount_in: Input amount in base units of pair.token_in
            pair: Input and output token addresses

        Returns:
            RouteQuote from the first backend that answered

        Raises:
            QuoteUnavailable: If both backends failed
        """
        if amount_in <= 0:
            raise ValueError("amount_in must be positive")

        path = list(pair.path)
        errors: dict[str, str] = {}

        for backend in self.backends:
            try:
                logger.debug(f"Requesting quote from {backend.name}...")
                amounts = await backend.get_amounts_out(amount_in, path)
                amount_out = int(amounts[-1])
                if amount_out <= 0:
                    raise ValueError("router quoted zero output")
            except Exception as e:
                error_msg = f"{type(e).__name__}: {e}"
                logger.warning(f"{backend.name} quote failed: {error_msg}")
                errors[backend.backend_id.value] = error_msg
                continue

            quote = RouteQuote(
                backend_id=backend.backend_id,
                router_address=backend.router_address,
                path=tuple(path),
                amount_in=amount_in,
                amount_out_expected=amount_out,
                amount_out_min=apply_slippage(amount_out, self.slippage_bps),
                slippage_bps=self.slippage_bps,
            )
            logger.info(
                f"Quote from {backend.name}: {amount_in} -> {quote.amount_out_expected} "
                f"(min {quote.amount_out_min}, slippage {self.slippage_bps} bps)"
            )
            return quote

        logger.error(f"No quote available for {path}. Errors: {errors}")
        raise QuoteUnavailable(
            "No pricing backend could quote the swap: "
            + "; ".join(f"{k}: {v}" for k, v in errors.items()),
            errors=errors,
        )
