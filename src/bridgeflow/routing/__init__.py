"""Swap pricing across primary and fallback routers."""

from bridgeflow.routing.base import PricingBackend, RouterBackend
from bridgeflow.routing.factory import create_quote_engine
from bridgeflow.routing.quotes import QuoteEngine, apply_slippage
from bridgeflow.routing.v2_router import V2RouterBackend

__all__ = [
    "PricingBackend",
    "RouterBackend",
    "QuoteEngine",
    "V2RouterBackend",
    "apply_slippage",
    "create_quote_engine",
]
