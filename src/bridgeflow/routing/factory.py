"""Factory for the quote engine and its router backends."""

import logging
from typing import Optional

from web3 import AsyncWeb3

from bridgeflow.chains import get_read_web3
from bridgeflow.config import Settings, get_settings
from bridgeflow.routing.base import RouterBackend
from bridgeflow.routing.quotes import QuoteEngine
from bridgeflow.routing.v2_router import V2RouterBackend

logger = logging.getLogger(__name__)


def create_quote_engine(
    settings: Optional[Settings] = None,
    web3: Optional[AsyncWeb3] = None,
) -> QuoteEngine:
    """Create the quote engine for the configured source chain.

    Args:
        settings: Settings to read router addresses and slippage from
        web3: Read-only connection (defaults to the cached source-chain one)
    """
    settings = settings or get_settings()
    web3 = web3 or get_read_web3(settings.source_chain)

    primary = V2RouterBackend(RouterBackend.PRIMARY, settings.primary_router_address, web3)
    fallback = V2RouterBackend(RouterBackend.FALLBACK, settings.fallback_router_address, web3)
    logger.info(f"Quote engine: primary={primary.router_address} fallback={fallback.router_address}")

    return QuoteEngine(primary, fallback, slippage_bps=settings.slippage_bps)
