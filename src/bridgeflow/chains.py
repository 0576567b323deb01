"""Chain registry and cached read-only RPC connections.

Supports the three chains the bridge touches:
- ethereum: source chain (ETH -> WETH -> USDC -> settlement contract)
- base: balance dashboard only
- somnia: destination chain (native SOMI credited)
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from eth_utils import to_checksum_address
from web3 import AsyncHTTPProvider, AsyncWeb3

from bridgeflow.config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenConfig:
    """An ERC-20 token deployed on a chain."""

    symbol: str
    address: str
    decimals: int

    def __post_init__(self):
        object.__setattr__(self, "address", to_checksum_address(self.address))


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for an EVM chain."""

    key: str
    name: str
    chain_id: int
    native_symbol: str
    explorer_url: str
    native_decimals: int = 18
    wrapped_native: Optional[TokenConfig] = None
    settlement_asset: Optional[TokenConfig] = None

    @property
    def can_source_bridge(self) -> bool:
        """Whether the wrap -> swap -> settle route can start on this chain."""
        return self.wrapped_native is not None and self.settlement_asset is not None


# ======================
# Chain Configurations
# ======================

CHAINS: dict[str, ChainConfig] = {
    "ethereum": ChainConfig(
        key="ethereum",
        name="Ethereum Mainnet",
        chain_id=1,
        native_symbol="ETH",
        explorer_url="https://etherscan.io",
        wrapped_native=TokenConfig("WETH", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18),
        settlement_asset=TokenConfig("USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6),
    ),
    "base": ChainConfig(
        key="base",
        name="Base Mainnet",
        chain_id=8453,
        native_symbol="ETH",
        explorer_url="https://basescan.org",
        wrapped_native=TokenConfig("WETH", "0x4200000000000000000000000000000000000006", 18),
        settlement_asset=TokenConfig("USDC", "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
    ),
    "somnia": ChainConfig(
        key="somnia",
        name="Somnia Mainnet",
        chain_id=5031,
        native_symbol="SOMI",
        explorer_url="https://explorer.somnia.network",
    ),
}


def get_chain(key: str) -> Optional[ChainConfig]:
    """Look up a chain by key (case-insensitive)."""
    return CHAINS.get(key.lower())


def get_chain_by_id(chain_id: int) -> Optional[ChainConfig]:
    """Look up a chain by its EVM chain id."""
    for chain in CHAINS.values():
        if chain.chain_id == chain_id:
            return chain
    return None


@lru_cache(maxsize=None)
def get_read_web3(chain_key: str) -> AsyncWeb3:
    """Get the shared read-only connection for a chain.

    These connections are used for quotes, simulation and balance lookups
    only. Transactions always go through the signer's own connection.
    """
    settings = get_settings()
    rpc_url = settings.get_rpc_url(chain_key)
    if not rpc_url:
        raise ValueError(f"No RPC URL configured for chain: {chain_key}")

    logger.debug(f"Opening read-only provider for {chain_key}: {rpc_url}")
    return AsyncWeb3(
        AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": settings.rpc_timeout_seconds})
    )
