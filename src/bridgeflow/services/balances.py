"""Read-only balance lookups across chains.

SECURITY: This service:
- Only queries public blockchain data
- Uses the shared read-only connections, never the signer's
- Holds no per-request state, so lookups can run concurrently
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from eth_utils import to_checksum_address
from web3 import AsyncWeb3

from bridgeflow.bridge.abi import decode_uint256, encode_balance_of
from bridgeflow.chains import TokenConfig, get_chain, get_read_web3
from bridgeflow.errors import NetworkError, ValidationError
from bridgeflow.units import format_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceQuery:
    """One balance to look up. token=None means the chain's native asset."""

    label: str
    chain: str
    token: Optional[TokenConfig] = None


@dataclass(frozen=True)
class BalanceReading:
    """Result of one lookup; raw is None when the lookup failed."""

    label: str
    chain: str
    symbol: str
    decimals: int
    raw: Optional[int]
    error: Optional[str] = None

    @property
    def formatted(self) -> Optional[str]:
        if self.raw is None:
            return None
        return format_units(self.raw, self.decimals)


# Overview shown next to the bridge form: both source-capable chains plus
# the destination's native asset.
DASHBOARD_QUERIES = (
    BalanceQuery("baseETH", "base"),
    BalanceQuery("baseUSDC", "base", get_chain("base").settlement_asset),
    BalanceQuery("ethereumETH", "ethereum"),
    BalanceQuery("ethereumUSDC", "ethereum", get_chain("ethereum").settlement_asset),
    BalanceQuery("somniaSOMI", "somnia"),
)


class BalanceInspector:
    """Independent balance reads over cached read-only providers."""

    def __init__(
        self,
        providers: Optional[Mapping[str, AsyncWeb3]] = None,
        provider_factory: Callable[[str], AsyncWeb3] = get_read_web3,
    ):
        """Initialize the inspector.

        Args:
            providers: Explicit read connection per chain key
            provider_factory: Used for chains missing from `providers`
        """
        self._providers = dict(providers or {})
        self._provider_factory = provider_factory

    def _web3(self, chain: str) -> AsyncWeb3:
        if chain not in self._providers:
            self._providers[chain] = self._provider_factory(chain)
        return self._providers[chain]

    async def native_balance(self, chain: str, address: str) -> int:
        """Native balance in base units.

        Raises:
            NetworkError: If the node could not answer
        """
        try:
            return int(await self._web3(chain).eth.get_balance(to_checksum_address(address)))
        except Exception as e:
            raise NetworkError(f"Failed to read {chain} native balance: {e}") from e

    async def token_balance(self, chain: str, token: TokenConfig, address: str) -> int:
        """ERC-20 balanceOf in base units.

        Raises:
            NetworkError: If the node could not answer
        """
        data = encode_balance_of(to_checksum_address(address))
        try:
            raw = await self._web3(chain).eth.call({"to": token.address, "data": "0x" + data.hex()})
            return decode_uint256(bytes(raw))
        except Exception as e:
            raise NetworkError(f"Failed to read {token.symbol} balance on {chain}: {e}") from e

    async def read(self, query: BalanceQuery, address: str) -> BalanceReading:
        """Run one query; failures are reported in the reading, not raised."""
        chain = get_chain(query.chain)
        symbol = query.token.symbol if query.token else chain.native_symbol
        decimals = query.token.decimals if query.token else chain.native_decimals
        try:
            if query.token is None:
                raw = await self.native_balance(chain.key, address)
            else:
                raw = await self.token_balance(chain.key, query.token, address)
        except NetworkError as e:
            logger.error(f"Balance lookup {query.label} failed: {e.message}")
            return BalanceReading(query.label, chain.key, symbol, decimals, None, e.message)
        return BalanceReading(query.label, chain.key, symbol, decimals, raw)

    async def snapshot(self, address: str, queries) -> dict[str, BalanceReading]:
        """Run all queries concurrently, keyed by label."""
        readings = await asyncio.gather(*(self.read(q, address) for q in queries))
        return {reading.label: reading for reading in readings}

    async def ensure_sufficient_native(self, chain: str, address: str, amount: int) -> int:
        """Pre-flight check that the sender holds at least `amount` natively.

        Returns:
            The balance read

        Raises:
            ValidationError: Balance below amount
            NetworkError: Balance could not be read
        """
        balance = await self.native_balance(chain, address)
        if balance < amount:
            native = get_chain(chain)
            raise ValidationError(
                f"Insufficient {native.native_symbol} balance: have "
                f"{format_units(balance, native.native_decimals)}, need "
                f"{format_units(amount, native.native_decimals)}",
                field="amount",
            )
        return balance

    @staticmethod
    def bridge_queries(source_chain: str, destination_chain: str) -> list[BalanceQuery]:
        """Source native, source wrapped and destination native."""
        source = get_chain(source_chain)
        destination = get_chain(destination_chain)
        queries = [BalanceQuery("sourceNative", source.key)]
        if source.wrapped_native is not None:
            queries.append(BalanceQuery("sourceWrapped", source.key, source.wrapped_native))
        queries.append(BalanceQuery("destinationNative", destination.key))
        return queries

    async def dashboard(self, address: str) -> dict[str, Optional[str]]:
        """All five bridge balances as decimal strings (None where unavailable)."""
        readings = await self.snapshot(address, DASHBOARD_QUERIES)
        return {label: reading.formatted for label, reading in readings.items()}

    async def latest_block(self, chain: str) -> Optional[int]:
        """Head block of a chain's read connection, or None if unreachable."""
        try:
            return int(await self._web3(chain).eth.get_block_number())
        except Exception as e:
            logger.warning(f"RPC for {chain} unreachable: {e}")
            return None

    async def rpc_status(self, chains) -> dict[str, dict]:
        """Reachability of each chain's read connection, checked concurrently."""
        chains = list(chains)
        blocks = await asyncio.gather(*(self.latest_block(chain) for chain in chains))
        return {
            chain: {"reachable": block is not None, "block": block}
            for chain, block in zip(chains, blocks)
        }
