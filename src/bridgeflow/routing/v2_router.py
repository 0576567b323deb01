"""Uniswap V2 style router backend (Uniswap, SushiSwap and forks).

Pricing uses the router's getAmountsOut view over eth_call on a read-only
connection.
"""

import logging

from eth_utils import to_checksum_address
from web3 import AsyncWeb3

from bridgeflow.bridge.abi import decode_uint256_array, encode_get_amounts_out
from bridgeflow.routing.base import PricingBackend, RouterBackend

logger = logging.getLogger(__name__)


class V2RouterBackend(PricingBackend):
    """Pricing backend for a V2 router deployment."""

    def __init__(self, backend_id: RouterBackend, router_address: str, web3: AsyncWeb3):
        """Initialize the backend.

        Args:
            backend_id: PRIMARY or FALLBACK slot
            router_address: Router contract address
            web3: Read-only connection to the source chain
        """
        self._backend_id = backend_id
        self._router_address = to_checksum_address(router_address)
        self.web3 = web3

    @property
    def backend_id(self) -> RouterBackend:
        return self._backend_id

    @property
    def router_address(self) -> str:
        return self._router_address

    async def get_amounts_out(self, amount_in: int, path: list[str]) -> list[int]:
        data = encode_get_amounts_out(amount_in, path)
        raw = await self.web3.eth.call({"to": self._router_address, "data": "0x" + data.hex()})

        amounts = decode_uint256_array(bytes(raw))
        if len(amounts) != len(path):
            raise ValueError(
                f"Router returned {len(amounts)} amounts for a {len(path)}-token path"
            )
        logger.debug(f"{self.name} getAmountsOut({amount_in}) -> {amounts}")
        return amounts
