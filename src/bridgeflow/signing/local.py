"""Local signing backend.

Uses an in-memory private key and its own RPC connection for the write
path. Suitable for:
- CLI usage against your own key
- Development/testing on forks

WARNING: The private key is held in memory for the lifetime of the signer.
"""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3

from bridgeflow.errors import NetworkError, UserRejected
from bridgeflow.signing.base import BridgeSigner

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[dict], Union[bool, Awaitable[bool]]]


class LocalAccountSigner(BridgeSigner):
    """Signs with a local key and broadcasts over a dedicated connection.

    An optional ``confirm`` callback is shown every transaction before it is
    signed; returning False declines it (UserRejected).
    """

    def __init__(
        self,
        private_key: str,
        rpc_urls: dict[int, str],
        chain_id: int,
        confirm: Optional[ConfirmCallback] = None,
        request_timeout: float = 30.0,
    ):
        """Initialize the signer.

        Args:
            private_key: Hex private key
            rpc_urls: Write-path RPC URL per chain id
            chain_id: Chain to start on
            confirm: Optional approval prompt
            request_timeout: HTTP timeout for the write connection
        """
        self.account = Account.from_key(private_key)
        self.rpc_urls = dict(rpc_urls)
        self.confirm = confirm
        self.request_timeout = request_timeout
        self._chain_id = chain_id
        self.web3 = self._connect(chain_id)

    def _connect(self, chain_id: int) -> AsyncWeb3:
        rpc_url = self.rpc_urls.get(chain_id)
        if not rpc_url:
            raise NetworkError(f"No RPC endpoint configured for chain {chain_id}")
        return AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": self.request_timeout}))

    @property
    def address(self) -> str:
        return self.account.address

    async def get_chain_id(self) -> int:
        return int(await self.web3.eth.chain_id)

    async def switch_chain(self, chain_id: int) -> None:
        if chain_id == self._chain_id:
            return
        logger.info(f"Switching local signer from chain {self._chain_id} to {chain_id}")
        self.web3 = self._connect(chain_id)
        self._chain_id = chain_id

    async def _confirmed(self, tx: dict) -> bool:
        if self.confirm is None:
            return True
        answer = self.confirm(tx)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _finalize_fee_fields(self, tx: dict, gas_price: int) -> dict:
        """Fall back to legacy gasPrice when no EIP-1559 fields were given."""
        if "maxFeePerGas" in tx or "maxPriorityFeePerGas" in tx:
            return tx
        if "gasPrice" not in tx:
            tx["gasPrice"] = gas_price
        return tx

    async def send_transaction(self, tx: dict) -> str:
        tx = dict(tx)
        if not await self._confirmed(tx):
            logger.info("Bridge transaction declined by user")
            raise UserRejected("Transaction was rejected by the user")

        tx.setdefault("from", self.account.address)
        tx["nonce"] = await self.web3.eth.get_transaction_count(self.account.address, "pending")
        tx = self._finalize_fee_fields(tx, await self.web3.eth.gas_price)

        signed = self.account.sign_transaction(tx)
        tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
        return tx_hash.to_0x_hex()

    async def wait_for_receipt(self, tx_hash: str, timeout: float, poll_latency: float) -> dict:
        receipt = await self.web3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=timeout, poll_latency=poll_latency
        )
        return dict(receipt)
