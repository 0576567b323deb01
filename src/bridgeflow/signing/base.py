"""Signer interface the bridge pipeline depends on.

The signer owns the write path: its own connection to the source chain, the
account, nonce handling and broadcast. The pipeline never signs anything
itself and never submits through the read-only connections.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class BridgeSigner(ABC):
    """Abstract base class for wallets that can send the bridge batch."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed address of the signing account."""
        pass

    @abstractmethod
    async def get_chain_id(self) -> int:
        """Chain id the signer is currently connected to."""
        pass

    @abstractmethod
    async def switch_chain(self, chain_id: int) -> None:
        """Move the signer to another chain.

        Raises:
            UserRejected: The user refused the switch
            NetworkError: The chain is not reachable
        """
        pass

    @abstractmethod
    async def send_transaction(self, tx: dict) -> str:
        """Sign and broadcast a transaction.

        Args:
            tx: Fields from/to/value/data/gas/chainId; the signer fills in
                nonce and fee fields

        Returns:
            Transaction hash (0x-prefixed hex)

        Raises:
            UserRejected: The user declined to sign
        """
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str, timeout: float, poll_latency: float) -> dict:
        """Wait until the transaction is mined.

        Raises:
            web3.exceptions.TimeExhausted or asyncio.TimeoutError on timeout
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(address={self.address})"
