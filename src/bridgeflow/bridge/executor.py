"""Submits an estimator-approved batch and waits for inclusion."""

import asyncio
import logging
from dataclasses import dataclass

from hexbytes import HexBytes
from web3.exceptions import TimeExhausted

from bridgeflow.bridge.models import ComposedBatch
from bridgeflow.bridge.preflight import TRANSPORT_ERRORS
from bridgeflow.errors import BridgeError, ConfirmationTimeout, NetworkError
from bridgeflow.signing.base import BridgeSigner

logger = logging.getLogger(__name__)


def normalize_tx_hash(tx_hash) -> str:
    if isinstance(tx_hash, (bytes, bytearray)):
        return HexBytes(tx_hash).to_0x_hex()
    tx_hash = str(tx_hash)
    return tx_hash if tx_hash.startswith("0x") else f"0x{tx_hash}"


@dataclass(frozen=True)
class ExecutionOutcome:
    """A mined bridge transaction, successful or reverted."""

    tx_hash: str
    receipt: dict

    @property
    def confirmed(self) -> bool:
        return int(self.receipt.get("status", 0)) == 1


class BatchExecutor:
    """Sends the batch as one transaction. No retries are attempted."""

    def __init__(
        self,
        chain_id: int,
        confirmation_timeout: float = 600.0,
        poll_interval: float = 2.0,
    ):
        self.chain_id = chain_id
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval

    async def broadcast(self, batch: ComposedBatch, signer: BridgeSigner, gas_limit: int) -> str:
        """Sign and send the batch. Returns the transaction hash.

        Raises:
            UserRejected: The signer declined
            NetworkError: The transaction could not be sent (nothing broadcast)
        """
        tx = batch.to_transaction(signer.address)
        tx["gas"] = gas_limit
        tx["chainId"] = self.chain_id

        try:
            tx_hash = await signer.send_transaction(tx)
        except BridgeError:
            raise
        except Exception as e:
            logger.error(f"Bridge transaction broadcast failed: {e}")
            raise NetworkError(f"Failed to send bridge transaction: {e}") from e

        tx_hash = normalize_tx_hash(tx_hash)
        logger.info(f"Bridge transaction broadcast: {tx_hash} (value={batch.value}, gas={gas_limit})")
        return tx_hash

    async def wait(self, tx_hash: str, signer: BridgeSigner) -> ExecutionOutcome:
        """Wait for inclusion of a broadcast transaction.

        Raises:
            ConfirmationTimeout: Not mined within the confirmation window
            NetworkError: Lost the node or the receipt lookup failed (tx_hash attached)
        """
        try:
            receipt = await signer.wait_for_receipt(
                tx_hash, timeout=self.confirmation_timeout, poll_latency=self.poll_interval
            )
        except (TimeExhausted, asyncio.TimeoutError) as e:
            logger.error(f"Bridge transaction {tx_hash} not mined after {self.confirmation_timeout}s")
            raise ConfirmationTimeout(
                f"Transaction {tx_hash} was not confirmed within {self.confirmation_timeout:.0f}s",
                tx_hash=tx_hash,
            ) from e
        except TRANSPORT_ERRORS as e:
            logger.error(f"Lost connection while waiting for {tx_hash}: {e}")
            raise NetworkError(
                f"Connection lost while waiting for transaction {tx_hash}: {e}", tx_hash=tx_hash
            ) from e
        except BridgeError:
            raise
        except Exception as e:
            logger.error(f"Receipt lookup failed for {tx_hash}: {e}")
            raise NetworkError(
                f"Could not fetch receipt for transaction {tx_hash}: {e}", tx_hash=tx_hash
            ) from e

        outcome = ExecutionOutcome(tx_hash=tx_hash, receipt=dict(receipt))
        if outcome.confirmed:
            logger.info(f"Bridge transaction confirmed: {tx_hash}")
        else:
            logger.warning(f"Bridge transaction reverted on-chain: {tx_hash}")
        return outcome

    async def submit(self, batch: ComposedBatch, signer: BridgeSigner, gas_limit: int) -> ExecutionOutcome:
        """Broadcast the batch and wait for its receipt."""
        tx_hash = await self.broadcast(batch, signer, gas_limit)
        return await self.wait(tx_hash, signer)
