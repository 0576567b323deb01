"""Deposit identifier derivation.

Two kinds of identifier exist for a deposit:

- Preliminary: derived here before submission from (sender, recipient,
  destination chain id, timestamp). It is only a client-side correlation
  handle for display while the transaction is pending. The settlement
  contract assigns its own identifier from inclusion-time data, so the two
  are not expected to match.
- Canonical: the id emitted in the settlement event after confirmation. It
  is produced only by EventReconciler and is the one downstream tracking
  must use.
"""

import logging
import time
from typing import Callable, Optional

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from bridgeflow.bridge.models import CanonicalId, PreliminaryId

logger = logging.getLogger(__name__)

IDENTIFIER_SIZE = 32


class DepositIdentifierDeriver:
    """Derives preliminary identifiers and wraps canonical ones."""

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        """Initialize the deriver.

        Args:
            clock: Returns the current time as an integer (ns by default)
        """
        self._clock = clock or time.time_ns

    def derive_preliminary(
        self,
        sender: str,
        recipient: str,
        destination_chain_id: int,
        timestamp: Optional[int] = None,
    ) -> PreliminaryId:
        """keccak256(abi.encode(sender, recipient, destinationChainId, timestamp))."""
        if timestamp is None:
            timestamp = self._clock()

        digest = keccak(
            encode(
                ["address", "address", "uint256", "uint256"],
                [
                    to_checksum_address(sender),
                    to_checksum_address(recipient),
                    destination_chain_id,
                    timestamp,
                ],
            )
        )
        preliminary = PreliminaryId(digest)
        logger.debug(f"Preliminary deposit id {preliminary.hex} (ts={timestamp})")
        return preliminary

    @staticmethod
    def canonical_from_event(raw_id: bytes) -> CanonicalId:
        """Wrap the id decoded from a settlement event."""
        raw_id = bytes(raw_id)
        if len(raw_id) != IDENTIFIER_SIZE:
            raise ValueError(f"Deposit id must be {IDENTIFIER_SIZE} bytes, got {len(raw_id)}")
        return CanonicalId(raw_id)
