"""Recovers the canonical deposit identifier from a mined batch's logs."""

import logging
from dataclasses import dataclass
from typing import Optional

from eth_abi import decode
from hexbytes import HexBytes

from bridgeflow.bridge import abi
from bridgeflow.bridge.identifiers import DepositIdentifierDeriver
from bridgeflow.bridge.models import (
    CanonicalId,
    PreliminaryId,
    SettlementReceipt,
    SettlementStatus,
)
from bridgeflow.errors import ReconciliationWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedDeposit:
    """Fields of one RelayErc20Deposit event."""

    depositor: str
    token: str
    amount: int
    identifier: CanonicalId
    log_index: Optional[int] = None


class EventReconciler:
    """Scans receipt logs for the settlement contract's deposit event."""

    def __init__(self, settlement_contract: str):
        self.settlement_contract = settlement_contract.lower()

    def decode_log(self, log) -> Optional[DecodedDeposit]:
        """Decode one log entry, or None if it is not our deposit event."""
        try:
            address = str(log["address"]).lower()
            topics = [HexBytes(t) for t in log.get("topics", [])]
            data = HexBytes(log.get("data", b""))
        except (KeyError, TypeError, ValueError, AttributeError):
            return None

        if address != self.settlement_contract:
            return None
        if not topics or bytes(topics[0]) != abi.SETTLEMENT_DEPOSIT_TOPIC:
            return None

        try:
            depositor, token, amount, raw_id = decode(abi.SETTLEMENT_DEPOSIT_EVENT_FIELDS, bytes(data))
            identifier = DepositIdentifierDeriver.canonical_from_event(raw_id)
        except Exception as e:
            logger.debug(f"Deposit-shaped log failed to decode: {e}")
            return None

        return DecodedDeposit(
            depositor=depositor,
            token=token,
            amount=amount,
            identifier=identifier,
            log_index=log.get("logIndex"),
        )

    def find_deposit(self, receipt: dict) -> Optional[DecodedDeposit]:
        """First decodable deposit event in log order."""
        for log in receipt.get("logs") or []:
            deposit = self.decode_log(log)
            if deposit is not None:
                return deposit
        return None

    def reconcile(
        self,
        tx_hash: str,
        receipt: dict,
        preliminary: PreliminaryId,
    ) -> tuple[SettlementReceipt, Optional[ReconciliationWarning]]:
        """
        Build the settlement receipt for a confirmed transaction.

        Returns:
            (receipt, warning). The warning is set when no deposit event was
            found: funds have moved but only the preliminary id is known.
        """
        deposit = self.find_deposit(receipt)

        if deposit is None:
            warning = ReconciliationWarning(
                f"No settlement event found in {tx_hash}; keeping preliminary id {preliminary.hex}",
                tx_hash=tx_hash,
            )
            logger.warning(warning.message)
            return (
                SettlementReceipt(
                    tx_hash=tx_hash,
                    status=SettlementStatus.SUCCESS,
                    deposit_identifier=preliminary,
                    settled_amount=None,
                    reconciled=False,
                ),
                warning,
            )

        logger.info(
            f"Reconciled {tx_hash}: canonical id {deposit.identifier.hex}, "
            f"settled {deposit.amount} of {deposit.token}"
        )
        return (
            SettlementReceipt(
                tx_hash=tx_hash,
                status=SettlementStatus.SUCCESS,
                deposit_identifier=deposit.identifier,
                settled_amount=deposit.amount,
                reconciled=True,
            ),
            None,
        )
