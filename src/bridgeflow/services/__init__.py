"""Services for balance lookups and bridge orchestration."""

from bridgeflow.services.balances import BalanceInspector, BalanceQuery, BalanceReading
from bridgeflow.services.bridge_service import BridgeService, QuotePreview

__all__ = [
    "BalanceInspector",
    "BalanceQuery",
    "BalanceReading",
    "BridgeService",
    "QuotePreview",
]
