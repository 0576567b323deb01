"""Health check endpoints."""

from fastapi import APIRouter, Depends

from bridgeflow import __version__
from bridgeflow.api.routes.bridge import get_balance_inspector
from bridgeflow.chains import CHAINS
from bridgeflow.config import get_settings
from bridgeflow.services.balances import BalanceInspector

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "bridgeflow"}


@router.get("/health/detailed")
async def detailed_health(inspector: BalanceInspector = Depends(get_balance_inspector)):
    """Detailed health check with configuration and RPC reachability.

    Status is "degraded" when the source chain's read connection is down,
    since quotes and simulation both depend on it.
    """
    settings = get_settings()
    rpc = await inspector.rpc_status(CHAINS)
    source_ok = rpc.get(settings.source_chain, {}).get("reachable", False)
    return {
        "status": "healthy" if source_ok else "degraded",
        "service": "bridgeflow",
        "version": __version__,
        "source_chain": settings.source_chain,
        "rpc": rpc,
        "config": settings.get_safe_dict(),
    }
