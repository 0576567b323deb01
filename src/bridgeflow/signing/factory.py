"""Signer factory.

Creates the local signing backend from configuration. Browser wallets and
other external signers implement BridgeSigner themselves and are passed to
BridgeService directly.
"""

import logging
from typing import Optional

from bridgeflow.chains import CHAINS, get_chain
from bridgeflow.config import Settings, get_settings
from bridgeflow.signing.local import ConfirmCallback, LocalAccountSigner

logger = logging.getLogger(__name__)


def create_local_signer(
    settings: Optional[Settings] = None,
    confirm: Optional[ConfirmCallback] = None,
) -> LocalAccountSigner:
    """Create a LocalAccountSigner on the configured source chain.

    Raises:
        RuntimeError: If BRIDGE_PRIVATE_KEY is not set
    """
    settings = settings or get_settings()
    if not settings.has_signer:
        raise RuntimeError("BRIDGE_PRIVATE_KEY is not configured")

    rpc_urls = {
        chain.chain_id: settings.get_rpc_url(chain.key)
        for chain in CHAINS.values()
        if settings.get_rpc_url(chain.key)
    }
    source = get_chain(settings.source_chain)

    signer = LocalAccountSigner(
        settings.bridge_private_key,
        rpc_urls=rpc_urls,
        chain_id=source.chain_id,
        confirm=confirm,
        request_timeout=settings.rpc_timeout_seconds,
    )
    logger.info(f"Local signer ready for {signer.address} on {source.name}")
    return signer
