"""Transaction signing for bridge batches.

- BridgeSigner: interface the pipeline depends on
- LocalAccountSigner: in-memory key with its own write connection
"""

from bridgeflow.signing.base import BridgeSigner
from bridgeflow.signing.factory import create_local_signer
from bridgeflow.signing.local import LocalAccountSigner

__all__ = [
    "BridgeSigner",
    "LocalAccountSigner",
    "create_local_signer",
]
