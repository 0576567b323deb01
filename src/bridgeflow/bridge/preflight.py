"""Preflight gas simulation of the composed batch.

This is the submission gate: a batch whose simulation fails is never sent.
Known settlement-contract custom errors are mapped to typed categories; any
other revert becomes a generic "would revert" failure with whatever reason
could be decoded.
"""

import asyncio
import logging
from typing import Optional

import aiohttp
from eth_abi import decode
from hexbytes import HexBytes
from web3 import AsyncWeb3
from web3.exceptions import ProviderConnectionError, RequestTimedOut, TooManyRequests

from bridgeflow.bridge import abi
from bridgeflow.bridge.models import ComposedBatch
from bridgeflow.errors import DecodedRevert, NetworkError, SimulationFailed

logger = logging.getLogger(__name__)

REVERT_SELECTORS: dict[bytes, DecodedRevert] = {
    abi.selector(abi.ERROR_INSUFFICIENT_BALANCE): DecodedRevert.INSUFFICIENT_BALANCE,
    abi.selector(abi.ERROR_INVALID_ID): DecodedRevert.INVALID_IDENTIFIER,
    abi.selector(abi.ERROR_ID_ALREADY_USED): DecodedRevert.IDENTIFIER_REUSED,
}

REVERT_MESSAGES = {
    DecodedRevert.INSUFFICIENT_BALANCE: "Insufficient balance to complete the bridge",
    DecodedRevert.INVALID_IDENTIFIER: "Settlement contract rejected the deposit identifier",
    DecodedRevert.IDENTIFIER_REUSED: "Deposit identifier was already used",
}

# Node unreachable or refusing service, as opposed to the call reverting.
# aiohttp.ClientError covers HTTP status failures raised by the async provider.
TRANSPORT_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    aiohttp.ClientError,
    ProviderConnectionError,
    TooManyRequests,
    RequestTimedOut,
)

FIXED_GAS_MARGIN = 10_000


def _as_bytes(value) -> Optional[bytes]:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and value.startswith("0x"):
        try:
            return bytes(HexBytes(value))
        except ValueError:
            return None
    return None


def extract_revert_data(exc: BaseException) -> Optional[bytes]:
    """Dig the raw revert payload out of a web3/JSON-RPC exception."""
    candidates = [getattr(exc, "data", None)]

    rpc_response = getattr(exc, "rpc_response", None)
    if isinstance(rpc_response, dict):
        candidates.append((rpc_response.get("error") or {}).get("data"))

    for arg in exc.args:
        if isinstance(arg, dict):
            candidates.append(arg.get("data"))
        else:
            candidates.append(arg)

    for candidate in candidates:
        if isinstance(candidate, dict):
            candidate = candidate.get("data")
        data = _as_bytes(candidate)
        if data is not None and len(data) >= 4:
            return data
    return None


def decode_revert_reason(data: bytes) -> Optional[str]:
    """Human-readable reason for Error(string) and Panic(uint256) payloads."""
    try:
        if data[:4] == abi.ERROR_STRING_SELECTOR:
            (reason,) = decode(["string"], data[4:])
            return reason
        if data[:4] == abi.PANIC_SELECTOR:
            (code,) = decode(["uint256"], data[4:])
            return f"panic code 0x{code:02x}"
    except Exception:
        logger.debug(f"Undecodable revert payload: 0x{data.hex()}")
    return None


def classify_simulation_error(exc: BaseException) -> SimulationFailed:
    """Turn a failed eth_estimateGas into a typed SimulationFailed."""
    data = extract_revert_data(exc)
    if data is not None:
        kind = REVERT_SELECTORS.get(data[:4])
        if kind is not None:
            return SimulationFailed(REVERT_MESSAGES[kind], revert=kind, revert_data="0x" + data.hex())

    reason = decode_revert_reason(data) if data is not None else None
    reason = reason or getattr(exc, "message", None) or str(exc) or type(exc).__name__
    return SimulationFailed(
        f"Bridge transaction would revert: {reason}",
        reason=reason,
        revert_data="0x" + data.hex() if data is not None else None,
    )


class PreflightEstimator:
    """Simulates the whole batch with eth_estimateGas before submission."""

    def __init__(self, web3: AsyncWeb3, gas_buffer_percent: int = 25):
        """Initialize the estimator.

        Args:
            web3: Read-only connection to the source chain
            gas_buffer_percent: Padding applied to the node's estimate
        """
        self.web3 = web3
        self.gas_buffer_percent = gas_buffer_percent

    def pad(self, estimate: int) -> int:
        return estimate * (100 + self.gas_buffer_percent) // 100 + FIXED_GAS_MARGIN

    async def estimate(self, batch: ComposedBatch, sender: str) -> int:
        """
        Simulate the batch as sent by `sender`.

        Returns:
            Gas limit to submit with (padded estimate)

        Raises:
            SimulationFailed: The batch would revert
            NetworkError: The node could not be reached
        """
        tx = batch.to_transaction(sender)
        try:
            estimate = int(await self.web3.eth.estimate_gas(tx))
        except TRANSPORT_ERRORS as e:
            logger.warning(f"Gas simulation transport failure: {e}")
            raise NetworkError(f"Could not simulate bridge transaction: {e}") from e
        except Exception as e:
            error = classify_simulation_error(e)
            logger.warning(f"Gas simulation rejected batch ({error.category.value}): {error.message}")
            raise error from e

        gas_limit = self.pad(estimate)
        logger.info(f"Simulation passed: estimate={estimate} gas_limit={gas_limit}")
        return gas_limit
