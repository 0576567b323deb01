"""Pytest configuration and fixtures."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode
from eth_utils import to_checksum_address

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["BRIDGE_PRIVATE_KEY"] = ""

from bridgeflow.bridge import abi
from bridgeflow.bridge.composer import BatchComposer
from bridgeflow.bridge.executor import BatchExecutor
from bridgeflow.bridge.identifiers import DepositIdentifierDeriver
from bridgeflow.bridge.models import BridgeRequest
from bridgeflow.bridge.preflight import PreflightEstimator
from bridgeflow.bridge.reconciler import EventReconciler
from bridgeflow.chains import get_chain
from bridgeflow.routing.base import PricingBackend, RouterBackend
from bridgeflow.routing.quotes import QuoteEngine
from bridgeflow.services.balances import BalanceInspector
from bridgeflow.services.bridge_service import BridgeService
from bridgeflow.signing.base import BridgeSigner

REQUESTER = to_checksum_address("0x" + "11" * 20)
RECIPIENT = to_checksum_address("0x" + "22" * 20)
SETTLEMENT = "0x4cD00E387622C35bDDB9b4c962C136462338BC31"
PRIMARY_ROUTER = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
FALLBACK_ROUTER = "0xd9e1cE17f2641f24aE83637ab66a2cca9C378B9F"
TX_HASH = "0x" + "ab" * 32
CANONICAL_ID = bytes.fromhex("cd" * 32)
FIXED_NOW = 1_700_000_000


class FakeBackend(PricingBackend):
    """Router backend that returns a fixed amount or raises."""

    def __init__(self, backend_id: RouterBackend, router_address: str, amount_out=None, error=None):
        self._backend_id = backend_id
        self._router_address = router_address
        self.amount_out = amount_out
        self.error = error
        self.calls = []

    @property
    def backend_id(self) -> RouterBackend:
        return self._backend_id

    @property
    def router_address(self) -> str:
        return self._router_address

    async def get_amounts_out(self, amount_in: int, path: list[str]) -> list[int]:
        self.calls.append((amount_in, list(path)))
        if self.error is not None:
            raise self.error
        return [amount_in, self.amount_out]


class FakeSigner(BridgeSigner):
    """In-memory signer recording what it was asked to send."""

    def __init__(self, chain_id: int = 1, receipt: dict = None, send_error=None, wait_error=None):
        self.chain_id = chain_id
        self.receipt = receipt
        self.send_error = send_error
        self.wait_error = wait_error
        self.sent = []
        self.switches = []

    @property
    def address(self) -> str:
        return REQUESTER

    async def get_chain_id(self) -> int:
        return self.chain_id

    async def switch_chain(self, chain_id: int) -> None:
        self.switches.append(chain_id)
        self.chain_id = chain_id

    async def send_transaction(self, tx: dict) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(tx)
        return TX_HASH

    async def wait_for_receipt(self, tx_hash: str, timeout: float, poll_latency: float) -> dict:
        if self.wait_error is not None:
            raise self.wait_error
        return self.receipt


def deposit_log(
    address: str = SETTLEMENT,
    depositor: str = REQUESTER,
    token: str = None,
    amount: int = 990,
    raw_id: bytes = CANONICAL_ID,
    log_index: int = 3,
) -> dict:
    """A RelayErc20Deposit log as it appears in a receipt."""
    token = token or get_chain("ethereum").settlement_asset.address
    return {
        "address": address,
        "topics": [abi.SETTLEMENT_DEPOSIT_TOPIC],
        "data": encode(abi.SETTLEMENT_DEPOSIT_EVENT_FIELDS, [depositor, token, amount, raw_id]),
        "logIndex": log_index,
    }


def make_receipt(status: int = 1, logs: list = None) -> dict:
    return {"transactionHash": TX_HASH, "status": status, "logs": logs or []}


def mock_web3(native_balance: int = 10**19, token_balance: int = 5_000_000, gas: int = 200_000) -> MagicMock:
    """Read-only AsyncWeb3 stand-in."""
    web3 = MagicMock()
    web3.eth.get_balance = AsyncMock(return_value=native_balance)
    web3.eth.call = AsyncMock(return_value=encode(["uint256"], [token_balance]))
    web3.eth.estimate_gas = AsyncMock(return_value=gas)
    web3.eth.get_block_number = AsyncMock(return_value=19_000_000)
    return web3


@pytest.fixture
def ethereum():
    return get_chain("ethereum")


@pytest.fixture
def bridge_request() -> BridgeRequest:
    return BridgeRequest(
        source_asset="ETH",
        source_chain="ethereum",
        destination_chain="somnia",
        amount="0.5",
        requester=REQUESTER,
        recipient=RECIPIENT,
    )


@pytest.fixture
def primary_backend() -> FakeBackend:
    return FakeBackend(RouterBackend.PRIMARY, PRIMARY_ROUTER, amount_out=1000)


@pytest.fixture
def fallback_backend() -> FakeBackend:
    return FakeBackend(RouterBackend.FALLBACK, FALLBACK_ROUTER, amount_out=995)


@pytest.fixture
def quote_engine(primary_backend, fallback_backend) -> QuoteEngine:
    return QuoteEngine(primary_backend, fallback_backend, slippage_bps=100)


@pytest.fixture
def composer(ethereum) -> BatchComposer:
    return BatchComposer(ethereum, SETTLEMENT, clock=lambda: FIXED_NOW)


@pytest.fixture
def deriver() -> DepositIdentifierDeriver:
    return DepositIdentifierDeriver(clock=lambda: 1_700_000_000_000_000_000)


@pytest.fixture
def read_web3() -> MagicMock:
    return mock_web3()


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner(receipt=make_receipt(logs=[deposit_log()]))


@pytest.fixture
def service(quote_engine, composer, deriver, read_web3) -> BridgeService:
    """BridgeService wired entirely to in-memory fakes."""
    return BridgeService(
        quote_engine=quote_engine,
        composer=composer,
        preflight=PreflightEstimator(read_web3),
        executor=BatchExecutor(chain_id=1, confirmation_timeout=5, poll_interval=0.01),
        reconciler=EventReconciler(SETTLEMENT),
        balances=BalanceInspector(providers={"ethereum": read_web3, "somnia": read_web3}),
        deriver=deriver,
    )
