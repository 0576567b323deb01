"""End-to-end tests for BridgeService against in-memory fakes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from web3.exceptions import ContractLogicError, TimeExhausted, Web3RPCError

from bridgeflow.bridge import abi
from bridgeflow.bridge.models import BridgeRequest, CanonicalId, PreliminaryId
from bridgeflow.errors import (
    ConfirmationTimeout,
    ErrorCategory,
    NetworkError,
    QuoteUnavailable,
    SettlementReverted,
    SimulationFailed,
    UserRejected,
    ValidationError,
)
from bridgeflow.routing.base import RouterBackend

from tests.conftest import CANONICAL_ID, REQUESTER, TX_HASH, FakeSigner, make_receipt


def insufficient_balance_revert() -> ContractLogicError:
    return ContractLogicError(
        "execution reverted", data="0x" + abi.selector(abi.ERROR_INSUFFICIENT_BALANCE).hex()
    )


class TestBridgeHappyPath:
    """Scenarios A and B."""

    @pytest.mark.asyncio
    async def test_scenario_a(self, service, bridge_request, signer):
        """Primary quote, four steps, simulation passes, canonical id recovered."""
        result = await service.bridge(bridge_request, signer)

        assert result.success is True
        assert result.tx_hash == TX_HASH
        assert result.reconciled is True
        assert isinstance(result.deposit_identifier, CanonicalId)
        assert result.deposit_identifier.value == CANONICAL_ID
        assert result.state == "settled"
        assert result.category is None
        assert result.warning is None
        assert result.receipt.settled_amount == 990
        assert len(signer.sent) == 1

    @pytest.mark.asyncio
    async def test_scenario_b_fallback(self, service, bridge_request, signer, primary_backend, fallback_backend):
        """Primary throws, the fallback quote flows into the batch unchanged."""
        primary_backend.error = RuntimeError("primary router down")

        result = await service.bridge(bridge_request, signer)

        assert result.success is True
        assert len(fallback_backend.calls) == 1
        sent = bytes.fromhex(signer.sent[0]["data"][2:])
        # fallback router address appears in the approve and swap steps
        assert bytes.fromhex(fallback_backend.router_address[2:].lower()) in sent

    @pytest.mark.asyncio
    async def test_result_dict_shape(self, service, bridge_request, signer):
        data = (await service.bridge(bridge_request, signer)).to_dict()

        assert data["success"] is True
        assert data["txHash"] == TX_HASH
        assert data["depositIdentifier"] == "0x" + CANONICAL_ID.hex()
        assert data["reconciled"] is True

    @pytest.mark.asyncio
    async def test_post_check_balances(self, service, bridge_request, signer):
        result = await service.bridge(bridge_request, signer)

        assert result.balances_after == {
            "sourceNative": "10",
            "sourceWrapped": "0.000000000005",
            "destinationNative": "10",
        }

    @pytest.mark.asyncio
    async def test_post_check_failure_is_not_fatal(self, service, bridge_request, signer, read_web3):
        balance_calls = {"count": 0}

        async def get_balance(address):
            balance_calls["count"] += 1
            if balance_calls["count"] > 1:
                raise ConnectionError("rpc down")
            return 10**19

        read_web3.eth.get_balance = get_balance

        result = await service.bridge(bridge_request, signer)

        assert result.success is True
        assert result.balances_after["sourceNative"] is None

    @pytest.mark.asyncio
    async def test_unreconciled(self, service, bridge_request):
        signer = FakeSigner(receipt=make_receipt(logs=[]))

        result = await service.bridge(bridge_request, signer)

        assert result.success is True
        assert result.reconciled is False
        assert isinstance(result.deposit_identifier, PreliminaryId)
        assert result.state == "unreconciled"
        assert result.warning.category == ErrorCategory.RECONCILIATION

    @pytest.mark.asyncio
    async def test_switches_network(self, service, bridge_request):
        signer = FakeSigner(chain_id=8453, receipt=make_receipt(logs=[]))

        result = await service.bridge(bridge_request, signer)

        assert result.success is True
        assert signer.switches == [1]


class TestBridgeRejections:
    """Failures before broadcast: nothing is sent."""

    @pytest.mark.asyncio
    async def test_scenario_c_insufficient_balance(self, service, bridge_request, signer, read_web3):
        """Simulation reverts with InsufficientBalance(); no tx hash exists."""
        read_web3.eth.estimate_gas = AsyncMock(side_effect=insufficient_balance_revert())

        result = await service.bridge(bridge_request, signer)

        assert result.success is False
        assert result.tx_hash is None
        assert result.category == ErrorCategory.INSUFFICIENT_BALANCE
        assert result.state == "rejected"
        assert signer.sent == []

    @pytest.mark.asyncio
    async def test_execute_raises_typed_error(self, service, bridge_request, signer, read_web3):
        read_web3.eth.estimate_gas = AsyncMock(side_effect=insufficient_balance_revert())

        with pytest.raises(SimulationFailed) as exc_info:
            await service.execute(bridge_request, signer)

        assert exc_info.value.category == ErrorCategory.INSUFFICIENT_BALANCE
        assert signer.sent == []

    @pytest.mark.asyncio
    async def test_both_quotes_fail_nothing_composed(
        self, service, bridge_request, signer, primary_backend, fallback_backend, read_web3
    ):
        primary_backend.error = RuntimeError("no pool")
        fallback_backend.error = RuntimeError("no pool either")

        with pytest.raises(QuoteUnavailable):
            await service.execute(bridge_request, signer)

        read_web3.eth.estimate_gas.assert_not_called()
        assert signer.sent == []

    @pytest.mark.asyncio
    async def test_insufficient_native_balance(self, service, bridge_request, signer, read_web3, primary_backend):
        read_web3.eth.get_balance = AsyncMock(return_value=10**17)

        result = await service.bridge(bridge_request, signer)

        assert result.success is False
        assert result.category == ErrorCategory.VALIDATION
        assert primary_backend.calls == []
        assert signer.sent == []

    @pytest.mark.asyncio
    async def test_user_rejects(self, service, bridge_request):
        signer = FakeSigner(send_error=UserRejected("Transaction was rejected by the user"))

        result = await service.bridge(bridge_request, signer)

        assert result.success is False
        assert result.category == ErrorCategory.USER_REJECTED
        assert result.tx_hash is None
        assert result.state == "rejected"

    @pytest.mark.asyncio
    async def test_wrong_source_chain(self, service, signer):
        request = BridgeRequest(
            source_asset="ETH",
            source_chain="base",
            destination_chain="somnia",
            amount="0.1",
            requester=REQUESTER,
        )

        with pytest.raises(ValidationError):
            await service.execute(request, signer)

    @pytest.mark.asyncio
    async def test_unexpected_compose_failure(self, service, bridge_request, signer, read_web3):
        """A non-bridge exception before broadcast still ends the attempt as rejected."""
        service.composer.compose = MagicMock(side_effect=KeyError("wrapped_native"))

        result = await service.bridge(bridge_request, signer)

        assert result.success is False
        assert result.state == "rejected"
        assert result.category == ErrorCategory.NETWORK
        assert result.tx_hash is None
        read_web3.eth.estimate_gas.assert_not_called()
        assert signer.sent == []


class TestBridgeAfterBroadcast:
    """Failures once the transaction has left the client."""

    @pytest.mark.asyncio
    async def test_reverted_on_chain(self, service, bridge_request):
        signer = FakeSigner(receipt=make_receipt(status=0))

        with pytest.raises(SettlementReverted) as exc_info:
            await service.execute(bridge_request, signer)

        assert exc_info.value.tx_hash == TX_HASH
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_reverted_result(self, service, bridge_request):
        signer = FakeSigner(receipt=make_receipt(status=0))

        result = await service.bridge(bridge_request, signer)

        assert result.success is False
        assert result.tx_hash == TX_HASH
        assert result.state == "reverted"
        assert result.category == ErrorCategory.SETTLEMENT_REVERTED

    @pytest.mark.asyncio
    async def test_confirmation_timeout(self, service, bridge_request):
        signer = FakeSigner(wait_error=TimeExhausted("not mined"))

        with pytest.raises(ConfirmationTimeout) as exc_info:
            await service.execute(bridge_request, signer)

        assert exc_info.value.tx_hash == TX_HASH

    @pytest.mark.asyncio
    async def test_rpc_error_while_waiting_keeps_tx_hash(self, service, bridge_request):
        signer = FakeSigner(wait_error=Web3RPCError("429 Too Many Requests"))

        result = await service.bridge(bridge_request, signer)

        assert result.success is False
        assert result.tx_hash == TX_HASH
        assert result.state == "submitted"
        assert result.category == ErrorCategory.NETWORK

    @pytest.mark.asyncio
    async def test_rpc_error_while_waiting_is_not_retryable(self, service, bridge_request):
        signer = FakeSigner(wait_error=Web3RPCError("429 Too Many Requests"))

        with pytest.raises(NetworkError) as exc_info:
            await service.execute(bridge_request, signer)

        assert exc_info.value.tx_hash == TX_HASH
        assert exc_info.value.retryable is False


class TestCompletionHooks:
    """Hooks run after settlement and never change the result."""

    @pytest.mark.asyncio
    async def test_hook_called_on_success(self, service, bridge_request, signer):
        hook = AsyncMock()
        service.add_hook(hook)

        result = await service.bridge(bridge_request, signer)

        hook.assert_awaited_once_with(bridge_request, result)

    @pytest.mark.asyncio
    async def test_hook_not_called_on_failure(self, service, bridge_request, signer, read_web3):
        hook = AsyncMock()
        service.add_hook(hook)
        read_web3.eth.estimate_gas = AsyncMock(side_effect=insufficient_balance_revert())

        await service.bridge(bridge_request, signer)

        hook.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_hook_is_logged(self, service, bridge_request, signer):
        service.add_hook(AsyncMock(side_effect=RuntimeError("xp service down")))
        second = AsyncMock()
        service.add_hook(second)

        result = await service.bridge(bridge_request, signer)

        assert result.success is True
        second.assert_awaited_once()


class TestPreviewQuote:
    """Tests for the read-only quote preview."""

    @pytest.mark.asyncio
    async def test_preview(self, service, primary_backend):
        primary_backend.amount_out = 1_500_000_000  # 1500 USDC

        preview = await service.preview_quote("0.5")

        assert preview.amount_in == "0.5"
        assert preview.amount_out == "1500"
        assert preview.amount_out_min == "1485"
        assert preview.rate == "3000.000000"
        assert preview.input_symbol == "ETH"
        assert preview.output_symbol == "USDC"
        assert preview.backend == RouterBackend.PRIMARY.value

    @pytest.mark.asyncio
    async def test_preview_rejects_zero(self, service, primary_backend):
        with pytest.raises(ValidationError):
            await service.preview_quote("0")
        assert primary_backend.calls == []
