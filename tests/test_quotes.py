"""Tests for the quote engine and router backends."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import decode, encode

from bridgeflow.bridge import abi
from bridgeflow.bridge.models import AssetPair
from bridgeflow.errors import ErrorCategory, QuoteUnavailable
from bridgeflow.routing.base import RouterBackend
from bridgeflow.routing.quotes import QuoteEngine, apply_slippage
from bridgeflow.routing.v2_router import V2RouterBackend

from tests.conftest import FALLBACK_ROUTER, PRIMARY_ROUTER, FakeBackend


@pytest.fixture
def pair(ethereum) -> AssetPair:
    return AssetPair(ethereum.wrapped_native.address, ethereum.settlement_asset.address)


class TestSlippage:
    """Tests for the minimum-output calculation."""

    def test_one_percent(self):
        assert apply_slippage(1000, 100) == 990

    def test_rounds_down(self):
        # 999 * 9900 / 10000 = 989.01
        assert apply_slippage(999, 100) == 989

    def test_zero_slippage(self):
        assert apply_slippage(1000, 0) == 1000

    def test_min_never_exceeds_expected(self):
        for expected in (1, 7, 99, 12345, 10**24 + 3):
            for bps in (0, 1, 50, 100, 9999):
                assert apply_slippage(expected, bps) <= expected


class TestQuoteEngine:
    """Tests for primary/fallback quoting."""

    @pytest.mark.asyncio
    async def test_primary_quote(self, quote_engine, primary_backend, fallback_backend, pair):
        """Scenario A pricing: 1000 expected, 1% slippage -> 990 minimum."""
        quote = await quote_engine.get_quote(5 * 10**17, pair)

        assert quote.backend_id == RouterBackend.PRIMARY
        assert quote.router_address == PRIMARY_ROUTER
        assert quote.amount_out_expected == 1000
        assert quote.amount_out_min == 990
        assert quote.path == pair.path
        assert fallback_backend.calls == []

    @pytest.mark.asyncio
    async def test_fallback_on_primary_failure(self, fallback_backend, pair):
        """Scenario B: primary throws, fallback answers with the same path."""
        primary = FakeBackend(RouterBackend.PRIMARY, PRIMARY_ROUTER, error=RuntimeError("execution reverted"))
        engine = QuoteEngine(primary, fallback_backend)

        quote = await engine.get_quote(10**18, pair)

        assert quote.backend_id == RouterBackend.FALLBACK
        assert quote.router_address == FALLBACK_ROUTER
        assert quote.amount_out_expected == 995
        assert primary.calls == fallback_backend.calls

    @pytest.mark.asyncio
    async def test_zero_output_falls_back(self, fallback_backend, pair):
        primary = FakeBackend(RouterBackend.PRIMARY, PRIMARY_ROUTER, amount_out=0)
        engine = QuoteEngine(primary, fallback_backend)

        quote = await engine.get_quote(10**18, pair)

        assert quote.backend_id == RouterBackend.FALLBACK

    @pytest.mark.asyncio
    async def test_both_fail(self, pair):
        primary = FakeBackend(RouterBackend.PRIMARY, PRIMARY_ROUTER, error=RuntimeError("no liquidity"))
        fallback = FakeBackend(RouterBackend.FALLBACK, FALLBACK_ROUTER, error=TimeoutError("timed out"))
        engine = QuoteEngine(primary, fallback)

        with pytest.raises(QuoteUnavailable) as exc_info:
            await engine.get_quote(10**18, pair)

        error = exc_info.value
        assert error.category == ErrorCategory.QUOTE_UNAVAILABLE
        assert set(error.errors) == {"primary", "fallback"}
        assert "no liquidity" in error.message
        assert "timed out" in error.message

    def test_backends_must_match_slots(self, primary_backend, fallback_backend):
        with pytest.raises(ValueError):
            QuoteEngine(fallback_backend, primary_backend)

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, quote_engine, pair):
        with pytest.raises(ValueError):
            await quote_engine.get_quote(0, pair)


class TestV2RouterBackend:
    """Tests for getAmountsOut over eth_call."""

    @pytest.mark.asyncio
    async def test_get_amounts_out(self, pair):
        web3 = MagicMock()
        web3.eth.call = AsyncMock(return_value=encode(["uint256[]"], [[10**18, 3_000_000_000]]))
        backend = V2RouterBackend(RouterBackend.PRIMARY, PRIMARY_ROUTER.lower(), web3)

        amounts = await backend.get_amounts_out(10**18, list(pair.path))

        assert amounts == [10**18, 3_000_000_000]
        assert backend.router_address == PRIMARY_ROUTER

        tx = web3.eth.call.call_args.args[0]
        assert tx["to"] == PRIMARY_ROUTER
        data = bytes.fromhex(tx["data"][2:])
        assert data[:4] == abi.selector(abi.ROUTER_GET_AMOUNTS_OUT)
        amount_in, path = decode(["uint256", "address[]"], data[4:])
        assert amount_in == 10**18
        assert [p.lower() for p in path] == [p.lower() for p in pair.path]

    @pytest.mark.asyncio
    async def test_malformed_answer(self, pair):
        web3 = MagicMock()
        web3.eth.call = AsyncMock(return_value=encode(["uint256[]"], [[1]]))
        backend = V2RouterBackend(RouterBackend.PRIMARY, PRIMARY_ROUTER, web3)

        with pytest.raises(ValueError):
            await backend.get_amounts_out(10**18, list(pair.path))
