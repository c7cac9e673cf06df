from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from swap_supply.adapters.aave_adapter.adapter import (
    INTEREST_RATE_MODE_STABLE,
    AaveAdapter,
)
from swap_supply.core.constants.contracts import SEPOLIA_AAVE_LENDING_POOL, SEPOLIA_LINK
from swap_supply.core.errors import InvalidAmountError, NetworkUnavailableError
from swap_supply.core.utils.transaction import Credential

OWNER = "0xaAaAaAaaAaAaAaaAaAAAAAAAAaaaAaAaAaaAaaAa"
POOL_OVERRIDE = "0x3333333333333333333333333333333333333333"
MODULE = "swap_supply.adapters.aave_adapter.adapter"


def _word(value: int) -> str:
    return hex(value)[2:].rjust(64, "0")


def _service_unavailable() -> aiohttp.ClientResponseError:
    return aiohttp.ClientResponseError(
        request_info=MagicMock(), history=(), status=503, message="Service Unavailable"
    )


def _connection_refused() -> aiohttp.ClientConnectorError:
    return aiohttp.ClientConnectorError(
        MagicMock(host="127.0.0.1", port=1, ssl=True),
        ConnectionRefusedError(111, "Connection refused"),
    )

class TestPayloads:
    def test_deposit(self):
        payload = AaveAdapter().build_deposit(
            asset=SEPOLIA_LINK.address, amount=10**18, on_behalf_of=OWNER
        )
        assert payload.to == SEPOLIA_AAVE_LENDING_POOL
        assert payload.fn_name == "deposit"
        assert payload.data.startswith("0xe8eda9df")
        body = payload.data[10:]
        assert body[64:128] == _word(10**18)
        assert OWNER.lower()[2:] in body[128:192]
        # referral code 0
        assert body[192:256] == _word(0)

    def test_configured_pool(self):
        adapter = AaveAdapter({"lending_pool_address": POOL_OVERRIDE})
        payload = adapter.build_deposit(
            asset=SEPOLIA_LINK.address, amount=1, on_behalf_of=OWNER
        )
        assert payload.to == POOL_OVERRIDE

    def test_approve_targets_pool(self):
        payload = AaveAdapter().build_approve_call(SEPOLIA_LINK, 5)
        assert payload.to == SEPOLIA_LINK.address
        assert SEPOLIA_AAVE_LENDING_POOL.lower()[2:] in payload.data

    def test_withdraw_borrow_repay_selectors(self):
        adapter = AaveAdapter()
        asset = SEPOLIA_LINK.address
        assert adapter.build_withdraw(asset=asset, amount=1, to=OWNER).data.startswith(
            "0x69328dec"
        )
        assert adapter.build_borrow(
            asset=asset, amount=1, on_behalf_of=OWNER
        ).data.startswith("0xa415bcad")
        assert adapter.build_repay(
            asset=asset, amount=1, on_behalf_of=OWNER, rate_mode=INTEREST_RATE_MODE_STABLE
        ).data.startswith("0x573ade81")

    @pytest.mark.parametrize("amount", [0, -5])
    def test_rejects_non_positive_amounts(self, amount):
        with pytest.raises(InvalidAmountError):
            AaveAdapter().build_deposit(
                asset=SEPOLIA_LINK.address, amount=amount, on_behalf_of=OWNER
            )

    def test_rejects_unknown_rate_mode(self):
        with pytest.raises(ValueError, match="interest rate mode"):
            AaveAdapter().build_borrow(
                asset=SEPOLIA_LINK.address,
                amount=1,
                on_behalf_of=OWNER,
                interest_rate_mode=3,
            )


@pytest.mark.asyncio
async def test_deposit_sends_through_submitter():
    submitter = MagicMock()
    submitter.send = AsyncMock(return_value="receipt")
    credential = Credential(OWNER, AsyncMock(return_value=b""))
    adapter = AaveAdapter(submitter=submitter)

    result = await adapter.deposit(credential, asset=SEPOLIA_LINK.address, amount=7)

    assert result == "receipt"
    sent_credential, payload = submitter.send.await_args.args
    assert sent_credential is credential
    assert payload.fn_name == "deposit"
    assert OWNER.lower()[2:] in payload.data


@pytest.mark.asyncio
class TestReserveData:
    def _web3(self, raw):
        web3 = MagicMock()
        web3.to_checksum_address = lambda a: a
        pool = MagicMock()
        pool.functions.getReserveData.return_value.call = AsyncMock(return_value=raw)
        web3.eth.contract.return_value = pool
        return web3

    @patch(f"{MODULE}.web3_from_chain_id")
    async def test_maps_fields(self, mock_web3_ctx):
        raw = list(range(1, 11))
        mock_web3_ctx.return_value.__aenter__.return_value = self._web3(raw)

        data = await AaveAdapter().get_reserve_data(SEPOLIA_LINK.address)

        assert data.available_liquidity == 1
        assert data.liquidity_rate == 4
        assert data.last_update_timestamp == 10

    @patch(f"{MODULE}.web3_from_chain_id")
    async def test_unexpected_shape(self, mock_web3_ctx):
        mock_web3_ctx.return_value.__aenter__.return_value = self._web3([1, 2, 3])

        with pytest.raises(ValueError, match="Unexpected getReserveData shape"):
            await AaveAdapter().get_reserve_data(SEPOLIA_LINK.address)

    @pytest.mark.parametrize("error", [_service_unavailable, _connection_refused])
    @patch(f"{MODULE}.web3_from_chain_id")
    async def test_rpc_unreachable(self, mock_web3_ctx, error):
        web3 = self._web3(None)
        web3.eth.contract.return_value.functions.getReserveData.return_value.call = (
            AsyncMock(side_effect=error())
        )
        mock_web3_ctx.return_value.__aenter__.return_value = web3

        with pytest.raises(NetworkUnavailableError, match="reserve data"):
            await AaveAdapter().get_reserve_data(SEPOLIA_LINK.address)

    async def test_missing_rpc_propagates(self):
        with pytest.raises(ValueError, match="No RPC configured"):
            await AaveAdapter().get_reserve_data(SEPOLIA_LINK.address)
