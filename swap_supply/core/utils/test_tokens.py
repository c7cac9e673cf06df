from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from swap_supply.core.constants.contracts import SEPOLIA_LINK, SEPOLIA_USDC
from swap_supply.core.constants.erc20_abi import TRANSFER_EVENT_TOPIC
from swap_supply.core.errors import InvalidAmountError
from swap_supply.core.utils.tokens import (
    build_approve_call,
    get_token_allowance,
    get_token_balance,
    sum_transfers_to,
    verify_token_decimals,
)

WALLET = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
OTHER = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
POOL = "0x224Cc4e5b50036108C1d862442365054600c260C"


def _topic(address: str) -> str:
    return "0x" + address.lower()[2:].rjust(64, "0")


def _transfer(token: str, src: str, dst: str, value: int) -> dict:
    return {
        "address": token,
        "topics": [TRANSFER_EVENT_TOPIC, _topic(src), _topic(dst)],
        "data": "0x" + hex(value)[2:].rjust(64, "0"),
    }


class TestSumTransfersTo:
    def test_sums_matching_transfers(self):
        logs = [
            _transfer(SEPOLIA_USDC.address, WALLET, POOL, 1_000_000),
            _transfer(SEPOLIA_LINK.address, POOL, WALLET, 7 * 10**17),
            _transfer(SEPOLIA_LINK.address, POOL, WALLET, 10**17),
            _transfer(SEPOLIA_LINK.address, POOL, OTHER, 5 * 10**18),
        ]
        total = sum_transfers_to(logs, SEPOLIA_LINK.address, WALLET.lower())
        assert total == 8 * 10**17

    def test_ignores_other_events_and_short_topics(self):
        logs = [
            {"address": SEPOLIA_LINK.address, "topics": ["0x" + "00" * 32], "data": "0x01"},
            {"address": SEPOLIA_LINK.address, "topics": [], "data": "0x"},
            {
                "address": SEPOLIA_LINK.address,
                "topics": [TRANSFER_EVENT_TOPIC, _topic(POOL)],
                "data": "0x01",
            },
        ]
        assert sum_transfers_to(logs, SEPOLIA_LINK.address, WALLET) == 0

    def test_empty_data(self):
        log = _transfer(SEPOLIA_LINK.address, POOL, WALLET, 0)
        log["data"] = "0x"
        assert sum_transfers_to([log], SEPOLIA_LINK.address, WALLET) == 0

    def test_no_logs(self):
        assert sum_transfers_to([], SEPOLIA_LINK.address, WALLET) == 0


def test_build_approve_call_rejects_negative():
    with pytest.raises(InvalidAmountError):
        build_approve_call(SEPOLIA_USDC.address, OTHER, -1)


def test_build_approve_call_allows_zero_for_revocation():
    payload = build_approve_call(SEPOLIA_USDC.address, OTHER, 0)
    assert payload.to == SEPOLIA_USDC.address
    assert payload.data.endswith("0" * 64)


@pytest.mark.asyncio
class TestVerifyTokenDecimals:
    def _web3(self, decimals: int):
        web3 = MagicMock()
        web3.to_checksum_address = lambda a: a
        contract = MagicMock()
        contract.functions.decimals.return_value.call = AsyncMock(return_value=decimals)
        web3.eth.contract.return_value = contract
        return web3

    @patch("swap_supply.core.utils.tokens.web3_from_chain_id")
    async def test_matching_decimals(self, mock_web3_ctx):
        mock_web3_ctx.return_value.__aenter__.return_value = self._web3(6)
        await verify_token_decimals(SEPOLIA_USDC)

    @patch("swap_supply.core.utils.tokens.web3_from_chain_id")
    async def test_mismatched_decimals(self, mock_web3_ctx):
        mock_web3_ctx.return_value.__aenter__.return_value = self._web3(18)
        with pytest.raises(InvalidAmountError, match="contract reports 18"):
            await verify_token_decimals(SEPOLIA_USDC)


@pytest.mark.asyncio
class TestTokenReads:
    def _web3(self):
        web3 = MagicMock()
        web3.to_checksum_address = lambda a: a
        contract = MagicMock()
        contract.functions.allowance.return_value.call = AsyncMock(return_value=250)
        contract.functions.balanceOf.return_value.call = AsyncMock(return_value=10**18)
        web3.eth.contract.return_value = contract
        return web3, contract

    @patch("swap_supply.core.utils.tokens.web3_from_chain_id")
    async def test_allowance(self, mock_web3_ctx):
        web3, contract = self._web3()
        mock_web3_ctx.return_value.__aenter__.return_value = web3

        allowance = await get_token_allowance(SEPOLIA_USDC.address, 11155111, WALLET, OTHER)

        assert allowance == 250
        contract.functions.allowance.assert_called_once_with(WALLET, OTHER)

    async def test_balance_with_existing_web3(self):
        web3, contract = self._web3()

        balance = await get_token_balance(
            SEPOLIA_LINK.address, 11155111, WALLET, web3=web3, block_identifier="latest"
        )

        assert balance == 10**18
        contract.functions.balanceOf.return_value.call.assert_awaited_once_with(
            block_identifier="latest"
        )
