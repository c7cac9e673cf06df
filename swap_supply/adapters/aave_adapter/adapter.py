from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address

from swap_supply.core.adapters.BaseAdapter import BaseAdapter
from swap_supply.core.adapters.models import (
    CallPayload,
    ReserveData,
    TokenDescriptor,
    TransactionReceipt,
)
from swap_supply.core.constants.aave_v2_abi import LENDING_POOL_ABI
from swap_supply.core.constants.base import REFERRAL_CODE
from swap_supply.core.constants.contracts import SEPOLIA_AAVE_LENDING_POOL
from swap_supply.core.errors import InvalidAmountError
from swap_supply.core.utils.contracts import encode_call
from swap_supply.core.utils.tokens import build_approve_call
from swap_supply.core.utils.transaction import Credential, TransactionSubmitter
from swap_supply.core.utils.web3 import rpc_errors, web3_from_chain_id

INTEREST_RATE_MODE_STABLE = 1
INTEREST_RATE_MODE_VARIABLE = 2

_RESERVE_FIELDS = tuple(ReserveData.model_fields)


def _positive(amount: int, what: str) -> int:
    amount = int(amount)
    if amount <= 0:
        raise InvalidAmountError(f"{what} amount must be positive")
    return amount


class AaveAdapter(BaseAdapter):
    """Aave v2-style lending pool: payload builders plus submit-and-wait helpers.

    Only ``deposit`` is used by the swap/supply pipeline; the rest of the pool
    surface is exposed for callers that need it (unwinding a position, for one).
    """

    adapter_type = "AAVE"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        submitter: TransactionSubmitter | None = None,
    ) -> None:
        super().__init__("aave_adapter", config)
        self.lending_pool_address = self._address_from_config(
            "lending_pool_address", SEPOLIA_AAVE_LENDING_POOL
        )
        self.submitter = submitter or TransactionSubmitter(self.chain_id)

    def build_approve_call(self, token: TokenDescriptor, amount: int) -> CallPayload:
        return build_approve_call(token.address, self.lending_pool_address, amount)

    def build_deposit(
        self,
        *,
        asset: str,
        amount: int,
        on_behalf_of: str,
        referral_code: int = REFERRAL_CODE,
    ) -> CallPayload:
        self.logger.info(
            f"Building AAVE deposit: pool={self.lending_pool_address}, "
            f"token={asset}, amount={amount}"
        )
        return encode_call(
            target=self.lending_pool_address,
            abi=LENDING_POOL_ABI,
            fn_name="deposit",
            args=[
                to_checksum_address(asset),
                _positive(amount, "Deposit"),
                to_checksum_address(on_behalf_of),
                int(referral_code),
            ],
        )

    def build_withdraw(self, *, asset: str, amount: int, to: str) -> CallPayload:
        self.logger.info(
            f"Building AAVE withdraw: pool={self.lending_pool_address}, "
            f"token={asset}, amount={amount}"
        )
        return encode_call(
            target=self.lending_pool_address,
            abi=LENDING_POOL_ABI,
            fn_name="withdraw",
            args=[to_checksum_address(asset), _positive(amount, "Withdraw"), to_checksum_address(to)],
        )

    def build_borrow(
        self,
        *,
        asset: str,
        amount: int,
        on_behalf_of: str,
        interest_rate_mode: int = INTEREST_RATE_MODE_VARIABLE,
        referral_code: int = REFERRAL_CODE,
    ) -> CallPayload:
        if interest_rate_mode not in (INTEREST_RATE_MODE_STABLE, INTEREST_RATE_MODE_VARIABLE):
            raise ValueError(f"Unknown interest rate mode {interest_rate_mode}")
        self.logger.info(
            f"Building AAVE borrow: pool={self.lending_pool_address}, "
            f"token={asset}, amount={amount}, mode={interest_rate_mode}"
        )
        return encode_call(
            target=self.lending_pool_address,
            abi=LENDING_POOL_ABI,
            fn_name="borrow",
            args=[
                to_checksum_address(asset),
                _positive(amount, "Borrow"),
                int(interest_rate_mode),
                int(referral_code),
                to_checksum_address(on_behalf_of),
            ],
        )

    def build_repay(
        self,
        *,
        asset: str,
        amount: int,
        on_behalf_of: str,
        rate_mode: int = INTEREST_RATE_MODE_VARIABLE,
    ) -> CallPayload:
        if rate_mode not in (INTEREST_RATE_MODE_STABLE, INTEREST_RATE_MODE_VARIABLE):
            raise ValueError(f"Unknown interest rate mode {rate_mode}")
        self.logger.info(
            f"Building AAVE repay: pool={self.lending_pool_address}, "
            f"token={asset}, amount={amount}, mode={rate_mode}"
        )
        return encode_call(
            target=self.lending_pool_address,
            abi=LENDING_POOL_ABI,
            fn_name="repay",
            args=[
                to_checksum_address(asset),
                _positive(amount, "Repay"),
                int(rate_mode),
                to_checksum_address(on_behalf_of),
            ],
        )

    async def deposit(
        self, credential: Credential, *, asset: str, amount: int
    ) -> TransactionReceipt:
        payload = self.build_deposit(
            asset=asset, amount=amount, on_behalf_of=credential.address
        )
        return await self.submitter.send(credential, payload)

    async def withdraw(
        self, credential: Credential, *, asset: str, amount: int, to: str | None = None
    ) -> TransactionReceipt:
        payload = self.build_withdraw(
            asset=asset, amount=amount, to=to or credential.address
        )
        return await self.submitter.send(credential, payload)

    async def borrow(
        self,
        credential: Credential,
        *,
        asset: str,
        amount: int,
        interest_rate_mode: int = INTEREST_RATE_MODE_VARIABLE,
    ) -> TransactionReceipt:
        payload = self.build_borrow(
            asset=asset,
            amount=amount,
            on_behalf_of=credential.address,
            interest_rate_mode=interest_rate_mode,
        )
        return await self.submitter.send(credential, payload)

    async def repay(
        self,
        credential: Credential,
        *,
        asset: str,
        amount: int,
        rate_mode: int = INTEREST_RATE_MODE_VARIABLE,
    ) -> TransactionReceipt:
        payload = self.build_repay(
            asset=asset,
            amount=amount,
            on_behalf_of=credential.address,
            rate_mode=rate_mode,
        )
        return await self.submitter.send(credential, payload)

    async def get_reserve_data(self, asset: str) -> ReserveData:
        async with (
            web3_from_chain_id(self.chain_id) as w3,
            rpc_errors(f"reading reserve data for {asset}"),
        ):
            pool = w3.eth.contract(
                address=self.lending_pool_address, abi=LENDING_POOL_ABI
            )
            raw = await pool.functions.getReserveData(
                w3.to_checksum_address(asset)
            ).call()
        if len(raw) != len(_RESERVE_FIELDS):
            raise ValueError(
                f"Unexpected getReserveData shape: {len(raw)} fields, "
                f"expected {len(_RESERVE_FIELDS)}"
            )
        return ReserveData(**{k: int(v) for k, v in zip(_RESERVE_FIELDS, raw)})
