from __future__ import annotations

import asyncio
from typing import Any

from eth_utils import to_checksum_address

from swap_supply.core.adapters.BaseAdapter import BaseAdapter
from swap_supply.core.adapters.models import (
    CallPayload,
    PoolDescriptor,
    SwapParameters,
    TokenDescriptor,
    TransactionReceipt,
)
from swap_supply.core.constants.base import ZERO_ADDRESS
from swap_supply.core.constants.contracts import (
    SEPOLIA_SWAP_ROUTER_02,
    SEPOLIA_UNISWAP_V3_FACTORY,
)
from swap_supply.core.constants.uniswap_v3_abi import (
    SWAP_ROUTER_02_ABI,
    UNISWAP_V3_FACTORY_ABI,
    UNISWAP_V3_POOL_ABI,
)
from swap_supply.core.errors import InvalidAmountError, PoolNotFoundError
from swap_supply.core.utils.contracts import encode_call
from swap_supply.core.utils.tokens import build_approve_call, sum_transfers_to
from swap_supply.core.utils.web3 import rpc_errors, web3_from_chain_id

FEE_TIERS: set[int] = {100, 500, 3000, 10000}


async def find_pool(
    factory_contract, token_a: str, token_b: str, fee: int
) -> str | None:
    addr = await factory_contract.functions.getPool(
        to_checksum_address(token_a),
        to_checksum_address(token_b),
        int(fee),
    ).call(block_identifier="latest")
    if not addr or str(addr).lower() == ZERO_ADDRESS.lower():
        return None
    return to_checksum_address(addr)


def build_swap_params(
    pool: PoolDescriptor,
    token_in: TokenDescriptor,
    token_out: TokenDescriptor,
    recipient: str,
    amount_in: int,
    *,
    amount_out_minimum: int = 0,
    sqrt_price_limit_x96: int = 0,
) -> SwapParameters:
    """Assemble ``exactInputSingle`` arguments for a resolved pool.

    Direction comes from the caller's tokens, never from the pool's
    token0/token1 order. ``amount_out_minimum=0`` means no slippage floor.
    """
    if int(amount_in) <= 0:
        raise InvalidAmountError("amount_in must be positive")
    if int(amount_out_minimum) < 0:
        raise InvalidAmountError("amount_out_minimum must be non-negative")

    return SwapParameters(
        token_in=token_in.address,
        token_out=token_out.address,
        fee=pool.fee,
        recipient=recipient,
        amount_in=int(amount_in),
        amount_out_minimum=int(amount_out_minimum),
        sqrt_price_limit_x96=int(sqrt_price_limit_x96),
    )


class UniswapAdapter(BaseAdapter):
    adapter_type = "UNISWAP"

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        super().__init__("uniswap_adapter", config)
        self.factory_address = self._address_from_config(
            "factory_address", SEPOLIA_UNISWAP_V3_FACTORY
        )
        self.swap_router_address = self._address_from_config(
            "swap_router_address", SEPOLIA_SWAP_ROUTER_02
        )

    async def resolve_pool(
        self, token_in: TokenDescriptor, token_out: TokenDescriptor, fee: int
    ) -> PoolDescriptor:
        if int(fee) not in FEE_TIERS:
            self.logger.warning(f"Fee tier {fee} is not a standard Uniswap V3 tier")

        async with (
            web3_from_chain_id(self.chain_id) as w3,
            rpc_errors(f"resolving the {token_in.symbol}/{token_out.symbol} pool"),
        ):
            factory = w3.eth.contract(
                address=self.factory_address, abi=UNISWAP_V3_FACTORY_ABI
            )
            pool_address = await find_pool(
                factory, token_in.address, token_out.address, int(fee)
            )
            if pool_address is None:
                raise PoolNotFoundError(
                    f"No {token_in.symbol}/{token_out.symbol} pool at fee tier {fee}"
                )

            pool = w3.eth.contract(address=pool_address, abi=UNISWAP_V3_POOL_ABI)
            token0, token1, pool_fee = await asyncio.gather(
                pool.functions.token0().call(),
                pool.functions.token1().call(),
                pool.functions.fee().call(),
            )

        descriptor = PoolDescriptor(
            address=pool_address, token0=token0, token1=token1, fee=int(pool_fee)
        )
        if {descriptor.token0, descriptor.token1} != {token_in.address, token_out.address}:
            raise PoolNotFoundError(
                f"Pool {pool_address} trades {descriptor.token0}/{descriptor.token1}, "
                f"not {token_in.symbol}/{token_out.symbol}"
            )

        self.logger.info(
            f"Resolved pool {pool_address} token0={descriptor.token0} "
            f"token1={descriptor.token1} fee={descriptor.fee}"
        )
        return descriptor

    def build_approve_call(self, token: TokenDescriptor, amount: int) -> CallPayload:
        return build_approve_call(token.address, self.swap_router_address, amount)

    def build_swap_call(self, params: SwapParameters) -> CallPayload:
        return encode_call(
            target=self.swap_router_address,
            abi=SWAP_ROUTER_02_ABI,
            fn_name="exactInputSingle",
            args=[params.as_struct()],
        )

    def amount_out_from_receipt(
        self, receipt: TransactionReceipt, params: SwapParameters
    ) -> int:
        return sum_transfers_to(receipt.logs, params.token_out, params.recipient)
