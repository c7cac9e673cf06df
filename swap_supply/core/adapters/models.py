from enum import StrEnum
from typing import Annotated, Any

from eth_utils import is_address, to_checksum_address
from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _checksum(value: str) -> str:
    if not is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return to_checksum_address(value)


Address = Annotated[str, AfterValidator(_checksum)]


class TokenDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    chain_id: int
    address: Address
    decimals: int = Field(ge=0)
    symbol: str
    name: str


class CallPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    to: str
    data: str
    value: int = 0
    fn_name: str | None = None

    def to_transaction(self, from_address: str, chain_id: int) -> dict[str, Any]:
        return {
            "chainId": int(chain_id),
            "from": to_checksum_address(from_address),
            "to": to_checksum_address(self.to),
            "data": self.data,
            "value": int(self.value),
        }


class ReceiptStatus(StrEnum):
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


class PendingTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction_hash: str
    chain_id: int
    nonce: int
    from_address: str


class TransactionReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction_hash: str
    status: ReceiptStatus
    block_number: int
    block_hash: str | None = None
    gas_used: int | None = None
    logs: list[dict[str, Any]] = []


class PoolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: Address
    token0: Address
    token1: Address
    fee: int


class SwapParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    token_in: Address
    token_out: Address
    fee: int
    recipient: Address
    amount_in: int
    amount_out_minimum: int = 0
    sqrt_price_limit_x96: int = 0

    def as_struct(self) -> tuple[str, str, int, str, int, int, int]:
        """Tuple in the field order of SwapRouter02 ``ExactInputSingleParams``."""
        return (
            self.token_in,
            self.token_out,
            int(self.fee),
            self.recipient,
            int(self.amount_in),
            int(self.amount_out_minimum),
            int(self.sqrt_price_limit_x96),
        )


class ReserveData(BaseModel):
    available_liquidity: int
    total_stable_debt: int
    total_variable_debt: int
    liquidity_rate: int
    variable_borrow_rate: int
    stable_borrow_rate: int
    average_stable_borrow_rate: int
    liquidity_index: int
    variable_borrow_index: int
    last_update_timestamp: int
