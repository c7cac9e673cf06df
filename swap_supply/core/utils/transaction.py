import asyncio
import math
from collections.abc import Awaitable, Callable
from typing import Any

from eth_account import Account
from eth_utils import to_checksum_address
from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import (
    ContractLogicError,
    TimeExhausted,
    Web3Exception,
)

from swap_supply.core.adapters.models import (
    CallPayload,
    PendingTransaction,
    ReceiptStatus,
    TransactionReceipt,
)
from swap_supply.core.constants.base import (
    DEFAULT_CONFIRMATIONS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TRANSACTION_TIMEOUT,
    GAS_BUFFER_MULTIPLIER,
    MAX_BASE_FEE_GROWTH_MULTIPLIER,
    SUGGESTED_GAS_PRICE_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from swap_supply.core.constants.chains import PRE_EIP_1559_CHAIN_IDS
from swap_supply.core.errors import (
    ConfirmationTimeoutError,
    NetworkUnavailableError,
    SwapSupplyError,
    TransactionRejectedError,
)
from swap_supply.core.utils.etherscan import describe_transaction
from swap_supply.core.utils.web3 import (
    NETWORK_ERRORS,
    get_transaction_chain_id,
    web3_from_chain_id,
)

SignCallback = Callable[[dict], Awaitable[bytes | str]]


class Credential:
    """A signing key plus the nonce bookkeeping for everything it sends.

    ``lock`` must be held from nonce assignment until broadcast so that two
    submissions from the same key can never claim the same nonce.
    """

    def __init__(self, address: str, sign_callback: SignCallback):
        if sign_callback is None:
            raise ValueError("sign_callback must be provided to sign transactions")
        self.address = to_checksum_address(address)
        self.sign_callback = sign_callback
        self.next_nonce: int | None = None
        self.lock = asyncio.Lock()

    @classmethod
    def from_private_key(cls, private_key: str) -> "Credential":
        account = Account.from_key(private_key)

        async def sign_callback(tx: dict) -> bytes:
            signed = account.sign_transaction(tx)
            return signed.raw_transaction

        return cls(account.address, sign_callback)

    def claim_nonce(self, chain_nonce: int) -> int:
        return max(int(chain_nonce), self.next_nonce or 0)

    async def sign(self, transaction: dict) -> bytes:
        signed = await self.sign_callback(transaction)
        if isinstance(signed, str):
            return bytes.fromhex(signed.removeprefix("0x"))
        return bytes(signed)

    def __repr__(self) -> str:
        return f"Credential(address={self.address!r}, next_nonce={self.next_nonce})"


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value)
    return text if text.startswith("0x") else f"0x{text}"


def _to_receipt(raw: Any) -> TransactionReceipt:
    logs = []
    for log in raw.get("logs") or []:
        logs.append(
            {
                "address": to_checksum_address(log["address"]),
                "topics": [_hex(t) for t in log.get("topics") or []],
                "data": _hex(log.get("data") or b""),
                "logIndex": log.get("logIndex"),
            }
        )
    block_hash = raw.get("blockHash")
    gas_used = raw.get("gasUsed")
    status = (
        ReceiptStatus.REVERTED
        if int(raw.get("status", 1)) == 0
        else ReceiptStatus.CONFIRMED
    )
    return TransactionReceipt(
        transaction_hash=_hex(raw["transactionHash"]),
        status=status,
        block_number=int(raw["blockNumber"]),
        block_hash=_hex(block_hash) if block_hash is not None else None,
        gas_used=int(gas_used) if gas_used is not None else None,
        logs=logs,
    )


async def gas_limit_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()

    # prevents RPCs from taking this as a serious limit
    transaction.pop("gas", None)

    try:
        gas_limit = await web3.eth.estimate_gas(transaction, block_identifier="latest")
    except ContractLogicError as exc:
        raise TransactionRejectedError(
            None, message=f"Transaction would revert (gas estimation failed): {exc}"
        ) from exc

    # Swaps in particular can use more gas at inclusion than at estimation.
    transaction["gas"] = int(math.ceil(gas_limit * GAS_BUFFER_MULTIPLIER))
    return transaction


async def gas_price_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()

    if get_transaction_chain_id(transaction) in PRE_EIP_1559_CHAIN_IDS:
        gas_price = await web3.eth.gas_price
        transaction["gasPrice"] = int(gas_price * SUGGESTED_GAS_PRICE_MULTIPLIER)
        return transaction

    latest_block = await web3.eth.get_block("latest")
    base_fee = latest_block.baseFeePerGas

    lookback_blocks = 10
    percentile = 80
    fee_history = await web3.eth.fee_history(lookback_blocks, "latest", [percentile])
    historical_priority_fees = [i[0] for i in fee_history.reward]
    priority_fee = sum(historical_priority_fees) // max(len(historical_priority_fees), 1)

    transaction["maxFeePerGas"] = int(
        base_fee * MAX_BASE_FEE_GROWTH_MULTIPLIER
        + priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
    )
    transaction["maxPriorityFeePerGas"] = int(
        priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
    )
    return transaction


async def broadcast_transaction(web3: AsyncWeb3, signed_transaction: bytes) -> str:
    tx_hash = await web3.eth.send_raw_transaction(signed_transaction)
    return _hex(tx_hash)


class TransactionSubmitter:
    """Signs, broadcasts and confirms call payloads on one chain.

    Exactly one attempt is made per call. Failures surface as
    ``TransactionRejectedError``, ``NetworkUnavailableError`` or
    ``ConfirmationTimeoutError``.
    """

    def __init__(
        self,
        chain_id: int,
        *,
        confirmations: int = DEFAULT_CONFIRMATIONS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
    ):
        if confirmations < 1:
            raise ValueError("confirmations must be >= 1")
        self.chain_id = int(chain_id)
        self.confirmations = int(confirmations)
        self.poll_interval = float(poll_interval)
        self.timeout = float(timeout)

    async def submit(
        self, credential: Credential, payload: CallPayload
    ) -> PendingTransaction:
        transaction = payload.to_transaction(credential.address, self.chain_id)
        logger.info(
            f"Broadcasting {payload.fn_name or 'call'} to {payload.to} from {credential.address}..."
        )
        # provider construction stays outside the mapping: config errors propagate as-is
        async with web3_from_chain_id(self.chain_id) as web3:
            try:
                async with credential.lock:
                    chain_nonce = await web3.eth.get_transaction_count(
                        credential.address, block_identifier="pending"
                    )
                    nonce = credential.claim_nonce(chain_nonce)
                    transaction = await gas_limit_transaction(web3, transaction)
                    transaction["nonce"] = nonce
                    transaction = await gas_price_transaction(web3, transaction)
                    signed_transaction = await credential.sign(transaction)
                    txn_hash = await broadcast_transaction(web3, signed_transaction)
                    credential.next_nonce = nonce + 1
            except SwapSupplyError:
                raise
            except NETWORK_ERRORS as exc:
                raise NetworkUnavailableError(
                    f"RPC unavailable while submitting {payload.fn_name}: {exc}"
                ) from exc
            except (Web3Exception, ValueError) as exc:
                raise TransactionRejectedError(
                    None, message=f"Node rejected {payload.fn_name}: {exc}"
                ) from exc

        logger.info(f"Transaction broadcasted: {txn_hash}")
        return PendingTransaction(
            transaction_hash=txn_hash,
            chain_id=self.chain_id,
            nonce=nonce,
            from_address=credential.address,
        )

    async def await_confirmation(self, pending: PendingTransaction) -> TransactionReceipt:
        """Wait for the receipt and ``confirmations`` blocks, within one ``timeout``."""
        txn_hash = pending.transaction_hash
        async with web3_from_chain_id(pending.chain_id) as web3:
            try:
                async with asyncio.timeout(self.timeout):
                    raw = await web3.eth.wait_for_transaction_receipt(
                        txn_hash, timeout=self.timeout, poll_latency=self.poll_interval
                    )
                    receipt = _to_receipt(raw)
                    if receipt.status == ReceiptStatus.REVERTED:
                        raise TransactionRejectedError(
                            txn_hash,
                            receipt.model_dump(),
                            message=f"Transaction reverted (status=0): {txn_hash} gasUsed={receipt.gas_used}",
                        )

                    target_block = receipt.block_number + self.confirmations - 1
                    while await web3.eth.block_number < target_block:
                        await asyncio.sleep(self.poll_interval)
            except SwapSupplyError:
                raise
            except (TimeExhausted, TimeoutError) as exc:
                raise ConfirmationTimeoutError(txn_hash, self.timeout) from exc
            except NETWORK_ERRORS as exc:
                raise NetworkUnavailableError(
                    f"RPC unavailable while waiting for {txn_hash}: {exc}"
                ) from exc

        logger.info(
            f"Transaction confirmed in block {receipt.block_number}: "
            f"{describe_transaction(pending.chain_id, txn_hash)}"
        )
        return receipt

    async def send(
        self, credential: Credential, payload: CallPayload
    ) -> TransactionReceipt:
        pending = await self.submit(credential, payload)
        return await self.await_confirmation(pending)
