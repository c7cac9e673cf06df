from eth_utils import to_checksum_address
from web3 import AsyncWeb3

from swap_supply.core.adapters.models import CallPayload, TokenDescriptor
from swap_supply.core.constants.erc20_abi import ERC20_ABI, TRANSFER_EVENT_TOPIC
from swap_supply.core.errors import InvalidAmountError
from swap_supply.core.utils.contracts import encode_call
from swap_supply.core.utils.web3 import web3_from_chain_id


def build_approve_call(token_address: str, spender_address: str, amount: int) -> CallPayload:
    if int(amount) < 0:
        raise InvalidAmountError("Approval amount must be non-negative")
    return encode_call(
        target=token_address,
        abi=ERC20_ABI,
        fn_name="approve",
        args=[to_checksum_address(spender_address), int(amount)],
    )


async def get_token_allowance(
    token_address: str, chain_id: int, owner_address: str, spender_address: str
) -> int:
    async with web3_from_chain_id(chain_id) as web3:
        contract = web3.eth.contract(
            address=web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        allowance = await contract.functions.allowance(
            web3.to_checksum_address(owner_address),
            web3.to_checksum_address(spender_address),
        ).call(block_identifier="pending")
        return int(allowance)


async def get_token_balance(
    token_address: str,
    chain_id: int,
    wallet_address: str,
    *,
    web3: AsyncWeb3 | None = None,
    block_identifier: str | int = "pending",
) -> int:
    async def _read_with_web3(w3: AsyncWeb3) -> int:
        contract = w3.eth.contract(
            address=w3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        balance = await contract.functions.balanceOf(
            w3.to_checksum_address(wallet_address)
        ).call(block_identifier=block_identifier)
        return int(balance)

    if web3 is None:
        async with web3_from_chain_id(chain_id) as w3:
            return await _read_with_web3(w3)
    return await _read_with_web3(web3)


async def get_token_decimals(token_address: str, chain_id: int) -> int:
    async with web3_from_chain_id(chain_id) as web3:
        contract = web3.eth.contract(
            address=web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        return int(await contract.functions.decimals().call())


async def verify_token_decimals(token: TokenDescriptor) -> None:
    """Raise if the configured precision disagrees with the token contract."""
    on_chain = await get_token_decimals(token.address, token.chain_id)
    if on_chain != token.decimals:
        raise InvalidAmountError(
            f"{token.symbol} is configured with {token.decimals} decimals "
            f"but the contract reports {on_chain}"
        )


def _topic_address(topic: str) -> str:
    return to_checksum_address("0x" + topic.removeprefix("0x")[-40:])


def sum_transfers_to(logs: list[dict], token_address: str, recipient: str) -> int:
    """Total ERC-20 ``Transfer`` value of ``token_address`` received by ``recipient``."""
    token = to_checksum_address(token_address)
    to = to_checksum_address(recipient)
    total = 0
    for log in logs:
        topics = log.get("topics") or []
        if len(topics) < 3 or str(topics[0]).lower() != TRANSFER_EVENT_TOPIC:
            continue
        if to_checksum_address(log["address"]) != token:
            continue
        if _topic_address(str(topics[2])) != to:
            continue
        total += int(str(log.get("data") or "").removeprefix("0x") or "0", 16)
    return total
