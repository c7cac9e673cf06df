from contextlib import asynccontextmanager

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ProviderConnectionError
from web3.middleware import ExtraDataToPOAMiddleware

from swap_supply.core.config import get_rpc_url
from swap_supply.core.constants.chains import POA_MIDDLEWARE_CHAIN_IDS
from swap_supply.core.errors import NetworkUnavailableError, SwapSupplyError

# aiohttp is AsyncHTTPProvider's transport: 5xx responses surface as
# ClientResponseError, refused connections as ClientConnectorError (an OSError).
# OSError also covers TimeoutError.
NETWORK_ERRORS = (ProviderConnectionError, aiohttp.ClientError, OSError)


def get_transaction_chain_id(transaction: dict) -> int:
    if "chainId" not in transaction:
        raise ValueError("Transaction does not contain chainId")
    return int(transaction["chainId"])


def get_web3_from_chain_id(chain_id: int) -> AsyncWeb3:
    provider = AsyncHTTPProvider(
        get_rpc_url(chain_id),
        request_kwargs={"headers": AsyncHTTPProvider.get_request_headers()},
    )
    web3 = AsyncWeb3(provider)
    if chain_id in POA_MIDDLEWARE_CHAIN_IDS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return web3


@asynccontextmanager
async def web3_from_chain_id(chain_id: int):
    web3 = get_web3_from_chain_id(chain_id)
    try:
        yield web3
    finally:
        await web3.provider.disconnect()


@asynccontextmanager
async def rpc_errors(action: str):
    """Re-raise transport failures inside the block as ``NetworkUnavailableError``.

    Enter it after ``web3_from_chain_id`` so that configuration errors raised
    while building the provider propagate unchanged.
    """
    try:
        yield
    except SwapSupplyError:
        raise
    except NETWORK_ERRORS as exc:
        raise NetworkUnavailableError(f"RPC unavailable while {action}: {exc}") from exc
