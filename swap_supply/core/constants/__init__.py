from swap_supply.core.constants.base import MAX_UINT256, ZERO_ADDRESS
from swap_supply.core.constants.chains import CHAIN_ID_SEPOLIA

__all__ = [
    "CHAIN_ID_SEPOLIA",
    "MAX_UINT256",
    "ZERO_ADDRESS",
]
