from swap_supply.core.adapters.models import TokenDescriptor
from swap_supply.core.constants.chains import CHAIN_ID_SEPOLIA

# Sepolia deployments
SEPOLIA_UNISWAP_V3_FACTORY = "0x0227628f3F023bb0B980b67D528571c95c6DaC1c"
SEPOLIA_SWAP_ROUTER_02 = "0x3bFA4769FB09eefC5a80d6E87c3B9C650f7Ae48E"
SEPOLIA_AAVE_LENDING_POOL = "0x7d2768dE32b0b80b7a3454c06BdAc94A69DDc7A9"

SEPOLIA_USDC = TokenDescriptor(
    chain_id=CHAIN_ID_SEPOLIA,
    address="0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
    decimals=6,
    symbol="USDC",
    name="USD//C",
)

SEPOLIA_LINK = TokenDescriptor(
    chain_id=CHAIN_ID_SEPOLIA,
    address="0x779877A7B0D9E8603169DdbD7836e478b4624789",
    decimals=18,
    symbol="LINK",
    name="Chainlink",
)
