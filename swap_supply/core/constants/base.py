GAS_BUFFER_MULTIPLIER = 1.1
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
SUGGESTED_GAS_PRICE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

# Timeout constants (seconds)
DEFAULT_TRANSACTION_TIMEOUT = 180
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_CONFIRMATIONS = 1

MAX_UINT256 = 2**256 - 1
# A uint256 holds at most 78 decimal digits, so 77 fractional digits is the
# largest precision that can still represent a non-zero whole unit.
MAX_TOKEN_DECIMALS = 77

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_FEE_TIER = 3000
REFERRAL_CODE = 0
