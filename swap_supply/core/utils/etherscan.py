from __future__ import annotations

from swap_supply.core.constants.chains import CHAIN_EXPLORER_URLS


def get_etherscan_transaction_link(chain_id: int, tx_hash: str) -> str | None:
    base_url = CHAIN_EXPLORER_URLS.get(chain_id)
    if not base_url:
        return None
    return f"{base_url}tx/{tx_hash}"


def describe_transaction(chain_id: int, tx_hash: str) -> str:
    return get_etherscan_transaction_link(chain_id, tx_hash) or tx_hash
