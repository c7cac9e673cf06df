from __future__ import annotations

from abc import ABC
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from swap_supply.core.constants.chains import CHAIN_ID_SEPOLIA


class BaseAdapter(ABC):
    adapter_type: str | None = None

    def __init__(self, name: str, config: dict[str, Any] | None = None):
        self.name = name
        self.config = config or {}
        self.chain_id = int(self.config.get("chain_id", CHAIN_ID_SEPOLIA))
        self.logger = logger.bind(adapter=self.__class__.__name__)

    def _address_from_config(self, key: str, default: str) -> str:
        return to_checksum_address(str(self.config.get(key) or default))
