import json
import os
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from swap_supply.core.constants.base import (
    DEFAULT_CONFIRMATIONS,
    DEFAULT_FEE_TIER,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TRANSACTION_TIMEOUT,
)
from swap_supply.core.constants.chains import CHAIN_ID_SEPOLIA
from swap_supply.core.constants.contracts import (
    SEPOLIA_AAVE_LENDING_POOL,
    SEPOLIA_LINK,
    SEPOLIA_SWAP_ROUTER_02,
    SEPOLIA_UNISWAP_V3_FACTORY,
    SEPOLIA_USDC,
)
from swap_supply.core.adapters.models import Address, TokenDescriptor

_CONFIG_ENV_KEYS = ("SWAP_SUPPLY_CONFIG_PATH", "SWAP_SUPPLY_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_RPC_URL_ENV_KEY = "RPC_URL"
_PRIVATE_KEY_ENV_KEY = "PRIVATE_KEY"


class AmountOutSource(StrEnum):
    """Where the supply step takes its amount from after the swap."""

    # amount_out == amount_in, a 1:1 approximation
    ASSUMED = "assumed"
    # sum of the output token's Transfer logs to the recipient in the swap receipt
    RECEIPT = "receipt"


class PipelineSettings(BaseModel):
    chain_id: int = CHAIN_ID_SEPOLIA
    fee_tier: int = DEFAULT_FEE_TIER
    factory_address: Address = SEPOLIA_UNISWAP_V3_FACTORY
    swap_router_address: Address = SEPOLIA_SWAP_ROUTER_02
    lending_pool_address: Address = SEPOLIA_AAVE_LENDING_POOL
    token_in: TokenDescriptor = SEPOLIA_USDC
    token_out: TokenDescriptor = SEPOLIA_LINK
    amount_out_source: AmountOutSource = AmountOutSource.ASSUMED
    amount_out_minimum: int = Field(default=0, ge=0)
    confirmations: int = Field(default=DEFAULT_CONFIRMATIONS, ge=1)
    confirmation_timeout_s: float = Field(default=DEFAULT_TRANSACTION_TIMEOUT, gt=0)
    poll_interval_s: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)


def _project_root() -> Path | None:
    """Nearest directory holding a pyproject.toml, from the cwd or this package."""
    for start in (Path.cwd(), Path(__file__).parent):
        here = start.resolve()
        root = next(
            (d for d in (here, *here.parents) if (d / "pyproject.toml").is_file()),
            None,
        )
        if root is not None:
            return root
    return None


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Explicit path, else $SWAP_SUPPLY_CONFIG_PATH, else ``config.json`` at the root.

    Relative paths from the environment are taken relative to the project root.
    """
    if path is not None:
        return Path(path).expanduser()

    configured = ""
    for key in _CONFIG_ENV_KEYS:
        configured = os.getenv(key, "").strip()
        if configured:
            break
    candidate = Path(configured or _DEFAULT_CONFIG_FILENAME).expanduser()
    if candidate.is_absolute():
        return candidate
    root = _project_root()
    return root / candidate if root else candidate


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        parsed = json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in config file {cfg_path}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"Config file {cfg_path} must contain a JSON object")
    return parsed


CONFIG: dict[str, Any] = {}


def set_config(config: dict[str, Any]) -> None:
    # mutate in place: modules hold a reference to CONFIG from import time
    CONFIG.clear()
    CONFIG.update(config)


def load_config(path: str | Path | None = None, *, require_exists: bool = False) -> None:
    set_config(load_config_json(path, require_exists=require_exists))


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("rpc_urls", {})


def get_rpc_url(chain_id: int) -> str:
    mapping = get_rpc_urls()
    rpc = mapping.get(str(chain_id))
    if rpc is None:
        rpc = mapping.get(chain_id)  # allow int keys
    if isinstance(rpc, list):
        rpc = rpc[0] if rpc else None
    if not rpc and int(chain_id) == get_pipeline_settings().chain_id:
        rpc = os.environ.get(_RPC_URL_ENV_KEY)
    if not rpc:
        raise ValueError(
            f"No RPC configured for chain ID {chain_id}; "
            f"set rpc_urls in config.json or {_RPC_URL_ENV_KEY}"
        )
    return str(rpc).strip()


def get_private_key() -> str | None:
    wallet = CONFIG.get("wallet", {})
    key = wallet.get("private_key") or os.environ.get(_PRIVATE_KEY_ENV_KEY)
    if key:
        return str(key).strip()
    return None


def get_pipeline_settings(overrides: dict[str, Any] | None = None) -> PipelineSettings:
    raw = dict(CONFIG.get("pipeline", {}))
    raw.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return PipelineSettings.model_validate(raw)
