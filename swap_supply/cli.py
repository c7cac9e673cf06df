from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click
from dotenv import load_dotenv
from loguru import logger

from swap_supply.adapters.aave_adapter import AaveAdapter
from swap_supply.core.config import (
    AmountOutSource,
    get_pipeline_settings,
    get_private_key,
    load_config,
)
from swap_supply.core.errors import PipelineStepError, SwapSupplyError
from swap_supply.core.utils.transaction import Credential
from swap_supply.pipeline import SwapSupplyPipeline

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _setup(config_path: str | None, log_level: str) -> None:
    load_dotenv()
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper())
    try:
        load_config(config_path, require_exists=config_path is not None)
    except (FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc


@click.group(name="swap-supply", help="Swap into a token on Uniswap V3 and supply it to Aave.")
def cli() -> None:
    pass


@cli.command(name="run", help="Approve, swap, approve and deposit in one run.")
@click.option("--amount", required=True, help="Human-readable amount of the input token.")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None)
@click.option(
    "--amount-out-source",
    type=click.Choice([s.value for s in AmountOutSource], case_sensitive=False),
    default=None,
    help="Supply the assumed 1:1 amount or the amount read from the swap receipt.",
)
@click.option(
    "--min-amount-out",
    type=click.IntRange(min=0),
    default=None,
    help="Slippage floor in output-token base units.",
)
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="INFO",
    show_default=True,
)
def run_cmd(
    amount: str,
    config_path: str | None,
    amount_out_source: str | None,
    min_amount_out: int | None,
    log_level: str,
) -> None:
    _setup(config_path, log_level)

    private_key = get_private_key()
    if not private_key:
        raise click.ClickException(
            "No signing key: set wallet.private_key in config.json or PRIVATE_KEY"
        )

    settings = get_pipeline_settings(
        {
            "amount_out_source": amount_out_source and amount_out_source.lower(),
            "amount_out_minimum": min_amount_out,
        }
    )
    pipeline = SwapSupplyPipeline(settings, Credential.from_private_key(private_key))

    try:
        result = asyncio.run(pipeline.run(amount))
    except PipelineStepError as exc:
        partial = exc.result.model_dump(mode="json") if exc.result is not None else None
        _echo_json(
            {"ok": False, "step": str(exc.step), "error": str(exc.cause), "result": partial}
        )
        sys.exit(1)

    _echo_json({"ok": True, "result": result.model_dump(mode="json")})


@cli.command(name="reserve", help="Show the lending pool's reserve data for an asset.")
@click.option("--asset", default=None, help="Asset address (default: the output token).")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None)
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def reserve_cmd(asset: str | None, config_path: str | None, log_level: str) -> None:
    _setup(config_path, log_level)
    settings = get_pipeline_settings()
    adapter = AaveAdapter(
        settings.model_dump(include={"chain_id", "lending_pool_address"})
    )
    asset = asset or settings.token_out.address
    try:
        data = asyncio.run(adapter.get_reserve_data(asset))
    except (SwapSupplyError, ValueError) as exc:
        _echo_json({"ok": False, "error": str(exc)})
        sys.exit(1)

    _echo_json({"ok": True, "asset": asset, "result": data.model_dump()})


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
