from __future__ import annotations

from collections.abc import Awaitable, Callable
from decimal import Decimal
from enum import StrEnum

from loguru import logger
from pydantic import BaseModel

from swap_supply.adapters.aave_adapter.adapter import AaveAdapter
from swap_supply.adapters.uniswap_adapter.adapter import (
    UniswapAdapter,
    build_swap_params,
)
from swap_supply.core.adapters.models import (
    CallPayload,
    PoolDescriptor,
    SwapParameters,
    TransactionReceipt,
)
from swap_supply.core.config import AmountOutSource, PipelineSettings
from swap_supply.core.errors import InvalidAmountError, PipelineStepError
from swap_supply.core.utils.transaction import Credential, TransactionSubmitter
from swap_supply.core.utils.units import to_base_units, to_decimal_string


class PipelineStep(StrEnum):
    START = "START"
    APPROVE_FOR_SWAP = "APPROVE_FOR_SWAP"
    RESOLVE_POOL = "RESOLVE_POOL"
    BUILD_SWAP_PARAMS = "BUILD_SWAP_PARAMS"
    SUBMIT_SWAP = "SUBMIT_SWAP"
    AWAIT_SWAP_CONFIRMATION = "AWAIT_SWAP_CONFIRMATION"
    APPROVE_FOR_SUPPLY = "APPROVE_FOR_SUPPLY"
    SUBMIT_SUPPLY = "SUBMIT_SUPPLY"
    AWAIT_SUPPLY_CONFIRMATION = "AWAIT_SUPPLY_CONFIRMATION"
    DONE = "DONE"
    FAILED = "FAILED"


APPROVAL_STEPS = (PipelineStep.APPROVE_FOR_SWAP, PipelineStep.APPROVE_FOR_SUPPLY)


class PipelineResult(BaseModel):
    state: PipelineStep = PipelineStep.START
    amount_in: int | None = None
    amount_out: int | None = None
    pool: PoolDescriptor | None = None
    swap_params: SwapParameters | None = None
    # keyed by the step that sent the transaction, in execution order
    receipts: dict[PipelineStep, TransactionReceipt] = {}
    failed_step: PipelineStep | None = None
    error: str | None = None

    @property
    def granted_approvals(self) -> list[TransactionReceipt]:
        """Confirmed approvals; these stay in effect when a later step fails."""
        return [self.receipts[s] for s in APPROVAL_STEPS if s in self.receipts]


FailureHook = Callable[[PipelineResult], Awaitable[None]]


class SwapSupplyPipeline:
    """Approve, swap ``token_in`` for ``token_out``, approve, deposit into the pool.

    Steps run strictly in order and every transaction is confirmed before the
    next one is built. The first failure stops the run: the state becomes
    ``FAILED`` and a ``PipelineStepError`` naming the step is raised. Nothing is
    rolled back; ``on_failure`` receives the partial result (including
    ``granted_approvals``) so callers can revoke allowances themselves.
    """

    def __init__(
        self,
        settings: PipelineSettings,
        credential: Credential,
        *,
        submitter: TransactionSubmitter | None = None,
        uniswap: UniswapAdapter | None = None,
        aave: AaveAdapter | None = None,
        on_failure: FailureHook | None = None,
    ) -> None:
        self.settings = settings
        self.credential = credential
        self.submitter = submitter or TransactionSubmitter(
            settings.chain_id,
            confirmations=settings.confirmations,
            poll_interval=settings.poll_interval_s,
            timeout=settings.confirmation_timeout_s,
        )
        adapter_config = settings.model_dump(
            include={
                "chain_id",
                "factory_address",
                "swap_router_address",
                "lending_pool_address",
            }
        )
        self.uniswap = uniswap or UniswapAdapter(adapter_config)
        self.aave = aave or AaveAdapter(adapter_config, submitter=self.submitter)
        self.on_failure = on_failure
        self.state = PipelineStep.START
        self.logger = logger.bind(pipeline=self.__class__.__name__)

    def _enter(self, result: PipelineResult, step: PipelineStep) -> None:
        self.state = step
        result.state = step
        self.logger.info(f"[{step}]")

    async def _approve(
        self, result: PipelineResult, step: PipelineStep, payload: CallPayload
    ) -> None:
        self._enter(result, step)
        pending = await self.submitter.submit(self.credential, payload)
        result.receipts[step] = await self.submitter.await_confirmation(pending)

    def _amount_out(self, receipt: TransactionReceipt, params: SwapParameters) -> int:
        token_out = self.settings.token_out
        if self.settings.amount_out_source == AmountOutSource.RECEIPT:
            amount_out = self.uniswap.amount_out_from_receipt(receipt, params)
            if amount_out <= 0:
                raise ValueError(
                    f"Swap receipt {receipt.transaction_hash} shows no "
                    f"{token_out.symbol} transferred to {params.recipient}"
                )
            return amount_out

        self.logger.warning(
            f"Assuming the swap returned {params.amount_in} {token_out.symbol} base "
            "units (1:1 with the input); set amount_out_source=receipt to use the "
            "executed output"
        )
        return params.amount_in

    async def run(self, amount: str | int | float | Decimal) -> PipelineResult:
        settings = self.settings
        token_in, token_out = settings.token_in, settings.token_out
        result = PipelineResult()
        self.state = PipelineStep.START

        try:
            amount_in = to_base_units(amount, token_in.decimals)
            if amount_in == 0:
                raise InvalidAmountError("Swap amount must be positive")
            result.amount_in = amount_in
            self.logger.info(
                f"Swapping {to_decimal_string(amount_in, token_in.decimals)} "
                f"{token_in.symbol} -> {token_out.symbol} and supplying to "
                f"{settings.lending_pool_address}"
            )

            await self._approve(
                result,
                PipelineStep.APPROVE_FOR_SWAP,
                self.uniswap.build_approve_call(token_in, amount_in),
            )

            self._enter(result, PipelineStep.RESOLVE_POOL)
            result.pool = await self.uniswap.resolve_pool(
                token_in, token_out, settings.fee_tier
            )

            self._enter(result, PipelineStep.BUILD_SWAP_PARAMS)
            if settings.amount_out_minimum == 0:
                self.logger.warning("Swapping with amount_out_minimum=0 (no slippage floor)")
            params = build_swap_params(
                result.pool,
                token_in,
                token_out,
                self.credential.address,
                amount_in,
                amount_out_minimum=settings.amount_out_minimum,
            )
            result.swap_params = params

            self._enter(result, PipelineStep.SUBMIT_SWAP)
            pending = await self.submitter.submit(
                self.credential, self.uniswap.build_swap_call(params)
            )
            self._enter(result, PipelineStep.AWAIT_SWAP_CONFIRMATION)
            swap_receipt = await self.submitter.await_confirmation(pending)
            result.receipts[PipelineStep.SUBMIT_SWAP] = swap_receipt
            amount_out = self._amount_out(swap_receipt, params)
            result.amount_out = amount_out

            await self._approve(
                result,
                PipelineStep.APPROVE_FOR_SUPPLY,
                self.aave.build_approve_call(token_out, amount_out),
            )

            self._enter(result, PipelineStep.SUBMIT_SUPPLY)
            pending = await self.submitter.submit(
                self.credential,
                self.aave.build_deposit(
                    asset=token_out.address,
                    amount=amount_out,
                    on_behalf_of=self.credential.address,
                ),
            )
            self._enter(result, PipelineStep.AWAIT_SUPPLY_CONFIRMATION)
            result.receipts[PipelineStep.SUBMIT_SUPPLY] = (
                await self.submitter.await_confirmation(pending)
            )
        except Exception as exc:
            raise await self._fail(result, exc) from exc

        self._enter(result, PipelineStep.DONE)
        self.logger.info(
            f"Supplied {to_decimal_string(result.amount_out, token_out.decimals)} "
            f"{token_out.symbol} to {settings.lending_pool_address}"
        )
        return result

    async def _fail(self, result: PipelineResult, exc: Exception) -> PipelineStepError:
        failed_step = result.state
        self.state = PipelineStep.FAILED
        result.state = PipelineStep.FAILED
        result.failed_step = failed_step
        result.error = str(exc)
        self.logger.error(f"Pipeline failed at {failed_step}: {exc}")
        if result.granted_approvals:
            self.logger.warning(
                f"{len(result.granted_approvals)} approval(s) remain granted after failure"
            )

        if self.on_failure is not None:
            try:
                await self.on_failure(result)
            except Exception as hook_exc:
                self.logger.error(f"on_failure hook raised: {hook_exc}")

        return PipelineStepError(failed_step, exc, result)
