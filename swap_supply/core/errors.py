from __future__ import annotations

from typing import Any


class SwapSupplyError(Exception):
    """Base class for every error raised by swap_supply."""


class InvalidAmountError(SwapSupplyError, ValueError):
    pass


class UnknownFunctionError(SwapSupplyError, ValueError):
    def __init__(self, fn_name: str):
        self.fn_name = fn_name
        super().__init__(f"Function {fn_name!r} is not present in the ABI")


class ArgumentMismatchError(SwapSupplyError, ValueError):
    pass


class PoolNotFoundError(SwapSupplyError, LookupError):
    pass


class TransactionRejectedError(SwapSupplyError, RuntimeError):
    """The transaction reverted on-chain or was refused by the node."""

    def __init__(
        self,
        txn_hash: str | None,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {txn_hash}")


class NetworkUnavailableError(SwapSupplyError, ConnectionError):
    pass


class ConfirmationTimeoutError(SwapSupplyError, TimeoutError):
    def __init__(self, txn_hash: str, timeout: float):
        self.txn_hash = txn_hash
        self.timeout = timeout
        super().__init__(
            f"Transaction {txn_hash} not confirmed within {timeout:g} seconds"
        )


class PipelineStepError(SwapSupplyError, RuntimeError):
    """Raised by the pipeline when a step fails; the cause is chained."""

    def __init__(self, step: str, cause: BaseException, result: Any = None):
        self.step = step
        self.cause = cause
        self.result = result
        super().__init__(f"Pipeline failed at {step}: {cause}")
