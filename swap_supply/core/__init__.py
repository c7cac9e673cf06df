from swap_supply.core.adapters.BaseAdapter import BaseAdapter
from swap_supply.core.errors import (
    ArgumentMismatchError,
    ConfirmationTimeoutError,
    InvalidAmountError,
    NetworkUnavailableError,
    PipelineStepError,
    PoolNotFoundError,
    SwapSupplyError,
    TransactionRejectedError,
    UnknownFunctionError,
)

__all__ = [
    "ArgumentMismatchError",
    "BaseAdapter",
    "ConfirmationTimeoutError",
    "InvalidAmountError",
    "NetworkUnavailableError",
    "PipelineStepError",
    "PoolNotFoundError",
    "SwapSupplyError",
    "TransactionRejectedError",
    "UnknownFunctionError",
]
