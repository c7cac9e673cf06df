"""Offline ABI encoding of contract calls.

Nothing here talks to an RPC: the encoder is a provider-less ``Web3`` instance,
so building a payload never has side effects.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from eth_utils import is_address, to_checksum_address
from web3 import Web3
from web3.exceptions import Web3Exception

from swap_supply.core.adapters.models import CallPayload
from swap_supply.core.errors import ArgumentMismatchError, UnknownFunctionError

_ENCODER = Web3()


def function_entries(abi: list[dict[str, Any]], fn_name: str) -> list[dict[str, Any]]:
    return [
        entry
        for entry in abi
        if entry.get("type", "function") == "function" and entry.get("name") == fn_name
    ]


def _check_addresses(
    inputs: list[dict[str, Any]], args: Sequence[Any], fn_name: str
) -> None:
    """Reject non-address values for ``address`` inputs, including inside tuples."""
    for param, value in zip(inputs, args):
        kind = param.get("type", "")
        if kind == "address":
            if isinstance(value, (bytes, bytearray)) and len(value) == 20:
                continue
            if not isinstance(value, str) or not is_address(value):
                name = param.get("name") or "argument"
                raise ArgumentMismatchError(
                    f"{fn_name}: {name} is not an address: {value!r}"
                )
        elif kind == "tuple" and isinstance(value, (list, tuple)):
            _check_addresses(param.get("components") or [], value, fn_name)


def encode_call(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: Sequence[Any],
    value: int = 0,
) -> CallPayload:
    if not isinstance(target, str) or not is_address(target):
        raise ArgumentMismatchError(f"Invalid contract address: {target!r}")

    entries = function_entries(abi, fn_name)
    if not entries:
        raise UnknownFunctionError(fn_name)

    args = list(args)
    arities = sorted({len(entry.get("inputs") or []) for entry in entries})
    if len(args) not in arities:
        raise ArgumentMismatchError(
            f"{fn_name} expects {' or '.join(map(str, arities))} argument(s), got {len(args)}"
        )

    matching = [e for e in entries if len(e.get("inputs") or []) == len(args)]
    if len(matching) == 1:
        _check_addresses(matching[0].get("inputs") or [], args, fn_name)

    contract = _ENCODER.eth.contract(address=to_checksum_address(target), abi=abi)
    try:
        data = contract.encode_abi(fn_name, args=args)
    except (Web3Exception, ValueError, TypeError, OverflowError) as exc:
        raise ArgumentMismatchError(f"Failed to encode {fn_name}: {exc}") from exc

    return CallPayload(
        to=to_checksum_address(target),
        data=data,
        value=int(value),
        fn_name=fn_name,
    )
