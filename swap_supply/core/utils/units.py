from __future__ import annotations

from decimal import Decimal, InvalidOperation

from swap_supply.core.constants.base import MAX_TOKEN_DECIMALS, MAX_UINT256
from swap_supply.core.errors import InvalidAmountError


def _check_decimals(decimals: int) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise InvalidAmountError(f"Token decimals must be an integer: {decimals!r}")
    if not 0 <= decimals <= MAX_TOKEN_DECIMALS:
        raise InvalidAmountError(
            f"Token decimals {decimals} outside supported range 0..{MAX_TOKEN_DECIMALS}"
        )
    return decimals


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidAmountError(f"Invalid token amount: {value!r}")
    if isinstance(value, Decimal):
        amt = value
    elif isinstance(value, int):
        amt = Decimal(value)
    elif isinstance(value, (str, float)):
        text = str(value).strip()
        if not text:
            raise InvalidAmountError("Invalid token amount: empty string")
        try:
            amt = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidAmountError(f"Invalid token amount: {value!r}") from exc
    else:
        raise InvalidAmountError(f"Invalid token amount: {value!r}")

    if not amt.is_finite():
        raise InvalidAmountError(f"Invalid token amount: {value!r}")
    return amt


def to_base_units(amount: str | int | float | Decimal, decimals: int) -> int:
    """Convert a human-readable amount into the token's integer base units.

    ``to_base_units("1", 6) == 1_000_000``. Amounts with more fractional digits
    than the token supports are rejected rather than truncated.
    """
    decimals = _check_decimals(decimals)
    amt = _to_decimal(amount)
    if amt < 0:
        raise InvalidAmountError("Amount must be non-negative")

    # Integer math on the decimal's digits; Decimal arithmetic would round at
    # the context precision for long amounts.
    _sign, digits, exponent = amt.as_tuple()
    coefficient = int("".join(str(d) for d in digits) or "0")
    if coefficient == 0:
        return 0

    shift = int(exponent) + decimals
    if len(digits) + shift > len(str(MAX_UINT256)):
        raise InvalidAmountError(f"Amount {amount} does not fit in uint256")
    if shift >= 0:
        raw = coefficient * 10**shift
    else:
        remainder = 1 if -shift > len(digits) else coefficient % 10**-shift
        if remainder:
            raise InvalidAmountError(
                f"Amount {amount} has more than {decimals} fractional digits"
            )
        raw = coefficient // 10**-shift

    if raw > MAX_UINT256:
        raise InvalidAmountError(f"Amount {amount} does not fit in uint256")
    return raw


def to_decimal_string(raw: int, decimals: int) -> str:
    decimals = _check_decimals(decimals)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise InvalidAmountError(f"Base-unit amount must be an integer: {raw!r}")
    if raw < 0:
        raise InvalidAmountError("Amount must be non-negative")

    whole, frac = divmod(raw, 10**decimals)
    if decimals == 0 or frac == 0:
        return str(whole)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{frac_str}"
