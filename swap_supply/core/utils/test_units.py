from decimal import Decimal

import pytest

from swap_supply.core.constants.base import MAX_UINT256
from swap_supply.core.errors import InvalidAmountError
from swap_supply.core.utils.units import to_base_units, to_decimal_string


class TestToBaseUnits:
    def test_one_usdc(self):
        assert to_base_units("1", 6) == 1_000_000

    def test_fractional_amount(self):
        assert to_base_units("1.5", 18) == 1_500_000_000_000_000_000
        assert to_base_units("0.000001", 6) == 1

    def test_int_and_decimal_inputs(self):
        assert to_base_units(2, 6) == 2_000_000
        assert to_base_units(Decimal("0.25"), 2) == 25

    def test_float_uses_its_repr(self):
        assert to_base_units(0.1, 6) == 100_000

    def test_trailing_zeros_beyond_precision_are_fine(self):
        assert to_base_units("1.500000000", 6) == 1_500_000

    def test_zero(self):
        assert to_base_units("0", 6) == 0
        assert to_base_units("0.0000000000", 2) == 0

    def test_zero_decimals(self):
        assert to_base_units("42", 0) == 42

    def test_large_amount_is_exact(self):
        amount = "123456789012345678901234567890.123456789012345678"
        assert to_base_units(amount, 18) == int(
            "123456789012345678901234567890123456789012345678"
        )

    def test_max_uint256_boundary(self):
        assert to_base_units(str(MAX_UINT256), 0) == MAX_UINT256
        with pytest.raises(InvalidAmountError, match="uint256"):
            to_base_units(str(MAX_UINT256 + 1), 0)
        with pytest.raises(InvalidAmountError, match="uint256"):
            to_base_units(str(MAX_UINT256), 1)

    @pytest.mark.parametrize(
        "amount", ["", "   ", "abc", "1e", "NaN", "Infinity", "-inf", None, True]
    )
    def test_rejects_non_numbers(self, amount):
        with pytest.raises(InvalidAmountError):
            to_base_units(amount, 6)

    def test_rejects_negative(self):
        with pytest.raises(InvalidAmountError, match="non-negative"):
            to_base_units("-1", 6)

    def test_rejects_excess_precision(self):
        with pytest.raises(InvalidAmountError, match="fractional digits"):
            to_base_units("0.0000001", 6)
        with pytest.raises(InvalidAmountError, match="fractional digits"):
            to_base_units("1.5", 0)

    @pytest.mark.parametrize("decimals", [-1, 78, 1.5, True])
    def test_rejects_bad_decimals(self, decimals):
        with pytest.raises(InvalidAmountError):
            to_base_units("1", decimals)

    def test_invalid_amount_is_a_value_error(self):
        with pytest.raises(ValueError):
            to_base_units("abc", 6)


class TestToDecimalString:
    def test_whole_and_fraction(self):
        assert to_decimal_string(1_000_000, 6) == "1"
        assert to_decimal_string(1_500_000, 6) == "1.5"
        assert to_decimal_string(1, 18) == "0.000000000000000001"

    def test_zero(self):
        assert to_decimal_string(0, 6) == "0"

    def test_zero_decimals(self):
        assert to_decimal_string(7, 0) == "7"

    def test_round_trip(self):
        for amount, decimals in [("1", 6), ("0.123456", 6), ("98765.4321", 18)]:
            raw = to_base_units(amount, decimals)
            assert to_decimal_string(raw, decimals) == amount

    def test_rejects_negative_and_non_int(self):
        with pytest.raises(InvalidAmountError):
            to_decimal_string(-1, 6)
        with pytest.raises(InvalidAmountError):
            to_decimal_string(1.0, 6)
