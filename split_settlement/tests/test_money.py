"""
Unit Tests for money utilities.
"""

import pytest
from decimal import Decimal

from split_settlement.utils.errors import InvalidBill
from split_settlement.utils.money import (
    exact_context,
    from_cents,
    parse_money,
    split_evenly,
    to_cents,
)


@pytest.mark.unit
class TestParseMoney:
    """Boundary conversion of monetary values."""

    def test_accepts_decimal_strings(self):
        assert parse_money("12.30") == Decimal("12.30")
        assert parse_money(" 7 ") == Decimal("7")

    def test_accepts_int_and_decimal(self):
        assert parse_money(5) == Decimal("5")
        assert parse_money(Decimal("1.01")) == Decimal("1.01")

    def test_rejects_float(self):
        with pytest.raises(TypeError, match="float"):
            parse_money(0.1)

    def test_rejects_bool(self):
        with pytest.raises(TypeError):
            parse_money(True)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError, match="Invalid monetary value"):
            parse_money("twelve")

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError, match="finite"):
            parse_money("NaN")
        with pytest.raises(ValueError, match="finite"):
            parse_money("Infinity")


@pytest.mark.unit
class TestCents:
    """Conversion between Decimal amounts and currency units."""

    def test_to_cents(self):
        assert to_cents(Decimal("90.00")) == 9000
        assert to_cents(Decimal("0.01")) == 1
        assert to_cents(Decimal("12")) == 1200

    def test_to_cents_rejects_sub_unit_amounts(self):
        with pytest.raises(InvalidBill, match="whole multiple"):
            to_cents(Decimal("1.005"))

    def test_custom_unit(self):
        assert to_cents(Decimal("150"), Decimal("1")) == 150
        assert from_cents(150, Decimal("1")) == Decimal("150")

    def test_from_cents(self):
        assert from_cents(334) == Decimal("3.34")
        assert from_cents(-3000) == Decimal("-30.00")
        assert str(from_cents(0)) == "0.00"


@pytest.mark.unit
class TestSplitEvenly:
    """Even splits never create or destroy a unit."""

    def test_even_split(self):
        assert split_evenly(9000, ["A", "B", "C"]) == {"A": 3000, "B": 3000, "C": 3000}

    def test_remainder_goes_to_lowest_ids(self):
        shares = split_evenly(1000, ["C", "A", "B"])
        assert shares == {"A": 334, "B": 333, "C": 333}
        assert list(shares) == ["A", "B", "C"]

    def test_remainder_of_two(self):
        assert split_evenly(1001, ["A", "B", "C"]) == {"A": 334, "B": 334, "C": 333}

    @pytest.mark.parametrize("cents", [1, 2, 99, 100, 101, 12345])
    @pytest.mark.parametrize("owners", [["A"], ["A", "B"], ["A", "B", "C"], list("ABCDEFG")])
    def test_shares_sum_to_cost(self, cents, owners):
        assert sum(split_evenly(cents, owners).values()) == cents

    def test_duplicate_owners_counted_once(self):
        assert split_evenly(100, ["A", "A", "B"]) == {"A": 50, "B": 50}

    def test_no_owners(self):
        with pytest.raises(ValueError):
            split_evenly(100, [])


@pytest.mark.unit
class TestLargeAmounts:
    """Amounts past the default 28-digit decimal precision stay exact."""

    def test_sub_cent_digit_beyond_default_precision_rejected(self):
        with pytest.raises(InvalidBill, match="whole multiple"):
            to_cents(Decimal("12345678901234567890123456.785"))

    def test_long_exact_amount(self):
        assert to_cents(Decimal("12345678901234567890123456.78")) == 1234567890123456789012345678

    def test_exponent_notation(self):
        assert to_cents(Decimal("1e30")) == 10 ** 32

    def test_from_cents_beyond_default_precision(self):
        assert str(from_cents(10 ** 32)) == "1" + "0" * 30 + ".00"
        assert str(from_cents(-(10 ** 32) - 7)) == "-1" + "0" * 29 + "0.07"

    def test_non_terminating_unit_ratio(self):
        with pytest.raises(InvalidBill):
            to_cents(Decimal("1.00"), Decimal("0.03"))

    def test_exact_context_covers_values(self):
        values = [Decimal("9" * 40 + ".99"), Decimal("-0.01")]
        context = exact_context(values)
        assert context.prec >= 44
        assert exact_context([]).prec == 28
