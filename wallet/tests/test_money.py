from decimal import Decimal

import pytest

from wallet import InvalidAmountError
from wallet.money import apply_rate, from_minor_units, split_amount, to_minor_units, to_rate


class TestSplitAmount:
    def test_gift_split(self):
        assert split_amount(100, "0.3") == (70, 30)

    def test_zero_gross(self):
        assert split_amount(0, "0.3") == (0, 0)

    def test_full_and_no_cut(self):
        assert split_amount(9, 1) == (0, 9)
        assert split_amount(9, 0) == (9, 0)

    def test_parts_always_sum_to_gross(self):
        for gross in range(0, 200, 7):
            net, platform = split_amount(gross, "0.3")
            assert net + platform == gross


class TestConversions:
    def test_to_minor_units(self):
        assert to_minor_units(Decimal("4.99")) == 499
        assert to_minor_units(Decimal("4.491")) == 449
        assert to_minor_units("2.5") == 250

    def test_from_minor_units(self):
        assert from_minor_units(499) == Decimal("4.99")

    def test_apply_rate_rounds_half_even(self):
        assert apply_rate(999, "0.1") == 100  # 99.9
        assert apply_rate(25, "0.1") == 2     # 2.5 -> 2

    def test_rate_bounds(self):
        assert to_rate(0.3) == Decimal("0.3")
        with pytest.raises(InvalidAmountError):
            to_rate("1.01")
