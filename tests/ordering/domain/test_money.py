"""Tests for money and quantity arithmetic."""

from ordering.shared.money import line_total, quantize, sum_amounts, sum_quantities, tax_for


class TestLineTotal:
    def test_multiplies_price_by_quantity(self):
        assert line_total(100.0, 3) == 300.0

    def test_no_binary_float_drift(self):
        assert line_total(0.1, 3) == 0.3

    def test_zero_price(self):
        assert line_total(0.0, 5) == 0.0


class TestSums:
    def test_sum_amounts_is_exact(self):
        assert sum_amounts([0.1, 0.2]) == 0.3

    def test_sum_of_nothing_is_zero(self):
        assert sum_amounts([]) == 0.0
        assert sum_quantities([]) == 0

    def test_sum_quantities(self):
        assert sum_quantities([1, 2, 3]) == 6


class TestTax:
    def test_eight_percent(self):
        assert tax_for(200.0, 0.08) == 16.0

    def test_rounds_half_up_to_cents(self):
        # 0.08 * 0.5625 = 0.045 → 0.05
        assert tax_for(0.5625, 0.08) == 0.05

    def test_quantize(self):
        assert quantize(1.005) == 1.01
        assert quantize(2) == 2.0
