from decimal import Decimal

from letrus_care.shared.utils.money import round_money


class TestRoundMoney:
    def test_round_half_up(self):
        assert round_money(Decimal("10.125")) == Decimal("10.13")
        assert round_money(Decimal("10.124")) == Decimal("10.12")

    def test_float_goes_through_str(self):
        assert round_money(0.1 + 0.2) == Decimal("0.30")

    def test_int_and_string(self):
        assert round_money(5000) == Decimal("5000.00")
        assert round_money("7500.5") == Decimal("7500.50")

    def test_none_is_zero(self):
        assert round_money(None) == Decimal("0.00")
