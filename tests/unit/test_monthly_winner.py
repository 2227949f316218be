"""Best-of-month reduction across participants."""

from datetime import date
from decimal import Decimal

from podium.trophies.service import select_monthly_winner
from podium.trophies.types import month_period_key, previous_month


class TestSelectMonthlyWinner:
    def test_highest_profit_wins(self):
        winner = select_monthly_winner({"a": Decimal("100"), "b": Decimal("400"), "c": Decimal("250")}, 2025, 2)
        assert winner.participant_id == "b"
        assert winner.value == Decimal("400")
        assert winner.period_key == "2025-02"

    def test_tie_goes_to_lowest_participant_id(self):
        profits = {"p3": Decimal("100"), "p2": Decimal("250"), "p1": Decimal("250")}
        assert select_monthly_winner(profits, 2025, 2).participant_id == "p1"

    def test_tie_result_does_not_depend_on_input_order(self):
        forward = {"p1": Decimal("250"), "p2": Decimal("250")}
        backward = {"p2": Decimal("250"), "p1": Decimal("250")}
        assert select_monthly_winner(forward, 2025, 2) == select_monthly_winner(backward, 2025, 2)

    def test_no_positive_profit_means_no_winner(self):
        winner = select_monthly_winner({"a": Decimal("0"), "b": Decimal("-10")}, 2025, 2)
        assert winner.participant_id is None

    def test_no_participants(self):
        assert select_monthly_winner({}, 2025, 2).participant_id is None


class TestPeriods:
    def test_previous_month(self):
        assert previous_month(date(2025, 3, 15)) == (2025, 2)
        assert previous_month(date(2025, 1, 1)) == (2024, 12)

    def test_period_key_is_zero_padded(self):
        assert month_period_key(2025, 3) == "2025-03"
