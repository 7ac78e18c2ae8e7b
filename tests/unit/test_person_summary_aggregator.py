"""
Тесты для Expense Shares и Person Summary Aggregator

Проверяет:
1. Доли equal / weighted / itemized (предрасчитанные суммы в приоритете)
2. paid / owed / net по набору расходов
3. Сохранение денег: Σ net == 0
4. Фильтр по валюте и предупреждение о смешанных валютах
"""

import logging
from decimal import Decimal

import pytest

from tripsettle.core.domain import Expense, RemainderPolicy, SplitType
from tripsettle.core.math import sum_decimals
from tripsettle.settlement import (
    AggregatorConfig,
    PersonSummaryAggregator,
    calculate_shares,
    group_by_currency,
)


def _expense(
    expense_id: str,
    payer: str,
    amount: str,
    users: list[str],
    currency: str = "USD",
    **kwargs,
) -> Expense:
    return Expense(
        id=expense_id,
        payer_id=payer,
        amount=Decimal(amount),
        currency=currency,
        participants={user: Decimal("1") for user in users},
        **kwargs,
    )


@pytest.fixture
def aggregator() -> PersonSummaryAggregator:
    return PersonSummaryAggregator()


# =============================================================================
# SHARES
# =============================================================================


class TestCalculateShares:
    """Тесты долей одного расхода"""

    def test_equal_split_with_remainder(self) -> None:
        shares = calculate_shares(_expense("e", "a", "100", ["a", "b", "c"]))
        assert shares == {"a": Decimal("33.34"), "b": Decimal("33.33"), "c": Decimal("33.33")}

    def test_zero_decimal_currency(self) -> None:
        shares = calculate_shares(_expense("e", "a", "1000", ["a", "b", "c"], currency="JPY"))
        assert shares == {"a": Decimal("334"), "b": Decimal("333"), "c": Decimal("333")}

    def test_weighted_split(self) -> None:
        expense = Expense(
            id="e",
            payer_id="a",
            amount=Decimal("100"),
            currency="USD",
            split_type=SplitType.WEIGHTED,
            participants={"a": Decimal("2"), "b": Decimal("1"), "c": Decimal("1")},
        )
        assert calculate_shares(expense) == {
            "a": Decimal("50.00"),
            "b": Decimal("25.00"),
            "c": Decimal("25.00"),
        }

    def test_weighted_zero_total_weight(self) -> None:
        expense = Expense(
            id="e",
            payer_id="a",
            amount=Decimal("100"),
            currency="USD",
            split_type=SplitType.WEIGHTED,
            participants={"a": Decimal("0"), "b": Decimal("0")},
        )
        assert calculate_shares(expense) == {}

    def test_prestored_amounts_take_precedence(self) -> None:
        expense = _expense(
            "e",
            "a",
            "100",
            ["a", "b"],
            participant_amounts={"a": Decimal("70"), "b": Decimal("30")},
        )
        assert calculate_shares(expense) == {"a": Decimal("70"), "b": Decimal("30")}

    def test_payer_policy_gives_remainder_to_payer(self) -> None:
        expense = _expense("e", "c", "100", ["a", "b", "c"])
        shares = calculate_shares(expense, remainder_policy=RemainderPolicy.PAYER)
        assert shares["c"] == Decimal("33.34")

    def test_payer_policy_with_non_participating_payer(self) -> None:
        """Плательщик вне расхода забирает только единицы остатка"""
        expense = _expense("e", "z", "100", ["a", "b", "c"])
        shares = calculate_shares(expense, remainder_policy=RemainderPolicy.PAYER)
        assert shares == {
            "a": Decimal("33.33"),
            "b": Decimal("33.33"),
            "c": Decimal("33.33"),
            "z": Decimal("0.01"),
        }

    def test_payer_policy_without_remainder_keeps_payer_out(self) -> None:
        expense = _expense("e", "z", "90", ["a", "b", "c"])
        shares = calculate_shares(expense, remainder_policy=RemainderPolicy.PAYER)
        assert shares == {"a": Decimal("30.00"), "b": Decimal("30.00"), "c": Decimal("30.00")}

    def test_even_split_tie_goes_to_first_participant(self) -> None:
        shares = calculate_shares(_expense("e", "a", "100", ["c", "b", "a"]))
        assert shares == {"c": Decimal("33.34"), "b": Decimal("33.33"), "a": Decimal("33.33")}


# =============================================================================
# AGGREGATOR
# =============================================================================


class TestPersonSummaryAggregator:
    """Тесты агрегатора"""

    def test_single_expense(self, aggregator: PersonSummaryAggregator) -> None:
        summaries = aggregator.summarize([_expense("e1", "alice", "90", ["alice", "bob", "carol"])])

        by_user = {s.user_id: s for s in summaries}
        assert [s.user_id for s in summaries] == ["alice", "bob", "carol"]
        assert by_user["alice"].total_paid == Decimal("90")
        assert by_user["alice"].total_owed == Decimal("30.00")
        assert by_user["alice"].net == Decimal("60.00")
        assert by_user["bob"].net == Decimal("-30.00")
        assert by_user["carol"].total_paid == Decimal("0")

    def test_conservation_of_money(self, aggregator: PersonSummaryAggregator) -> None:
        expenses = [
            _expense("e1", "alice", "100", ["alice", "bob", "carol"]),
            _expense("e2", "bob", "47.11", ["alice", "bob", "carol", "dave"]),
            _expense("e3", "dave", "13.37", ["carol", "dave"]),
            _expense("e4", "carol", "0.01", ["alice", "bob", "carol"]),
        ]
        summaries = aggregator.summarize(expenses)
        assert sum_decimals(s.net for s in summaries) == 0

    def test_currency_filter(self, aggregator: PersonSummaryAggregator) -> None:
        expenses = [
            _expense("e1", "alice", "160", ["alice", "bob"]),
            _expense("e2", "bob", "50", ["alice", "bob"], currency="EUR"),
        ]
        summaries = {s.user_id: s for s in aggregator.summarize(expenses, currency_filter="usd")}

        assert summaries["alice"].total_paid == Decimal("160")
        assert summaries["alice"].total_owed == Decimal("80.00")
        assert summaries["alice"].net == Decimal("80.00")
        assert summaries["bob"].total_paid == Decimal("0")
        assert summaries["bob"].net == Decimal("-80.00")

    def test_mixed_currencies_logged(
        self, aggregator: PersonSummaryAggregator, caplog: pytest.LogCaptureFixture
    ) -> None:
        expenses = [
            _expense("e1", "alice", "10", ["alice", "bob"]),
            _expense("e2", "bob", "10", ["alice", "bob"], currency="EUR"),
        ]
        with caplog.at_level(logging.WARNING):
            aggregator.summarize(expenses)
        assert "mixed currencies" in caplog.text

    def test_prestored_amounts_used(self, aggregator: PersonSummaryAggregator) -> None:
        expense = Expense(
            id="dinner",
            payer_id="alice",
            amount=Decimal("38.55"),
            currency="USD",
            split_type=SplitType.ITEMIZED,
            participant_amounts={"alice": Decimal("19.27"), "bob": Decimal("19.28")},
        )
        summaries = {s.user_id: s for s in aggregator.summarize([expense])}
        assert summaries["alice"].net == Decimal("19.28")
        assert summaries["bob"].net == Decimal("-19.28")

    def test_participant_ids_seed_order_and_zeros(self, aggregator: PersonSummaryAggregator) -> None:
        summaries = aggregator.summarize(
            [_expense("e1", "bob", "20", ["alice", "bob"])],
            participant_ids=["dave", "alice", "bob"],
        )
        assert [s.user_id for s in summaries] == ["dave", "alice", "bob"]
        assert summaries[0].net == 0

    def test_payer_outside_participants(self, aggregator: PersonSummaryAggregator) -> None:
        summaries = {
            s.user_id: s for s in aggregator.summarize([_expense("e1", "carol", "20", ["alice", "bob"])])
        }
        assert summaries["carol"].total_owed == 0
        assert summaries["carol"].net == Decimal("20")

    def test_config_policy_is_applied(self) -> None:
        aggregator = PersonSummaryAggregator(
            AggregatorConfig(default_remainder_policy=RemainderPolicy.FIRST_LISTED)
        )
        summaries = {s.user_id: s for s in aggregator.summarize([_expense("e", "c", "100", ["a", "b", "c"])])}
        assert summaries["a"].total_owed == Decimal("33.34")

    def test_payer_policy_with_gift_expense(self) -> None:
        """carol платит за подарок alice, bob и dave"""
        aggregator = PersonSummaryAggregator(
            AggregatorConfig(default_remainder_policy=RemainderPolicy.PAYER)
        )
        summaries = {
            s.user_id: s
            for s in aggregator.summarize([_expense("gift", "carol", "10", ["alice", "bob", "dave"])])
        }
        assert summaries["carol"].total_owed == Decimal("0.01")
        assert summaries["carol"].net == Decimal("9.99")
        for user_id in ("alice", "bob", "dave"):
            assert summaries[user_id].net == Decimal("-3.33")
        assert sum_decimals(s.net for s in summaries.values()) == 0

    def test_empty_input(self, aggregator: PersonSummaryAggregator) -> None:
        assert aggregator.summarize([]) == []


class TestGroupByCurrency:
    def test_buckets_in_first_seen_order(self) -> None:
        expenses = [
            _expense("e1", "a", "1", ["a"], currency="EUR"),
            _expense("e2", "a", "1", ["a"]),
            _expense("e3", "a", "1", ["a"], currency="EUR"),
        ]
        buckets = group_by_currency(expenses)
        assert list(buckets) == ["EUR", "USD"]
        assert [e.id for e in buckets["EUR"]] == ["e1", "e3"]
