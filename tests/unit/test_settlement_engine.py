"""
Тесты для Settlement Engine (полный конвейер)

Проверяет:
1. Itemized-чек → расход → итоги → переводы → валидация
2. Отдельные расчёты по валютам
3. Отчёт по схеме settlement_report
4. Объяснение перевода
"""

from decimal import Decimal

import pytest

from tripsettle.core.contracts import validate_settlement_report
from tripsettle.core.domain import (
    AllocationRule,
    Expense,
    Extras,
    ItemAssignment,
    LineItem,
    RemainderPolicy,
    RoundingConfig,
    SplitType,
    TaxExtra,
    TipExtra,
)
from tripsettle.core.math import sum_decimals
from tripsettle.itemized import ItemizedSplitCalculator
from tripsettle.settlement import AggregatorConfig, EngineConfig, SettlementEngine, SolverConfig


def _expense(expense_id: str, payer: str, amount: str, users: list[str], currency: str = "USD") -> Expense:
    return Expense(
        id=expense_id,
        payer_id=payer,
        amount=Decimal(amount),
        currency=currency,
        participants={user: Decimal("1") for user in users},
    )


@pytest.fixture
def engine() -> SettlementEngine:
    return SettlementEngine()


@pytest.fixture
def itemized_dinner() -> Expense:
    """Pizza + Salad, налог 8.5%, чаевые 20%; платит alice"""
    items = [
        LineItem(
            id="pizza",
            name="Pizza",
            quantity=Decimal("1"),
            unit_price=Decimal("18.00"),
            assignment=ItemAssignment.even("alice", "bob"),
        ),
        LineItem(
            id="salad",
            name="Salad",
            quantity=Decimal("1"),
            unit_price=Decimal("12.00"),
            assignment=ItemAssignment.even("alice", "bob"),
        ),
    ]
    extras = Extras(tax=TaxExtra.percent(Decimal("8.5")), tip=TipExtra.percent(Decimal("20")))
    rule = AllocationRule(rounding=RoundingConfig.for_currency("USD"))

    result = ItemizedSplitCalculator().calculate(items, extras, rule, "USD", payer_id="alice")
    return Expense(
        id="dinner",
        payer_id="alice",
        amount=result.grand_total,
        currency="USD",
        split_type=SplitType.ITEMIZED,
        participant_amounts=result.participant_amounts(),
    )


class TestSettlementEngine:
    """Тесты конвейера расчёта"""

    def test_itemized_pipeline(self, engine: SettlementEngine, itemized_dinner: Expense) -> None:
        expenses = [itemized_dinner, _expense("cab", "carol", "30", ["alice", "bob", "carol"])]

        result = engine.compute(expenses, "USD")

        nets = {s.user_id: s.net for s in result.person_summaries}
        assert nets == {
            "alice": Decimal("9.28"),
            "bob": Decimal("-29.28"),
            "carol": Decimal("20.00"),
        }
        assert sum_decimals(nets.values()) == 0
        assert [(t.from_user_id, t.to_user_id, t.amount) for t in result.transfers] == [
            ("bob", "carol", Decimal("20.00")),
            ("bob", "alice", Decimal("9.28")),
        ]
        assert result.validation.is_valid
        assert not result.has_warnings
        assert result.warnings == []

    def test_compute_by_currency(self, engine: SettlementEngine) -> None:
        expenses = [
            _expense("e1", "alice", "160", ["alice", "bob"]),
            _expense("e2", "bob", "9000", ["alice", "bob"], currency="JPY"),
        ]

        results = engine.compute_by_currency(expenses)

        assert list(results) == ["USD", "JPY"]
        usd = {s.user_id: s for s in results["USD"].person_summaries}
        assert usd["alice"].total_paid == Decimal("160")
        assert usd["alice"].total_owed == Decimal("80.00")
        assert [(t.from_user_id, t.amount) for t in results["JPY"].transfers] == [("alice", Decimal("4500"))]

    def test_participants_without_expenses(self, engine: SettlementEngine) -> None:
        result = engine.compute(
            [_expense("e1", "alice", "10", ["alice", "bob"])], "usd", participant_ids=["alice", "bob", "dave"]
        )
        assert result.currency == "USD"
        assert [s.user_id for s in result.person_summaries] == ["alice", "bob", "dave"]
        assert len(result.transfers) == 1

    def test_report_matches_schema(self, engine: SettlementEngine, itemized_dinner: Expense) -> None:
        result = engine.compute([itemized_dinner], "USD")
        report = result.to_report()

        validate_settlement_report(report)
        assert report["transfers"] == [{"from_user_id": "bob", "to_user_id": "alice", "amount": "19.28"}]
        assert report["person_summaries"][0]["total_paid"] == "38.55"
        assert report["validation"] == {"is_valid": True, "issues": []}

    def test_report_with_issues_matches_schema(self) -> None:
        """Перевод не закрывает долг из-за большого settle_epsilon"""
        engine = SettlementEngine(EngineConfig(solver=SolverConfig(settle_epsilon=Decimal("100"))))
        result = engine.compute([_expense("e1", "alice", "10", ["alice", "bob"])], "USD")

        assert result.has_warnings
        assert result.transfers == ()
        validate_settlement_report(result.to_report())

    def test_explain_transfer(self, engine: SettlementEngine) -> None:
        expenses = [
            _expense("hotel", "bob", "30", ["alice", "bob"]),
            _expense("taxi", "alice", "10", ["alice", "bob"]),
        ]
        result = engine.compute(expenses, "USD")
        (transfer,) = result.transfers

        breakdown = engine.explain_transfer(transfer, expenses, currency="USD")

        assert breakdown.total_amount == transfer.amount == Decimal("10.00")
        assert breakdown.net_contribution == transfer.amount

    def test_payer_policy_with_payer_outside_expense(self) -> None:
        """carol платит за подарок остальным: остаток деления остаётся у неё"""
        engine = SettlementEngine(
            EngineConfig(aggregator=AggregatorConfig(default_remainder_policy=RemainderPolicy.PAYER))
        )
        expenses = [_expense("gift", "carol", "10", ["alice", "bob", "dave"])]

        result = engine.compute(expenses, "USD")

        assert result.validation.is_valid
        assert sorted((t.from_user_id, t.to_user_id, t.amount) for t in result.transfers) == [
            ("alice", "carol", Decimal("3.33")),
            ("bob", "carol", Decimal("3.33")),
            ("dave", "carol", Decimal("3.33")),
        ]
        for transfer in result.transfers:
            breakdown = engine.explain_transfer(transfer, expenses)
            assert breakdown.net_contribution == transfer.amount

    def test_recomputation_is_deterministic(self, engine: SettlementEngine, itemized_dinner: Expense) -> None:
        expenses = [itemized_dinner, _expense("cab", "carol", "30", ["alice", "bob", "carol"])]
        first = engine.compute(expenses, "USD")
        second = engine.compute(expenses, "USD")

        assert first.person_summaries == second.person_summaries
        assert [(t.from_user_id, t.to_user_id, t.amount) for t in first.transfers] == [
            (t.from_user_id, t.to_user_id, t.amount) for t in second.transfers
        ]
