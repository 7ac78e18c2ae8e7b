"""
Transfer Breakdown Calculator — Объяснение перевода через расходы

Для пары (from, to) проходит по расходам и считает прямой двусторонний
вклад каждого:
- платил to: доля from увеличивает долг from → to
- платил from: доля to уменьшает долг
- платил третий участник: вклад 0

Breakdown объясняет сырой парный долг, а не маршрутизацию переводов
после оптимизации solver'ом: расход третьего лица может влиять на
оптимизированный перевод, но здесь даёт ноль.
"""

from collections.abc import Sequence
from decimal import Decimal

from tripsettle.core.domain.currency import normalize_currency_code
from tripsettle.core.domain.expense import Expense
from tripsettle.core.domain.settlement import ExpenseBreakdown, MinimalTransfer, TransferBreakdown
from tripsettle.core.math.decimal_rounding import ZERO
from tripsettle.settlement.aggregator import AggregatorConfig, PersonSummaryAggregator


class TransferBreakdownCalculator:
    """Transfer Breakdown Calculator.

    Доли расходов считаются так же, как в PersonSummaryAggregator
    с той же конфигурацией.
    """

    def __init__(self, config: AggregatorConfig | None = None):
        self._aggregator = PersonSummaryAggregator(config)

    def calculate(
        self,
        from_user_id: str,
        to_user_id: str,
        expenses: Sequence[Expense],
        total_amount: Decimal | None = None,
        currency_filter: str | None = None,
    ) -> TransferBreakdown:
        """
        Breakdown парного долга from → to.

        Args:
            from_user_id: Кто платит
            to_user_id: Кто получает
            expenses: Расходы
            total_amount: Сумма объясняемого перевода; по умолчанию
                прямой парный долг (Σ вкладов)
            currency_filter: Учитывать только расходы этой валюты

        Returns:
            TransferBreakdown с ExpenseBreakdown на каждый расход в порядке входа
        """
        currency = normalize_currency_code(currency_filter) if currency_filter is not None else None

        breakdowns = []
        for expense in expenses:
            if currency is not None and expense.currency != currency:
                continue
            breakdowns.append(self._expense_breakdown(expense, from_user_id, to_user_id))

        result = TransferBreakdown(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            total_amount=ZERO,
            expense_breakdowns=tuple(breakdowns),
        )
        amount = total_amount if total_amount is not None else result.net_contribution
        return result.model_copy(update={"total_amount": amount})

    def for_transfer(
        self,
        transfer: MinimalTransfer,
        expenses: Sequence[Expense],
        currency_filter: str | None = None,
    ) -> TransferBreakdown:
        """Breakdown для перевода, выданного solver."""
        return self.calculate(
            transfer.from_user_id,
            transfer.to_user_id,
            expenses,
            total_amount=transfer.amount,
            currency_filter=currency_filter,
        )

    def _expense_breakdown(self, expense: Expense, from_user_id: str, to_user_id: str) -> ExpenseBreakdown:
        shares = self._aggregator.shares_for(expense)
        from_owes = shares.get(from_user_id, ZERO)
        to_owes = shares.get(to_user_id, ZERO)

        if expense.payer_id == to_user_id:
            contribution = from_owes
        elif expense.payer_id == from_user_id:
            contribution = -to_owes
        else:
            contribution = ZERO

        return ExpenseBreakdown(
            expense=expense,
            from_paid=expense.amount if expense.payer_id == from_user_id else ZERO,
            from_owes=from_owes,
            to_paid=expense.amount if expense.payer_id == to_user_id else ZERO,
            to_owes=to_owes,
            net_contribution=contribution,
        )
