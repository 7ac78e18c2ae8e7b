"""
Person Summary Aggregator — Сведение расходов к итогам участников

Для каждого расхода:
- total_paid плательщика += amount
- total_owed каждого участника += его доля (calculate_shares)
- net = total_paid - total_owed

Конвертация валют не выполняется: суммы разных валют складываются как есть.
Мультивалютный набор сначала разбивается group_by_currency, и каждая
корзина сводится отдельно (или передаётся currency_filter).
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from tripsettle.core.domain.currency import normalize_currency_code
from tripsettle.core.domain.expense import Expense
from tripsettle.core.domain.rounding import RemainderPolicy, RoundingMode
from tripsettle.core.domain.settlement import PersonSummary
from tripsettle.core.math.decimal_rounding import ZERO
from tripsettle.settlement.shares import calculate_shares


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class AggregatorConfig:
    """Конфигурация округления долей equal/weighted расходов."""

    rounding_mode: RoundingMode = RoundingMode.HALF_UP
    default_remainder_policy: RemainderPolicy = RemainderPolicy.LARGEST_SHARE


# =============================================================================
# HELPERS
# =============================================================================


def group_by_currency(expenses: Iterable[Expense]) -> dict[str, list[Expense]]:
    """Корзины расходов по валюте (порядок первого появления валюты)."""
    buckets: dict[str, list[Expense]] = {}
    for expense in expenses:
        buckets.setdefault(expense.currency, []).append(expense)
    return buckets


# =============================================================================
# AGGREGATOR
# =============================================================================


class PersonSummaryAggregator:
    """Person Summary Aggregator."""

    def __init__(self, config: AggregatorConfig | None = None):
        self.config = config or AggregatorConfig()

    def shares_for(self, expense: Expense) -> dict[str, Decimal]:
        """Доли расхода по правилам округления агрегатора."""
        return calculate_shares(
            expense,
            mode=self.config.rounding_mode,
            remainder_policy=self.config.default_remainder_policy,
        )

    def summarize(
        self,
        expenses: Sequence[Expense],
        currency_filter: str | None = None,
        participant_ids: Iterable[str] = (),
    ) -> list[PersonSummary]:
        """
        Итоги участников по набору расходов.

        Args:
            expenses: Расходы
            currency_filter: Учитывать только расходы этой валюты
            participant_ids: Участники поездки; попадают в результат даже без
                расходов (с нулевыми итогами) и задают порядок

        Returns:
            PersonSummary в порядке participant_ids, затем первого появления
        """
        if currency_filter is not None:
            currency = normalize_currency_code(currency_filter)
            selected = [e for e in expenses if e.currency == currency]
        else:
            selected = list(expenses)
            currencies = {e.currency for e in selected}
            if len(currencies) > 1:
                logger.warning(
                    "Aggregating expenses in mixed currencies without conversion: %s",
                    sorted(currencies),
                )

        paid: dict[str, Decimal] = {user_id: ZERO for user_id in participant_ids}
        owed: dict[str, Decimal] = dict.fromkeys(paid, ZERO)

        for expense in selected:
            logger.debug(
                "Expense %s: %s paid %s %s",
                expense.id,
                expense.payer_id,
                expense.amount,
                expense.currency,
            )
            paid[expense.payer_id] = paid.get(expense.payer_id, ZERO) + expense.amount
            owed.setdefault(expense.payer_id, ZERO)

            for user_id, share in self.shares_for(expense).items():
                paid.setdefault(user_id, ZERO)
                owed[user_id] = owed.get(user_id, ZERO) + share

        summaries = [
            PersonSummary(
                user_id=user_id,
                total_paid=paid[user_id],
                total_owed=owed[user_id],
                net=paid[user_id] - owed[user_id],
            )
            for user_id in paid
        ]

        logger.debug(
            "Summarized %d expenses into %d person summaries (currency filter: %s)",
            len(selected),
            len(summaries),
            currency_filter,
        )
        return summaries
