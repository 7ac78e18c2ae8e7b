"""
Minimal Transfer Solver — Жадное погашение балансов

Участники делятся на кредиторов (net > 0) и должников (net < 0, хранится
модуль). На каждом шаге крупнейший должник платит крупнейшему кредитору
min(долг, кредит); стороны с остатком < settle_epsilon выбывают.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Каждый перевод amount > 0 и from != to
2. Каждый шаг выводит из игры хотя бы одну сторону →
   число переводов ≤ (число участников с ненулевым балансом - 1)
3. Ties разрешаются порядком участников во входе (детерминизм)

Это эвристика, а не точный минимум числа переводов.

Также: calculate_pairwise_net_transfers — прямые двусторонние долги
по расходам без оптимизации (взаимозачёт внутри каждой пары).
"""

import heapq
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Final

from tripsettle.core.domain.currency import normalize_currency_code
from tripsettle.core.domain.expense import Expense
from tripsettle.core.domain.settlement import MinimalTransfer, PersonSummary
from tripsettle.core.math.decimal_rounding import ZERO
from tripsettle.settlement.aggregator import AggregatorConfig, PersonSummaryAggregator


logger = logging.getLogger(__name__)

DEFAULT_SETTLE_EPSILON: Final[Decimal] = Decimal("0.01")


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class SolverConfig:
    """Конфигурация solver.

    settle_epsilon: баланс меньше этой величины считается погашенным.
    """

    settle_epsilon: Decimal = DEFAULT_SETTLE_EPSILON


# =============================================================================
# SOLVER
# =============================================================================


# Элемент кучи: (-остаток, позиция во входе, участник)
_HeapEntry = tuple[Decimal, int, str]


class MinimalTransferSolver:
    """Minimal Transfer Solver.

    Рабочее состояние (две max-кучи) создаётся заново в каждом вызове
    solve и принадлежит только ему.
    """

    def __init__(self, config: SolverConfig | None = None):
        self.config = config or SolverConfig()

    def solve(
        self,
        summaries: Sequence[PersonSummary],
        computed_at: datetime | None = None,
    ) -> list[MinimalTransfer]:
        """
        Переводы, погашающие net-балансы.

        Args:
            summaries: Итоги участников (Σ net ≈ 0)
            computed_at: Метка времени переводов (по умолчанию сейчас, UTC)

        Returns:
            Переводы в порядке генерации
        """
        epsilon = self.config.settle_epsilon
        timestamp = computed_at or datetime.now(timezone.utc)

        creditors: list[_HeapEntry] = []
        debtors: list[_HeapEntry] = []
        for position, summary in enumerate(summaries):
            if summary.net >= epsilon:
                creditors.append((-summary.net, position, summary.user_id))
            elif summary.net <= -epsilon:
                debtors.append((summary.net, position, summary.user_id))
        heapq.heapify(creditors)
        heapq.heapify(debtors)

        transfers: list[MinimalTransfer] = []
        while creditors and debtors:
            neg_credit, creditor_pos, creditor = heapq.heappop(creditors)
            neg_debt, debtor_pos, debtor = heapq.heappop(debtors)
            credit, debt = -neg_credit, -neg_debt

            amount = min(credit, debt)
            logger.debug("Transfer %s -> %s: %s", debtor, creditor, amount)
            transfers.append(
                MinimalTransfer(
                    from_user_id=debtor,
                    to_user_id=creditor,
                    amount=amount,
                    computed_at=timestamp,
                )
            )

            credit -= amount
            debt -= amount
            if credit >= epsilon:
                heapq.heappush(creditors, (-credit, creditor_pos, creditor))
            if debt >= epsilon:
                heapq.heappush(debtors, (-debt, debtor_pos, debtor))

        if creditors or debtors:
            leftover = [user_id for _, _, user_id in (*creditors, *debtors)]
            logger.warning("Unsettled balances after solving (net does not sum to zero): %s", leftover)

        logger.debug("Solved %d balances into %d transfers", len(summaries), len(transfers))
        return transfers


# =============================================================================
# PAIRWISE NETTING
# =============================================================================


def calculate_pairwise_net_transfers(
    expenses: Sequence[Expense],
    currency_filter: str | None = None,
    settle_epsilon: Decimal = DEFAULT_SETTLE_EPSILON,
    computed_at: datetime | None = None,
    config: AggregatorConfig | None = None,
) -> list[MinimalTransfer]:
    """
    Прямые долги между парами участников после взаимозачёта.

    Участник p должен плательщику каждого расхода свою долю; долги
    в обе стороны внутри пары сворачиваются в один перевод.

    Args:
        expenses: Расходы
        currency_filter: Учитывать только расходы этой валюты
        settle_epsilon: Меньшие остатки пары не порождают перевод
        computed_at: Метка времени переводов
        config: Округление долей; те же правила, что у агрегатора и breakdown

    Returns:
        Переводы в порядке первого появления пары
    """
    timestamp = computed_at or datetime.now(timezone.utc)
    currency = normalize_currency_code(currency_filter) if currency_filter is not None else None
    aggregator = PersonSummaryAggregator(config)

    debts: dict[tuple[str, str], Decimal] = {}
    for expense in expenses:
        if currency is not None and expense.currency != currency:
            continue
        for user_id, share in aggregator.shares_for(expense).items():
            if user_id == expense.payer_id or share == ZERO:
                continue
            key = (user_id, expense.payer_id)
            debts[key] = debts.get(key, ZERO) + share

    transfers: list[MinimalTransfer] = []
    seen: set[frozenset[str]] = set()
    for debtor, creditor in debts:
        pair = frozenset((debtor, creditor))
        if pair in seen:
            continue
        seen.add(pair)

        net = debts[(debtor, creditor)] - debts.get((creditor, debtor), ZERO)
        if abs(net) < settle_epsilon:
            continue
        sender, receiver = (debtor, creditor) if net > ZERO else (creditor, debtor)
        transfers.append(
            MinimalTransfer(
                from_user_id=sender,
                to_user_id=receiver,
                amount=abs(net),
                computed_at=timestamp,
            )
        )

    return transfers
