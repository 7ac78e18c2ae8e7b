"""Itemized Split Calculator — разбивка чека по участникам

Превращает позиции чека + extras (налог, чаевые, сборы, скидки) + правило
распределения в полную и точно сбалансированную разбивку по участникам
с audit trail каждой позиции.

Порядок вычисления:
1. Позиции → суммы участников (even: total / n, custom: total × доля)
2. Базы уровня позиций: pre-tax, taxable-only, service-chargeable-only
3. Скидки → post-discount база
4. Налог → post-tax база
5. Сборы → post-fees база
6. Чаевые (могут ссылаться на любую базу)
7. Итог участника = subtotal + Σ extras (со знаком) + корректировка округления

Каждая категория extras округляется через distribute_remainder, поэтому её
доли в сумме ровно равны округлённой глобальной сумме категории.
Нулевая база даёт нулевое распределение (без деления на ноль).
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import assert_never

from tripsettle.core.domain.allocation import AbsoluteSplitMode, AllocationRule, PercentBase
from tripsettle.core.domain.breakdown import ParticipantBreakdown
from tripsettle.core.domain.currency import get_decimal_places
from tripsettle.core.domain.extras import Extras, FlatCharge, PercentCharge
from tripsettle.core.domain.line_item import ItemContribution, LineItem
from tripsettle.core.domain.rounding import RemainderPolicy
from tripsettle.core.math.decimal_rounding import ZERO, safe_divide, sum_decimals
from tripsettle.core.math.remainder_distribution import distribute_remainder


logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)

TAX_KEY = "tax"
TIP_KEY = "tip"
FEE_KEY_PREFIX = "fee:"
DISCOUNT_KEY_PREFIX = "discount:"


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class ItemizedSplitResult:
    """Результат itemized-расчёта."""

    currency: str
    breakdowns: dict[str, ParticipantBreakdown]

    # Глобальные суммы
    items_subtotal: Decimal  # Σ subtotal участников (без округления)
    category_totals: dict[str, Decimal]  # Категория → округлённая сумма (скидки < 0)
    grand_total: Decimal  # Σ итогов участников

    def participant_amounts(self) -> dict[str, Decimal]:
        """Участник → итог; сохраняется в Expense.participant_amounts."""
        return {user_id: breakdown.total for user_id, breakdown in self.breakdowns.items()}


# =============================================================================
# CALCULATOR
# =============================================================================


class ItemizedSplitCalculator:
    """Itemized Split Calculator.

    Сервис без состояния: каждый вызов calculate строит результат заново
    из неизменяемых входов.
    """

    def calculate(
        self,
        items: Sequence[LineItem],
        extras: Extras,
        allocation: AllocationRule,
        currency_code: str,
        payer_id: str | None = None,
        random_seed: int | None = None,
    ) -> ItemizedSplitResult:
        """Разбивка чека по участникам.

        Args:
            items: позиции чека
            extras: налог, чаевые, сборы, скидки
            allocation: правило распределения и округления
            currency_code: валюта чека (точность должна совпадать с allocation.rounding)
            payer_id: плательщик (обязателен для политики остатка PAYER)
            random_seed: seed для политики остатка RANDOM

        Returns:
            ItemizedSplitResult с ParticipantBreakdown для каждого участника

        Raises:
            ValueError: точность allocation.rounding не совпадает с валютой
            RemainderPolicyError: политика PAYER без плательщика среди участников
        """
        expected_places = get_decimal_places(currency_code)
        if allocation.rounding.decimal_places != expected_places:
            raise ValueError(
                f"Rounding precision {allocation.rounding.decimal_places} does not match "
                f"{currency_code} precision {expected_places}"
            )

        # 1-2. Позиции и базы уровня позиций
        ledger = _ItemLedger.from_items(items)
        participants = ledger.participants
        if not participants:
            return ItemizedSplitResult(
                currency=currency_code,
                breakdowns={},
                items_subtotal=ZERO,
                category_totals={},
                grand_total=ZERO,
            )

        bases: dict[PercentBase, dict[str, Decimal]] = {
            PercentBase.PRE_TAX_ITEM_SUBTOTALS: ledger.subtotals,
            PercentBase.TAXABLE_ITEM_SUBTOTALS_ONLY: ledger.taxable,
            PercentBase.SERVICE_CHARGEABLE_ITEM_SUBTOTALS_ONLY: ledger.service_chargeable,
        }
        allocated: dict[str, dict[str, Decimal]] = {user_id: {} for user_id in participants}
        category_totals: dict[str, Decimal] = {}

        def apply(key: str, charge: PercentCharge | FlatCharge, sign: int) -> dict[str, Decimal]:
            shares = self._allocate_charge(
                charge, bases, allocation, participants, payer_id, random_seed
            )
            for user_id in participants:
                allocated[user_id][key] = sign * shares.get(user_id, ZERO)
            category_totals[key] = sign * sum_decimals(shares.values())
            return shares

        # 3. Скидки
        discount_by_user = dict.fromkeys(participants, ZERO)
        for discount in extras.discounts:
            shares = apply(f"{DISCOUNT_KEY_PREFIX}{discount.id}", discount.charge, -1)
            for user_id, value in shares.items():
                discount_by_user[user_id] += value
        bases[PercentBase.POST_DISCOUNT_ITEM_SUBTOTALS] = {
            user_id: ledger.subtotals[user_id] - discount_by_user[user_id] for user_id in participants
        }

        # 4. Налог
        tax_by_user = dict.fromkeys(participants, ZERO)
        if extras.tax is not None:
            tax_by_user.update(apply(TAX_KEY, extras.tax.charge, 1))
        bases[PercentBase.POST_TAX_SUBTOTALS] = {
            user_id: bases[PercentBase.POST_DISCOUNT_ITEM_SUBTOTALS][user_id] + tax_by_user[user_id]
            for user_id in participants
        }

        # 5. Сборы
        fee_by_user = dict.fromkeys(participants, ZERO)
        for fee in extras.fees:
            shares = apply(f"{FEE_KEY_PREFIX}{fee.id}", fee.charge, 1)
            for user_id, value in shares.items():
                fee_by_user[user_id] += value
        bases[PercentBase.POST_FEES_SUBTOTALS] = {
            user_id: bases[PercentBase.POST_TAX_SUBTOTALS][user_id] + fee_by_user[user_id]
            for user_id in participants
        }

        # 6. Чаевые
        if extras.tip is not None:
            apply(TIP_KEY, extras.tip.charge, 1)

        # 7. Итоги с распределением остатка
        unrounded = {
            user_id: ledger.subtotals[user_id] + sum_decimals(allocated[user_id].values())
            for user_id in participants
        }
        totals = distribute_remainder(unrounded, allocation.rounding, payer_id, random_seed)

        breakdowns = {
            user_id: ParticipantBreakdown(
                user_id=user_id,
                items_subtotal=ledger.subtotals[user_id],
                extras_allocated=allocated[user_id],
                rounded_adjustment=totals[user_id] - unrounded[user_id],
                total=totals[user_id],
                items=tuple(ledger.contributions[user_id]),
            )
            for user_id in participants
        }

        items_subtotal = sum_decimals(ledger.subtotals.values())
        grand_total = sum_decimals(totals.values())
        logger.debug(
            "Itemized split: %d items, %d participants, subtotal %s, total %s %s",
            len(items),
            len(participants),
            items_subtotal,
            grand_total,
            currency_code,
        )

        return ItemizedSplitResult(
            currency=currency_code,
            breakdowns=breakdowns,
            items_subtotal=items_subtotal,
            category_totals=category_totals,
            grand_total=grand_total,
        )

    def _allocate_charge(
        self,
        charge: PercentCharge | FlatCharge,
        bases: dict[PercentBase, dict[str, Decimal]],
        allocation: AllocationRule,
        participants: list[str],
        payer_id: str | None,
        random_seed: int | None,
    ) -> dict[str, Decimal]:
        """Глобальная сумма extra → округлённые доли участников."""
        match charge:
            case PercentCharge(rate=rate, base=base):
                weights = _clamped(bases[base])
                raw_total = sum_decimals(weights.values()) * rate / HUNDRED
            case FlatCharge(amount=amount):
                weights = _clamped(bases[allocation.percent_base])
                raw_total = amount
            case _:
                assert_never(charge)

        shares = _split(raw_total, weights, allocation.absolute_split, participants)

        # Политике PAYER нужен плательщик в наборе долей, даже с нулевой долей
        if (
            allocation.rounding.remainder_policy == RemainderPolicy.PAYER
            and payer_id in participants
            and payer_id not in shares
        ):
            shares[payer_id] = ZERO

        return distribute_remainder(shares, allocation.rounding, payer_id, random_seed)


# =============================================================================
# HELPERS
# =============================================================================


@dataclass
class _ItemLedger:
    """Рабочие суммы позиций по участникам (порядок первого появления)."""

    participants: list[str]
    subtotals: dict[str, Decimal]
    taxable: dict[str, Decimal]
    service_chargeable: dict[str, Decimal]
    contributions: dict[str, list[ItemContribution]]

    @classmethod
    def from_items(cls, items: Sequence[LineItem]) -> "_ItemLedger":
        ledger = cls(participants=[], subtotals={}, taxable={}, service_chargeable={}, contributions={})

        for item in items:
            fractions = item.assignment.fractions()
            for user_id, amount in item.allocate().items():
                if user_id not in ledger.subtotals:
                    ledger.participants.append(user_id)
                    ledger.subtotals[user_id] = ZERO
                    ledger.taxable[user_id] = ZERO
                    ledger.service_chargeable[user_id] = ZERO
                    ledger.contributions[user_id] = []

                ledger.subtotals[user_id] += amount
                if item.taxable:
                    ledger.taxable[user_id] += amount
                if item.service_chargeable:
                    ledger.service_chargeable[user_id] += amount

                ledger.contributions[user_id].append(
                    ItemContribution(
                        item_id=item.id,
                        item_name=item.name,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        assigned_share=fractions[user_id],
                        amount=amount,
                    )
                )

        return ledger


def _clamped(base: dict[str, Decimal]) -> dict[str, Decimal]:
    # Скидки больше суммы позиций дают отрицательную базу
    return {user_id: max(value, ZERO) for user_id, value in base.items()}


def _split(
    raw_total: Decimal,
    weights: dict[str, Decimal],
    mode: AbsoluteSplitMode,
    participants: list[str],
) -> dict[str, Decimal]:
    """Деление глобальной суммы без округления; Σ долей ровно raw_total."""
    qualifying = [user_id for user_id in participants if weights.get(user_id, ZERO) > ZERO]

    if mode == AbsoluteSplitMode.PROPORTIONAL_TO_ITEMS_SUBTOTAL and qualifying:
        total_weight = sum_decimals(weights[user_id] for user_id in qualifying)
        shares = {
            user_id: raw_total * safe_divide(weights[user_id], total_weight)
            for user_id in qualifying
        }
    else:
        # Поровну между участниками квалифицирующих позиций, иначе между всеми
        targets = qualifying or participants
        per_person = safe_divide(raw_total, Decimal(len(targets)))
        shares = {user_id: per_person for user_id in targets}

    last = next(reversed(shares))
    shares[last] += raw_total - sum_decimals(shares.values())
    return shares
