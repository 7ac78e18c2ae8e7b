"""
Expense Shares — Доли участников одного расхода

Единая точка вычисления долей расхода для агрегатора, pairwise-неттинга
и Transfer Breakdown Calculator: все три должны видеть одни и те же суммы.

Приоритет:
1. participant_amounts (предрасчитанная itemized-разбивка) берутся как есть
2. equal: amount / n каждому ключу participants
3. weighted: amount × вес / Σ весов

Доли equal/weighted округляются до точности валюты расхода через
distribute_remainder, поэтому Σ долей == amount ровно.
"""

import logging
from decimal import Decimal

from tripsettle.core.domain.expense import Expense, SplitType
from tripsettle.core.domain.rounding import RemainderPolicy, RoundingConfig, RoundingMode
from tripsettle.core.math.decimal_rounding import ZERO, safe_divide, sum_decimals
from tripsettle.core.math.remainder_distribution import distribute_remainder


logger = logging.getLogger(__name__)


def calculate_shares(
    expense: Expense,
    mode: RoundingMode = RoundingMode.HALF_UP,
    remainder_policy: RemainderPolicy = RemainderPolicy.LARGEST_SHARE,
    random_seed: int | None = None,
) -> dict[str, Decimal]:
    """
    Участник → доля расхода.

    Args:
        expense: Расход
        mode: Режим округления долей equal/weighted
        remainder_policy: Политика остатка
        random_seed: Seed для политики RANDOM

    Returns:
        dict участник → доля; пустой dict, если делить не на кого
        (нет участников или Σ весов == 0). При политике PAYER плательщик,
        не участвующий в расходе, забирает только единицы остатка
    """
    if expense.participant_amounts:
        return dict(expense.participant_amounts)

    if not expense.participants:
        return {}

    if expense.split_type == SplitType.WEIGHTED:
        total_weight = sum_decimals(expense.participants.values())
        if total_weight == ZERO:
            logger.warning("Expense %s has zero total weight, no shares assigned", expense.id)
            return {}
        raw = {
            user_id: expense.amount * safe_divide(weight, total_weight)
            for user_id, weight in expense.participants.items()
        }
    else:
        per_person = safe_divide(expense.amount, Decimal(len(expense.participants)))
        raw = {user_id: per_person for user_id in expense.participants}

    # Хвост точности контекста последнему участнику: Σ raw == amount
    last = next(reversed(raw))
    raw[last] += expense.amount - sum_decimals(raw.values())

    absorbs_remainder = remainder_policy == RemainderPolicy.PAYER and expense.payer_id not in raw
    if absorbs_remainder:
        raw[expense.payer_id] = ZERO

    rounding = RoundingConfig.for_currency(expense.currency, mode, remainder_policy)
    shares = distribute_remainder(raw, rounding, expense.payer_id, random_seed)

    if absorbs_remainder and shares[expense.payer_id] == ZERO:
        del shares[expense.payer_id]
    return shares
