"""
Remainder Distribution — Точное округление набора долей

Модуль округляет доли участников и раздаёт остаток по единице точности так,
чтобы сумма округлённых долей В ТОЧНОСТИ равнялась округлённой сумме
исходных долей.

АЛГОРИТМ:
    rounded_i = round(raw_i)
    target = round(Σ raw_i)
    remainder = target - Σ rounded_i          (кратно unit)
    пока remainder != 0:
        следующему участнику по политике ± unit

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Σ distributed == round(Σ raw) точно, без дрейфа, для 0/2/3 знаков
2. Точность всегда берётся из RoundingConfig, никогда не "центы"
3. При фиксированном seed результат детерминирован
4. Один участник → распределение не выполняется
"""

import logging
import random
from collections.abc import Mapping
from decimal import Decimal
from typing import Final

from tripsettle.core.domain.rounding import RemainderPolicy, RoundingConfig, RoundingMode
from tripsettle.core.math.decimal_rounding import ZERO, round_to_places, sum_decimals


logger = logging.getLogger(__name__)

# Доли сравниваются с точностью unit + RANK_EXTRA_PLACES знаков: хвост
# деления на последнем знаке контекста не должен разрывать точную ничью
RANK_EXTRA_PLACES: Final[int] = 6


# =============================================================================
# EXCEPTIONS
# =============================================================================


class RemainderPolicyError(ValueError):
    """
    Нарушено предусловие политики распределения остатка.

    Возникает для политики PAYER, если payer_id не передан или
    отсутствует среди участников.
    """
    pass


# =============================================================================
# ДИАГНОСТИКА
# =============================================================================


def calculate_remainder(shares: Mapping[str, Decimal], config: RoundingConfig) -> Decimal:
    """
    Остаток до распределения: round(Σ raw) - Σ round(raw_i).

    Используется в тестах и телеметрии для оценки величины корректировки.

    Args:
        shares: Участник → исходная (неокруглённая) доля
        config: Конфигурация округления

    Returns:
        Знаковый остаток, кратный config.unit (0 для пустого набора)
    """
    places = config.decimal_places
    target = round_to_places(sum_decimals(shares.values()), places, config.mode)
    naive_total = sum_decimals(
        round_to_places(value, places, config.mode) for value in shares.values()
    )
    return target - naive_total


# =============================================================================
# РАСПРЕДЕЛЕНИЕ
# =============================================================================


def distribute_remainder(
    shares: Mapping[str, Decimal],
    config: RoundingConfig,
    payer_id: str | None = None,
    random_seed: int | None = None,
) -> dict[str, Decimal]:
    """
    Округление долей с распределением остатка по политике config.

    Политики:
    - LARGEST_SHARE: по убыванию исходной доли, ties по порядку ключей
    - PAYER: все единицы плательщику (payer_id обязателен и должен быть в shares)
    - FIRST_LISTED: по порядку ключей, начиная с первого
    - RANDOM: по перемешанному порядку (random_seed делает результат воспроизводимым)

    Отрицательный остаток (перекругление вверх) снимается с участников
    в том же порядке.

    Args:
        shares: Участник → исходная доля (порядок ключей значим)
        config: Точность, режим, политика
        payer_id: Плательщик (для политики PAYER)
        random_seed: Seed для политики RANDOM

    Returns:
        Новый dict участник → округлённая доля (порядок ключей сохранён)

    Raises:
        RemainderPolicyError: PAYER без payer_id или payer_id не в shares

    Examples:
        >>> cfg = RoundingConfig(decimal_places=2)
        >>> third = Decimal(10) / Decimal(3)
        >>> distribute_remainder({"a": third, "b": third, "c": third}, cfg)
        {'a': Decimal('3.34'), 'b': Decimal('3.33'), 'c': Decimal('3.33')}
    """
    if config.remainder_policy == RemainderPolicy.PAYER:
        if payer_id is None:
            raise RemainderPolicyError("payer_id is required when remainder policy is 'payer'")
        if payer_id not in shares:
            raise RemainderPolicyError(f"payer_id '{payer_id}' not found in shares")

    places = config.decimal_places
    rounded = {key: round_to_places(value, places, config.mode) for key, value in shares.items()}

    if len(rounded) <= 1:
        return rounded

    remainder = calculate_remainder(shares, config)
    if remainder == ZERO:
        return rounded

    units = int((remainder / config.unit).to_integral_value())
    step = config.unit if units > 0 else -config.unit
    order = _recipient_order(shares, config, payer_id, random_seed)

    logger.debug(
        "Distributing remainder %s (%d units of %s) with policy %s",
        remainder,
        units,
        config.unit,
        config.remainder_policy.value,
    )

    for i in range(abs(units)):
        recipient = order[i % len(order)]
        rounded[recipient] += step

    return rounded


def _recipient_order(
    shares: Mapping[str, Decimal],
    config: RoundingConfig,
    payer_id: str | None,
    random_seed: int | None,
) -> list[str]:
    """Порядок обхода участников при раздаче единиц остатка."""
    keys = list(shares)
    policy = config.remainder_policy

    if policy == RemainderPolicy.LARGEST_SHARE:
        rank_places = config.decimal_places + RANK_EXTRA_PLACES
        ranks = {
            key: round_to_places(shares[key], rank_places, RoundingMode.HALF_EVEN) for key in keys
        }
        ranked = sorted(enumerate(keys), key=lambda pair: (-ranks[pair[1]], pair[0]))
        return [key for _, key in ranked]

    if policy == RemainderPolicy.PAYER:
        # Проверено в distribute_remainder
        return [payer_id]

    if policy == RemainderPolicy.FIRST_LISTED:
        return keys

    # RANDOM
    rng = random.Random(random_seed) if random_seed is not None else random.Random()
    rng.shuffle(keys)
    return keys
