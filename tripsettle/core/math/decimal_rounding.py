"""
Decimal Rounding — Точные денежные примитивы

Модуль обеспечивает точную арифметику денежных сумм на Decimal:
- Приведение значений к Decimal без прохода через двоичный float
- Округление до N знаков: half-up, half-even, floor, ceil
- Безопасное деление с явным нулём при нулевом знаменателе
- Сравнение сумм в пределах точности валюты

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Денежные суммы никогда не представляются как float
2. Деление на ноль никогда не происходит (возвращается Decimal(0))
3. Точность округления всегда передаётся параметром
4. Все операции детерминированы и воспроизводимы
"""

from decimal import (
    ROUND_CEILING,
    ROUND_FLOOR,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Decimal,
    localcontext,
)
from typing import Final

from tripsettle.core.domain.currency import get_decimal_places
from tripsettle.core.domain.rounding import RoundingMode


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Значащие цифры контекста Decimal (не "знаки после запятой")
DECIMAL_CONTEXT_PRECISION: Final[int] = 34

ZERO: Final[Decimal] = Decimal(0)

_DECIMAL_ROUNDING: Final[dict[RoundingMode, str]] = {
    RoundingMode.HALF_UP: ROUND_HALF_UP,
    RoundingMode.HALF_EVEN: ROUND_HALF_EVEN,
    RoundingMode.FLOOR: ROUND_FLOOR,
    RoundingMode.CEIL: ROUND_CEILING,
}


# =============================================================================
# ПРИВЕДЕНИЕ ТИПОВ
# =============================================================================


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    """
    Приведение к Decimal.

    float конвертируется через str, чтобы не тащить артефакты двоичного
    представления (0.1 → Decimal('0.1'), а не 0.1000000000000000055...).

    Raises:
        ValueError: Если значение не является конечным числом
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        result = Decimal(value)

    if not result.is_finite():
        raise ValueError(f"Money value must be finite, got {value}")
    return result


def quantum(decimal_places: int) -> Decimal:
    """
    Единица точности для N знаков: 0 → 1, 2 → 0.01, 3 → 0.001.

    Raises:
        ValueError: Если decimal_places < 0
    """
    if decimal_places < 0:
        raise ValueError(f"decimal_places must be non-negative, got {decimal_places}")
    return Decimal(1).scaleb(-decimal_places)


# =============================================================================
# ОКРУГЛЕНИЕ
# =============================================================================


def round_to_places(value: Decimal, decimal_places: int, mode: RoundingMode) -> Decimal:
    """
    Округление Decimal до decimal_places знаков.

    Режимы:
    - HALF_UP: 1.235 → 1.24, -1.235 → -1.24 (ties от нуля)
    - HALF_EVEN: 1.225 → 1.22, 1.235 → 1.24 (ties к чётной цифре)
    - FLOOR: 1.239 → 1.23, -1.231 → -1.24
    - CEIL: 1.231 → 1.24, -1.239 → -1.23

    Args:
        value: Исходное значение
        decimal_places: Количество знаков после запятой (>= 0)
        mode: Режим округления

    Returns:
        Значение, квантованное ровно до decimal_places знаков

    Examples:
        >>> round_to_places(Decimal("1000.7"), 0, RoundingMode.HALF_UP)
        Decimal('1001')
        >>> round_to_places(Decimal("2.5"), 0, RoundingMode.HALF_EVEN)
        Decimal('2')
    """
    step = quantum(decimal_places)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_CONTEXT_PRECISION
        return value.quantize(step, rounding=_DECIMAL_ROUNDING[mode])


def round_money(value: Decimal, currency_code: str, mode: RoundingMode) -> Decimal:
    """Округление до точности валюты из Currency Precision Table."""
    return round_to_places(value, get_decimal_places(currency_code), mode)


# =============================================================================
# БЕЗОПАСНОЕ ДЕЛЕНИЕ
# =============================================================================


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """
    Деление с явным нулём вместо ZeroDivisionError / NaN.

    Returns:
        numerator / denominator, либо Decimal(0) если denominator == 0
    """
    if denominator == ZERO:
        return ZERO
    with localcontext() as ctx:
        ctx.prec = DECIMAL_CONTEXT_PRECISION
        return numerator / denominator


# =============================================================================
# СРАВНЕНИЯ
# =============================================================================


def are_equal_within_precision(a: Decimal, b: Decimal, currency_code: str) -> bool:
    """
    Равенство сумм в пределах точности валюты.

    Суммы равны, если |a - b| строго меньше одной минимальной единицы валюты.

    Examples:
        >>> are_equal_within_precision(Decimal("10.00"), Decimal("10.009"), "USD")
        True
        >>> are_equal_within_precision(Decimal("10.00"), Decimal("10.01"), "USD")
        False
        >>> are_equal_within_precision(Decimal("100"), Decimal("100.9"), "JPY")
        True
    """
    return abs(a - b) < quantum(get_decimal_places(currency_code))


def sum_decimals(values) -> Decimal:
    """Сумма Decimal; пустой набор → Decimal(0)."""
    return sum(values, ZERO)


# =============================================================================
# ФОРМАТИРОВАНИЕ
# =============================================================================


def format_for_currency(value: Decimal, currency_code: str) -> str:
    """
    Строка с ровно тем количеством знаков, которое принято в валюте.

    Examples:
        >>> format_for_currency(Decimal("10.5"), "USD")
        '10.50'
        >>> format_for_currency(Decimal("10000.7"), "VND")
        '10001'
    """
    return f"{round_money(value, currency_code, RoundingMode.HALF_UP):f}"
