"""
Core math modules для tripsettle

Точные денежные примитивы на Decimal и распределение остатка округления.
"""

# Decimal Rounding
from tripsettle.core.math.decimal_rounding import (
    DECIMAL_CONTEXT_PRECISION,
    ZERO,
    are_equal_within_precision,
    format_for_currency,
    quantum,
    round_money,
    round_to_places,
    safe_divide,
    sum_decimals,
    to_decimal,
)

# Remainder Distribution
from tripsettle.core.math.remainder_distribution import (
    RemainderPolicyError,
    calculate_remainder,
    distribute_remainder,
)

__all__ = [
    # Decimal Rounding: Constants
    "DECIMAL_CONTEXT_PRECISION",
    "ZERO",
    # Decimal Rounding: Functions
    "are_equal_within_precision",
    "format_for_currency",
    "quantum",
    "round_money",
    "round_to_places",
    "safe_divide",
    "sum_decimals",
    "to_decimal",
    # Remainder Distribution: Exceptions
    "RemainderPolicyError",
    # Remainder Distribution: Functions
    "calculate_remainder",
    "distribute_remainder",
]
