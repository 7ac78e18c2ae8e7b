"""
Domain models and value objects.

Contains the immutable inputs and outputs of the settlement engine:
currencies, rounding policy, line items, extras, expenses and settlement results.
"""

from tripsettle.core.domain.allocation import (
    ITEM_LEVEL_BASES,
    AbsoluteSplitMode,
    AllocationRule,
    PercentBase,
)
from tripsettle.core.domain.breakdown import ParticipantBreakdown
from tripsettle.core.domain.currency import (
    DEFAULT_DECIMAL_PLACES,
    get_decimal_places,
    is_three_decimal_currency,
    is_zero_decimal_currency,
    normalize_currency_code,
    supported_currencies,
)
from tripsettle.core.domain.expense import Expense, SplitType
from tripsettle.core.domain.extras import (
    DiscountExtra,
    Extras,
    FeeExtra,
    FlatCharge,
    PercentCharge,
    TaxExtra,
    TipExtra,
)
from tripsettle.core.domain.line_item import (
    AssignmentMode,
    ItemAssignment,
    ItemContribution,
    LineItem,
)
from tripsettle.core.domain.rounding import RemainderPolicy, RoundingConfig, RoundingMode
from tripsettle.core.domain.settlement import (
    ExpenseBreakdown,
    MinimalTransfer,
    PersonSummary,
    TransferBreakdown,
)

__all__ = [
    # Currency module
    "DEFAULT_DECIMAL_PLACES",
    "get_decimal_places",
    "is_zero_decimal_currency",
    "is_three_decimal_currency",
    "normalize_currency_code",
    "supported_currencies",
    # Rounding policy
    "RoundingMode",
    "RemainderPolicy",
    "RoundingConfig",
    # Allocation rule
    "PercentBase",
    "AbsoluteSplitMode",
    "AllocationRule",
    "ITEM_LEVEL_BASES",
    # Extras
    "PercentCharge",
    "FlatCharge",
    "TaxExtra",
    "TipExtra",
    "FeeExtra",
    "DiscountExtra",
    "Extras",
    # Line items
    "AssignmentMode",
    "ItemAssignment",
    "LineItem",
    "ItemContribution",
    "ParticipantBreakdown",
    # Expense
    "Expense",
    "SplitType",
    # Settlement
    "PersonSummary",
    "MinimalTransfer",
    "ExpenseBreakdown",
    "TransferBreakdown",
]
