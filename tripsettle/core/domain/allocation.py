"""
AllocationRule — Правило распределения extras

Immutable Pydantic модель: какая база используется по умолчанию для
пропорционального распределения, как делятся абсолютные суммы
(пропорционально / поровну) и как округляются доли.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from .rounding import RoundingConfig


# =============================================================================
# ENUMS
# =============================================================================


class PercentBase(str, Enum):
    """
    База для процентных extras.

    Порядок вычисления extras фиксирован: discounts → tax → fees → tip,
    поэтому каждая стадия видит только уже известные базы.
    """

    PRE_TAX_ITEM_SUBTOTALS = "pre_tax_item_subtotals"
    TAXABLE_ITEM_SUBTOTALS_ONLY = "taxable_item_subtotals_only"
    SERVICE_CHARGEABLE_ITEM_SUBTOTALS_ONLY = "service_chargeable_item_subtotals_only"
    POST_DISCOUNT_ITEM_SUBTOTALS = "post_discount_item_subtotals"
    POST_TAX_SUBTOTALS = "post_tax_subtotals"
    POST_FEES_SUBTOTALS = "post_fees_subtotals"


class AbsoluteSplitMode(str, Enum):
    """Способ деления глобальной суммы extra между участниками"""

    PROPORTIONAL_TO_ITEMS_SUBTOTAL = "proportional_to_items_subtotal"
    EVEN_ACROSS_ASSIGNED_PEOPLE = "even_across_assigned_people"


# Базы, вычисляемые напрямую из позиций чека (без extras)
ITEM_LEVEL_BASES: frozenset[PercentBase] = frozenset(
    {
        PercentBase.PRE_TAX_ITEM_SUBTOTALS,
        PercentBase.TAXABLE_ITEM_SUBTOTALS_ONLY,
        PercentBase.SERVICE_CHARGEABLE_ITEM_SUBTOTALS_ONLY,
    }
)


# =============================================================================
# ALLOCATION RULE
# =============================================================================


class AllocationRule(BaseModel):
    """
    Правило распределения extras.

    percent_base задаёт веса участников для extras типа amount
    (у них нет собственной базы) и должна быть базой уровня позиций.
    """

    percent_base: PercentBase = Field(
        PercentBase.PRE_TAX_ITEM_SUBTOTALS, description="База весов для amount-extras"
    )
    absolute_split: AbsoluteSplitMode = Field(
        AbsoluteSplitMode.PROPORTIONAL_TO_ITEMS_SUBTOTAL, description="Способ деления сумм"
    )
    rounding: RoundingConfig = Field(..., description="Политика округления")

    model_config = {"frozen": True}

    @field_validator("percent_base")
    @classmethod
    def validate_item_level_base(cls, v: PercentBase) -> PercentBase:
        """Веса amount-extras должны быть известны на любой стадии"""
        if v not in ITEM_LEVEL_BASES:
            raise ValueError(f"percent_base must be an item-level base, got {v.value}")
        return v
