"""
RoundingConfig — Модель политики округления

Immutable Pydantic модель: точность (знаки после запятой), режим округления
и политика распределения остатка после независимого округления долей.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from .currency import get_decimal_places


# =============================================================================
# ENUMS
# =============================================================================


class RoundingMode(str, Enum):
    """Режим округления"""

    HALF_UP = "half_up"  # ties → от нуля
    HALF_EVEN = "half_even"  # ties → к чётной цифре (banker's)
    FLOOR = "floor"
    CEIL = "ceil"


class RemainderPolicy(str, Enum):
    """Кому достаются оставшиеся единицы точности после округления"""

    LARGEST_SHARE = "largest_share"
    PAYER = "payer"
    FIRST_LISTED = "first_listed"
    RANDOM = "random"


# =============================================================================
# ROUNDING CONFIG
# =============================================================================


class RoundingConfig(BaseModel):
    """
    Конфигурация округления.

    decimal_places всегда берётся из Currency Precision Table
    (см. for_currency), а не задаётся как "центы".
    """

    decimal_places: int = Field(..., ge=0, le=8, description="Знаков после запятой")
    mode: RoundingMode = Field(RoundingMode.HALF_UP, description="Режим округления")
    remainder_policy: RemainderPolicy = Field(
        RemainderPolicy.LARGEST_SHARE, description="Политика распределения остатка"
    )

    model_config = {"frozen": True}

    @classmethod
    def for_currency(
        cls,
        currency_code: str,
        mode: RoundingMode = RoundingMode.HALF_UP,
        remainder_policy: RemainderPolicy = RemainderPolicy.LARGEST_SHARE,
    ) -> "RoundingConfig":
        """Конфигурация с точностью валюты из таблицы ISO 4217."""
        return cls(
            decimal_places=get_decimal_places(currency_code),
            mode=mode,
            remainder_policy=remainder_policy,
        )

    @property
    def unit(self) -> Decimal:
        """Минимальная единица точности (например, 0.01 для 2 знаков)."""
        return Decimal(1).scaleb(-self.decimal_places)
