"""
Extras — Налог, чаевые, сборы и скидки

Значение каждого extra — закрытый tagged union:
- PercentCharge (kind="percent"): ставка в процентах + обязательная база
- FlatCharge (kind="amount"): фиксированная сумма, базы нет

Неизвестный kind, процент без базы, amount с базой и отрицательные значения
отклоняются при создании модели, до любых вычислений.
"""

from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from .allocation import ITEM_LEVEL_BASES, PercentBase


# =============================================================================
# CHARGE VALUES (tagged union)
# =============================================================================


class PercentCharge(BaseModel):
    """Процент от выбранной глобальной базы."""

    kind: Literal["percent"] = "percent"
    rate: Decimal = Field(..., ge=0, description="Ставка в процентах (8.5 = 8.5%)")
    base: PercentBase = Field(..., description="База, к которой применяется ставка")

    model_config = {"frozen": True, "extra": "forbid"}

    @property
    def value(self) -> Decimal:
        return self.rate


class FlatCharge(BaseModel):
    """Фиксированная сумма в валюте расхода."""

    kind: Literal["amount"] = "amount"
    amount: Decimal = Field(..., ge=0, description="Сумма")

    model_config = {"frozen": True, "extra": "forbid"}

    @property
    def value(self) -> Decimal:
        return self.amount


ChargeValue = Annotated[Union[PercentCharge, FlatCharge], Field(discriminator="kind")]


# Базы, допустимые на каждой стадии вычисления (discounts → tax → fees → tip)
DISCOUNT_BASES: frozenset[PercentBase] = ITEM_LEVEL_BASES
TAX_BASES: frozenset[PercentBase] = DISCOUNT_BASES | {PercentBase.POST_DISCOUNT_ITEM_SUBTOTALS}
FEE_BASES: frozenset[PercentBase] = TAX_BASES | {PercentBase.POST_TAX_SUBTOTALS}
TIP_BASES: frozenset[PercentBase] = frozenset(PercentBase)


def _check_stage_base(charge: PercentCharge | FlatCharge, allowed: frozenset[PercentBase], label: str) -> None:
    if isinstance(charge, PercentCharge) and charge.base not in allowed:
        raise ValueError(f"{label} cannot use base {charge.base.value} (not yet known at this stage)")


def _check_strictly_positive(charge: PercentCharge | FlatCharge, label: str) -> None:
    if charge.value <= 0:
        raise ValueError(f"{label} value must be greater than 0")


# =============================================================================
# EXTRAS
# =============================================================================


class TaxExtra(BaseModel):
    """Налог. Нулевое значение допустимо."""

    charge: ChargeValue

    model_config = {"frozen": True}

    @field_validator("charge")
    @classmethod
    def validate_base(cls, v: PercentCharge | FlatCharge) -> PercentCharge | FlatCharge:
        _check_stage_base(v, TAX_BASES, "Tax")
        return v

    @classmethod
    def percent(cls, rate: Decimal, base: PercentBase = PercentBase.PRE_TAX_ITEM_SUBTOTALS) -> "TaxExtra":
        return cls(charge=PercentCharge(rate=rate, base=base))

    @classmethod
    def amount(cls, value: Decimal) -> "TaxExtra":
        return cls(charge=FlatCharge(amount=value))


class TipExtra(BaseModel):
    """
    Чаевые. Может ссылаться на любую базу (вычисляется последней).

    Процент 0 — явное "без чаевых"; отсутствие tip в Extras означает,
    что чаевые не указаны вовсе.
    """

    charge: ChargeValue

    model_config = {"frozen": True}

    @classmethod
    def percent(cls, rate: Decimal, base: PercentBase = PercentBase.PRE_TAX_ITEM_SUBTOTALS) -> "TipExtra":
        return cls(charge=PercentCharge(rate=rate, base=base))

    @classmethod
    def amount(cls, value: Decimal) -> "TipExtra":
        return cls(charge=FlatCharge(amount=value))

    @property
    def is_explicit_no_tip(self) -> bool:
        return isinstance(self.charge, PercentCharge) and self.charge.rate == 0


class FeeExtra(BaseModel):
    """Именованный сбор (сервисный сбор, доставка, ...)."""

    id: str = Field(..., min_length=1, description="Идентификатор сбора")
    name: str = Field(..., min_length=1, description="Название сбора")
    charge: ChargeValue

    model_config = {"frozen": True}

    @field_validator("charge")
    @classmethod
    def validate_charge(cls, v: PercentCharge | FlatCharge) -> PercentCharge | FlatCharge:
        _check_strictly_positive(v, "Fee")
        _check_stage_base(v, FEE_BASES, "Fee")
        return v


class DiscountExtra(BaseModel):
    """Именованная скидка. Вычитается из итога."""

    id: str = Field(..., min_length=1, description="Идентификатор скидки")
    name: str = Field(..., min_length=1, description="Название скидки")
    charge: ChargeValue

    model_config = {"frozen": True}

    @field_validator("charge")
    @classmethod
    def validate_charge(cls, v: PercentCharge | FlatCharge) -> PercentCharge | FlatCharge:
        _check_strictly_positive(v, "Discount")
        _check_stage_base(v, DISCOUNT_BASES, "Discount")
        return v


class Extras(BaseModel):
    """Набор extras одного чека."""

    tax: TaxExtra | None = None
    tip: TipExtra | None = None
    fees: tuple[FeeExtra, ...] = ()
    discounts: tuple[DiscountExtra, ...] = ()

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "Extras":
        """id сборов и скидок уникальны внутри своей группы"""
        for label, entries in (("fee", self.fees), ("discount", self.discounts)):
            ids = [entry.id for entry in entries]
            if len(ids) != len(set(ids)):
                raise ValueError(f"Duplicate {label} ids: {ids}")
        return self
