"""
LineItem — Позиция чека и её назначение участникам

Immutable Pydantic модели:
- ItemAssignment: even (поровну между users) или custom (явные доли)
- LineItem: количество × цена + флаги taxable / service_chargeable
- ItemContribution: запись audit trail (какая доля какой позиции досталась участнику)
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class AssignmentMode(str, Enum):
    """Режим назначения позиции"""

    EVEN = "even"
    CUSTOM = "custom"


# =============================================================================
# ITEM ASSIGNMENT
# =============================================================================


class ItemAssignment(BaseModel):
    """
    Назначение позиции участникам.

    EVEN: каждому из users достаётся 1/n.
    CUSTOM: shares задают долю каждого user; доли положительны,
    ключи совпадают с users, сумма долей ровно 1.
    """

    mode: AssignmentMode = Field(AssignmentMode.EVEN, description="Режим назначения")
    users: tuple[str, ...] = Field(..., min_length=1, description="Участники позиции")
    shares: dict[str, Decimal] | None = Field(None, description="Доли для CUSTOM")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_shares(self) -> "ItemAssignment":
        if len(set(self.users)) != len(self.users):
            raise ValueError(f"Duplicate users in assignment: {list(self.users)}")

        if self.mode == AssignmentMode.EVEN:
            if self.shares is not None:
                raise ValueError("Even assignment cannot have custom shares")
            return self

        if self.shares is None:
            raise ValueError("Custom assignment requires shares")
        if set(self.shares) != set(self.users):
            raise ValueError("Share keys must match users list")
        if any(share <= 0 for share in self.shares.values()):
            raise ValueError("All shares must be positive")
        total = sum(self.shares.values(), Decimal(0))
        if total != Decimal(1):
            raise ValueError(f"Shares must sum to 1 (current sum: {total})")
        return self

    @classmethod
    def even(cls, *users: str) -> "ItemAssignment":
        return cls(mode=AssignmentMode.EVEN, users=users)

    @classmethod
    def custom(cls, shares: dict[str, Decimal]) -> "ItemAssignment":
        return cls(mode=AssignmentMode.CUSTOM, users=tuple(shares), shares=shares)

    def fractions(self) -> dict[str, Decimal]:
        """
        Доля каждого участника в порядке users.

        Для EVEN доля 1/n хранится как точное Decimal-частное
        (1/3 → 0.3333...); сумма долей может отличаться от 1
        на последнем знаке контекста, поэтому суммы позиций
        считаются как total / n, а не total × (1/n).
        """
        if self.mode == AssignmentMode.EVEN:
            fraction = Decimal(1) / Decimal(len(self.users))
            return {user: fraction for user in self.users}
        return {user: self.shares[user] for user in self.users}


# =============================================================================
# LINE ITEM
# =============================================================================


class LineItem(BaseModel):
    """Позиция чека."""

    id: str = Field(..., min_length=1, description="Идентификатор позиции")
    name: str = Field(..., min_length=1, description="Название")
    quantity: Decimal = Field(..., gt=0, description="Количество")
    unit_price: Decimal = Field(..., ge=0, description="Цена за единицу")
    taxable: bool = Field(True, description="Облагается налогом")
    service_chargeable: bool = Field(True, description="Облагается сервисным сбором")
    assignment: ItemAssignment

    model_config = {"frozen": True}

    @property
    def item_total(self) -> Decimal:
        return self.quantity * self.unit_price

    def allocate(self) -> dict[str, Decimal]:
        """
        Сумма позиции по участникам (без округления).

        Хвост точности контекста уходит последнему участнику,
        сумма долей ровно item_total.
        """
        total = self.item_total
        if self.assignment.mode == AssignmentMode.EVEN:
            share = total / Decimal(len(self.assignment.users))
            amounts = {user: share for user in self.assignment.users}
        else:
            amounts = {user: total * fraction for user, fraction in self.assignment.fractions().items()}

        last = self.assignment.users[-1]
        amounts[last] += total - sum(amounts.values(), Decimal(0))
        return amounts


# =============================================================================
# AUDIT TRAIL
# =============================================================================


class ItemContribution(BaseModel):
    """Вклад одной позиции в subtotal участника."""

    item_id: str
    item_name: str
    quantity: Decimal
    unit_price: Decimal
    assigned_share: Decimal = Field(..., description="Доля участника в позиции (0-1)")
    amount: Decimal = Field(..., description="Сумма, отнесённая на участника")

    model_config = {"frozen": True}
