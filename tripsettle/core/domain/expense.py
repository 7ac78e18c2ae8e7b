"""
Expense — Модель расхода поездки

Immutable Pydantic модель записи расхода, приходящей из внешнего хранилища.
Соответствует схеме expense_record (contracts/schema/expense_record.json).

Расход однозначно задаёт плательщика, сумму, валюту и способ деления:
- equal: поровну между ключами participants
- weighted: пропорционально весам participants
- itemized: суммы участников заранее посчитаны Itemized Split Calculator
  и лежат в participant_amounts
"""

from datetime import date as Date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from .currency import normalize_currency_code


# =============================================================================
# ENUMS
# =============================================================================


class SplitType(str, Enum):
    """Способ деления расхода"""

    EQUAL = "equal"
    WEIGHTED = "weighted"
    ITEMIZED = "itemized"


# =============================================================================
# EXPENSE MODEL
# =============================================================================


class Expense(BaseModel):
    """
    Расход.

    participant_amounts, если заданы, имеют приоритет над пересчётом
    по participants: одна и та же запись не должна давать две разные
    разбивки.
    """

    # Идентификация
    id: str = Field(..., min_length=1, description="Идентификатор расхода")
    payer_id: str = Field(..., min_length=1, description="Кто заплатил")

    # Сумма
    amount: Decimal = Field(..., gt=0, description="Сумма расхода")
    currency: str = Field(..., pattern=r"^[A-Za-z]{3}$", description="Код валюты ISO 4217")

    # Деление
    split_type: SplitType = Field(SplitType.EQUAL, description="Способ деления")
    participants: dict[str, Decimal] = Field(
        default_factory=dict, description="Участник → вес (для equal вес игнорируется)"
    )
    participant_amounts: dict[str, Decimal] | None = Field(
        None, description="Предрасчитанные суммы участников (itemized)"
    )

    # Метаданные
    description: str | None = Field(None, description="Описание")
    category_id: str | None = Field(None, description="Категория")
    date: Date | None = Field(None, description="Дата расхода")

    model_config = {"frozen": True}

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return normalize_currency_code(v)

    @field_validator("participants")
    @classmethod
    def validate_weights(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        """Веса неотрицательны"""
        for user_id, weight in v.items():
            if weight < 0:
                raise ValueError(f"Weight for {user_id} cannot be negative: {weight}")
        return v

    @model_validator(mode="after")
    def validate_split(self) -> "Expense":
        if self.split_type == SplitType.ITEMIZED and not self.participant_amounts:
            raise ValueError("Itemized expense requires participant_amounts")
        if not self.participants and not self.participant_amounts:
            raise ValueError("Expense must have participants or participant_amounts")
        return self

    @property
    def involved_users(self) -> list[str]:
        """Плательщик и все участники в порядке первого появления."""
        users = [self.payer_id]
        for user_id in (*self.participants, *(self.participant_amounts or {})):
            if user_id not in users:
                users.append(user_id)
        return users
