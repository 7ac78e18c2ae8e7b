"""
Settlement — Модели итогов расчёта между участниками

Immutable Pydantic модели:
- PersonSummary: paid / owed / net участника
- MinimalTransfer: перевод должник → кредитор
- ExpenseBreakdown / TransferBreakdown: объяснение перевода через расходы
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field

from .expense import Expense


# =============================================================================
# PERSON SUMMARY
# =============================================================================


class PersonSummary(BaseModel):
    """
    Итог участника по набору расходов.

    net > 0: участнику должны; net < 0: участник должен.
    """

    user_id: str = Field(..., min_length=1)
    total_paid: Decimal = Field(..., description="Сумма расходов, где участник плательщик")
    total_owed: Decimal = Field(..., description="Сумма долей участника")
    net: Decimal = Field(..., description="total_paid - total_owed")

    model_config = {"frozen": True}


# =============================================================================
# MINIMAL TRANSFER
# =============================================================================


class MinimalTransfer(BaseModel):
    """
    Перевод from_user_id → to_user_id.

    Solver гарантирует amount > 0 и from != to; для переводов из внешних
    источников эти условия проверяет SettlementValidator, поэтому модель
    их не навязывает.
    """

    from_user_id: str = Field(..., description="Кто платит")
    to_user_id: str = Field(..., description="Кто получает")
    amount: Decimal = Field(..., description="Сумма перевода")
    computed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Время расчёта (UTC)"
    )
    id: str | None = Field(None, description="Идентификатор во внешнем хранилище")

    model_config = {"frozen": True}

    @property
    def label(self) -> str:
        return self.id or f"{self.from_user_id}->{self.to_user_id}"


# =============================================================================
# TRANSFER BREAKDOWN
# =============================================================================


class ExpenseBreakdown(BaseModel):
    """Вклад одного расхода в прямой долг from → to."""

    expense: Expense
    from_paid: Decimal
    from_owes: Decimal
    to_paid: Decimal
    to_owes: Decimal
    net_contribution: Decimal = Field(
        ..., description="> 0 увеличивает долг from → to, < 0 уменьшает"
    )

    model_config = {"frozen": True}

    @property
    def explanation(self) -> str:
        if self.net_contribution > 0:
            return f"Contributes {abs(self.net_contribution)} to transfer"
        if self.net_contribution < 0:
            return f"Reduces transfer by {abs(self.net_contribution)}"
        return "No net effect on transfer"


class TransferBreakdown(BaseModel):
    """
    Объяснение перевода from → to через исходные расходы.

    Показывает прямой двусторонний долг, а не маршрутизацию после
    оптимизации solver'ом: расходы третьих лиц дают нулевой вклад.
    """

    from_user_id: str
    to_user_id: str
    total_amount: Decimal
    expense_breakdowns: tuple[ExpenseBreakdown, ...] = ()

    model_config = {"frozen": True}

    @property
    def relevant_breakdowns(self) -> list[ExpenseBreakdown]:
        return [b for b in self.expense_breakdowns if b.net_contribution != 0]

    @property
    def total_positive_contributions(self) -> Decimal:
        return sum(
            (b.net_contribution for b in self.expense_breakdowns if b.net_contribution > 0),
            Decimal(0),
        )

    @property
    def total_negative_contributions(self) -> Decimal:
        return sum(
            (-b.net_contribution for b in self.expense_breakdowns if b.net_contribution < 0),
            Decimal(0),
        )

    @property
    def net_contribution(self) -> Decimal:
        return self.total_positive_contributions - self.total_negative_contributions
