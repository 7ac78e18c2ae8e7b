"""
ParticipantBreakdown — Полная разбивка суммы участника по itemized-расходу

Вычисляется заново при каждом расчёте и не изменяется после создания.

ИНВАРИАНТ:
    total - Σ extras_allocated - items_subtotal == rounded_adjustment
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from .line_item import ItemContribution


class ParticipantBreakdown(BaseModel):
    """Разбивка для одного участника."""

    user_id: str = Field(..., min_length=1, description="Участник")
    items_subtotal: Decimal = Field(..., description="Сумма позиций (без округления)")
    extras_allocated: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Категория extra → доля (скидки отрицательны)",
    )
    rounded_adjustment: Decimal = Field(..., description="Корректировка округления итога")
    total: Decimal = Field(..., description="Итог к оплате (округлён)")
    items: tuple[ItemContribution, ...] = Field(default=(), description="Audit trail позиций")

    model_config = {"frozen": True}

    @property
    def extras_total(self) -> Decimal:
        """Знаковая сумма всех extras участника."""
        return sum(self.extras_allocated.values(), Decimal(0))
