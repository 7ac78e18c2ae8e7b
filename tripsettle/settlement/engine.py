"""
Settlement Engine — Полный расчёт по корзине валюты

expenses → PersonSummaryAggregator → MinimalTransferSolver
         → SettlementValidator → SettlementComputationResult

Результат не кэшируется: каждый вызов пересчитывает всё из входных
расходов. Мультивалютный набор считается отдельно по каждой валюте
(compute_by_currency), конвертации нет.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from tripsettle.core.domain.currency import normalize_currency_code
from tripsettle.core.domain.expense import Expense
from tripsettle.core.domain.settlement import MinimalTransfer, PersonSummary, TransferBreakdown
from tripsettle.core.math.decimal_rounding import format_for_currency
from tripsettle.settlement.aggregator import AggregatorConfig, PersonSummaryAggregator, group_by_currency
from tripsettle.settlement.transfer_breakdown import TransferBreakdownCalculator
from tripsettle.settlement.transfer_solver import MinimalTransferSolver, SolverConfig
from tripsettle.settlement.validator import SettlementValidationResult, SettlementValidator, ValidatorConfig


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class EngineConfig:
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    validator: ValidatorConfig = field(default_factory=ValidatorConfig)


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class SettlementComputationResult:
    """Результат расчёта одной валюты."""

    currency: str
    person_summaries: tuple[PersonSummary, ...]
    transfers: tuple[MinimalTransfer, ...]
    validation: SettlementValidationResult
    computed_at: datetime

    @property
    def has_warnings(self) -> bool:
        return not self.validation.is_valid

    @property
    def warnings(self) -> list[str]:
        return self.validation.messages

    def to_report(self) -> dict[str, Any]:
        """Отчёт по схеме settlement_report (деньги как decimal-строки)."""
        def money(value):
            return format_for_currency(value, self.currency)

        return {
            "currency": self.currency,
            "computed_at": self.computed_at.isoformat(),
            "person_summaries": [
                {
                    "user_id": s.user_id,
                    "total_paid": money(s.total_paid),
                    "total_owed": money(s.total_owed),
                    "net": money(s.net),
                }
                for s in self.person_summaries
            ],
            "transfers": [
                {
                    "from_user_id": t.from_user_id,
                    "to_user_id": t.to_user_id,
                    "amount": money(t.amount),
                }
                for t in self.transfers
            ],
            "validation": {
                "is_valid": self.validation.is_valid,
                "issues": [
                    {"code": issue.code.value, "message": issue.message}
                    for issue in self.validation.issues
                ],
            },
        }


# =============================================================================
# ENGINE
# =============================================================================


class SettlementEngine:
    """Settlement Engine: конвейер расчёта поверх компонентов settlement."""

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self.aggregator = PersonSummaryAggregator(self.config.aggregator)
        self.solver = MinimalTransferSolver(self.config.solver)
        self.validator = SettlementValidator(self.config.validator)
        self.breakdown_calculator = TransferBreakdownCalculator(self.config.aggregator)

    def compute(
        self,
        expenses: Sequence[Expense],
        currency: str,
        participant_ids: Iterable[str] = (),
    ) -> SettlementComputationResult:
        """
        Расчёт по расходам одной валюты.

        Args:
            expenses: Расходы (другие валюты отфильтровываются)
            currency: Валюта расчёта
            participant_ids: Участники поездки (попадают в итоги даже без расходов)

        Returns:
            SettlementComputationResult
        """
        currency = normalize_currency_code(currency)
        computed_at = datetime.now(timezone.utc)

        summaries = self.aggregator.summarize(
            expenses, currency_filter=currency, participant_ids=participant_ids
        )
        transfers = self.solver.solve(summaries, computed_at=computed_at)
        validation = self.validator.validate(summaries, transfers)

        logger.info(
            "Settlement %s: %d participants, %d transfers, valid=%s",
            currency,
            len(summaries),
            len(transfers),
            validation.is_valid,
        )

        return SettlementComputationResult(
            currency=currency,
            person_summaries=tuple(summaries),
            transfers=tuple(transfers),
            validation=validation,
            computed_at=computed_at,
        )

    def compute_by_currency(
        self,
        expenses: Sequence[Expense],
        participant_ids: Iterable[str] = (),
    ) -> dict[str, SettlementComputationResult]:
        """Отдельный расчёт для каждой валюты набора."""
        participant_ids = tuple(participant_ids)
        return {
            currency: self.compute(bucket, currency, participant_ids)
            for currency, bucket in group_by_currency(expenses).items()
        }

    def explain_transfer(
        self,
        transfer: MinimalTransfer,
        expenses: Sequence[Expense],
        currency: str | None = None,
    ) -> TransferBreakdown:
        """Breakdown перевода по исходным расходам (on-demand)."""
        return self.breakdown_calculator.for_transfer(transfer, expenses, currency_filter=currency)
