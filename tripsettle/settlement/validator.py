"""
Settlement Validator — Проверка инвариантов расчёта

Чистая проверка без побочных эффектов. Никогда не бросает исключений:
все нарушения возвращаются структурированным отчётом, решение о
логировании/эскалации принимает вызывающая сторона.

Проверки:
1. Сохранение денег: |Σ net| ≤ conservation_tolerance
2. Переводы ссылаются на известных участников
3. Нет переводов самому себе
4. Нет повторяющихся пар (from, to)
5. Нет переводов с amount ≤ 0
6. Для каждого участника: входящие - исходящие ≈ net (balance_tolerance)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Final

from tripsettle.core.domain.settlement import MinimalTransfer, PersonSummary
from tripsettle.core.math.decimal_rounding import ZERO, sum_decimals


logger = logging.getLogger(__name__)

DEFAULT_CONSERVATION_TOLERANCE: Final[Decimal] = Decimal("0.02")
DEFAULT_BALANCE_TOLERANCE: Final[Decimal] = Decimal("0.02")


# =============================================================================
# ISSUES
# =============================================================================


class IssueCode(str, Enum):
    """Тип нарушения"""

    CONSERVATION_VIOLATION = "conservation_violation"
    UNKNOWN_PARTICIPANT = "unknown_participant"
    SELF_TRANSFER = "self_transfer"
    DUPLICATE_TRANSFER = "duplicate_transfer"
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    BALANCE_MISMATCH = "balance_mismatch"


@dataclass(frozen=True)
class ValidationIssue:
    code: IssueCode
    message: str


@dataclass(frozen=True)
class SettlementValidationResult:
    """Отчёт валидатора."""

    is_valid: bool
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]

    def has_issue(self, code: IssueCode) -> bool:
        return any(issue.code == code for issue in self.issues)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class ValidatorConfig:
    """Допуски валидатора.

    balance_tolerance покрывает остатки < settle_epsilon, которые solver
    оставляет непогашенными.
    """

    conservation_tolerance: Decimal = DEFAULT_CONSERVATION_TOLERANCE
    balance_tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE


# =============================================================================
# VALIDATOR
# =============================================================================


class SettlementValidator:
    """Settlement Validator."""

    def __init__(self, config: ValidatorConfig | None = None):
        self.config = config or ValidatorConfig()

    def validate(
        self,
        summaries: Sequence[PersonSummary],
        transfers: Sequence[MinimalTransfer],
    ) -> SettlementValidationResult:
        """
        Полная проверка итогов и переводов.

        Args:
            summaries: Итоги участников
            transfers: Переводы (от solver или из внешнего хранилища)

        Returns:
            SettlementValidationResult; is_valid == (issues пуст)
        """
        issues: list[ValidationIssue] = []
        issues.extend(self._check_conservation(summaries))
        issues.extend(self._check_transfers(summaries, transfers))
        issues.extend(self._check_balances(summaries, transfers))

        if issues:
            logger.warning(
                "Settlement validation failed with %d issue(s): %s",
                len(issues),
                [issue.code.value for issue in issues],
            )

        return SettlementValidationResult(is_valid=not issues, issues=tuple(issues))

    def quick_validate(
        self,
        summaries: Sequence[PersonSummary],
        transfers: Sequence[MinimalTransfer] = (),
    ) -> bool:
        """Быстрая проверка: сохранение денег и положительность переводов."""
        total_net = sum_decimals(s.net for s in summaries)
        if abs(total_net) > self.config.conservation_tolerance:
            return False
        return all(t.amount > ZERO for t in transfers)

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def _check_conservation(self, summaries: Sequence[PersonSummary]) -> list[ValidationIssue]:
        total_net = sum_decimals(s.net for s in summaries)
        if abs(total_net) <= self.config.conservation_tolerance:
            return []
        return [
            ValidationIssue(
                code=IssueCode.CONSERVATION_VIOLATION,
                message=(
                    f"Sum of net balances is {total_net}, "
                    f"exceeds tolerance {self.config.conservation_tolerance}"
                ),
            )
        ]

    def _check_transfers(
        self,
        summaries: Sequence[PersonSummary],
        transfers: Sequence[MinimalTransfer],
    ) -> list[ValidationIssue]:
        known = {s.user_id for s in summaries}
        seen_pairs: set[tuple[str, str]] = set()
        issues: list[ValidationIssue] = []

        for transfer in transfers:
            for user_id in (transfer.from_user_id, transfer.to_user_id):
                if user_id not in known:
                    issues.append(
                        ValidationIssue(
                            code=IssueCode.UNKNOWN_PARTICIPANT,
                            message=f"Transfer {transfer.label} references unknown participant {user_id}",
                        )
                    )

            if transfer.from_user_id == transfer.to_user_id:
                issues.append(
                    ValidationIssue(
                        code=IssueCode.SELF_TRANSFER,
                        message=f"Transfer {transfer.label} is a self-transfer",
                    )
                )

            pair = (transfer.from_user_id, transfer.to_user_id)
            if pair in seen_pairs:
                issues.append(
                    ValidationIssue(
                        code=IssueCode.DUPLICATE_TRANSFER,
                        message=f"Duplicate transfer {transfer.from_user_id} -> {transfer.to_user_id}",
                    )
                )
            seen_pairs.add(pair)

            if transfer.amount <= ZERO:
                issues.append(
                    ValidationIssue(
                        code=IssueCode.NON_POSITIVE_AMOUNT,
                        message=f"Transfer {transfer.label} has non-positive amount {transfer.amount}",
                    )
                )

        return issues

    def _check_balances(
        self,
        summaries: Sequence[PersonSummary],
        transfers: Sequence[MinimalTransfer],
    ) -> list[ValidationIssue]:
        flow: dict[str, Decimal] = {}
        for transfer in transfers:
            flow[transfer.to_user_id] = flow.get(transfer.to_user_id, ZERO) + transfer.amount
            flow[transfer.from_user_id] = flow.get(transfer.from_user_id, ZERO) - transfer.amount

        issues: list[ValidationIssue] = []
        for summary in summaries:
            settled = flow.get(summary.user_id, ZERO)
            if abs(settled - summary.net) > self.config.balance_tolerance:
                issues.append(
                    ValidationIssue(
                        code=IssueCode.BALANCE_MISMATCH,
                        message=(
                            f"Transfers settle {settled} for {summary.user_id}, "
                            f"expected net {summary.net}"
                        ),
                    )
                )
        return issues
