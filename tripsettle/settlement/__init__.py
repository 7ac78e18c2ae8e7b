"""
Settlement: итоги участников, минимальные переводы, проверка и объяснение.
"""

from tripsettle.settlement.aggregator import AggregatorConfig, PersonSummaryAggregator, group_by_currency
from tripsettle.settlement.engine import EngineConfig, SettlementComputationResult, SettlementEngine
from tripsettle.settlement.shares import calculate_shares
from tripsettle.settlement.transfer_breakdown import TransferBreakdownCalculator
from tripsettle.settlement.transfer_solver import (
    MinimalTransferSolver,
    SolverConfig,
    calculate_pairwise_net_transfers,
)
from tripsettle.settlement.validator import (
    IssueCode,
    SettlementValidationResult,
    SettlementValidator,
    ValidationIssue,
    ValidatorConfig,
)

__all__ = [
    # Shares & aggregation
    "calculate_shares",
    "group_by_currency",
    "AggregatorConfig",
    "PersonSummaryAggregator",
    # Transfers
    "SolverConfig",
    "MinimalTransferSolver",
    "calculate_pairwise_net_transfers",
    # Validation
    "IssueCode",
    "ValidationIssue",
    "SettlementValidationResult",
    "ValidatorConfig",
    "SettlementValidator",
    # Breakdown
    "TransferBreakdownCalculator",
    # Engine
    "EngineConfig",
    "SettlementComputationResult",
    "SettlementEngine",
]
