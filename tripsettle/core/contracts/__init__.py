"""
Contract Validation Module

Валидация JSON контрактов на границе движка расчётов.
"""

from .validators import (
    EXPENSE_RECORD_SCHEMA,
    SETTLEMENT_REPORT_SCHEMA,
    ContractValidator,
    ContractViolation,
    ExpenseRecordValidator,
    SchemaLoader,
    SettlementReportValidator,
    load_expense_record,
    load_expense_records,
    validate_expense_record,
    validate_settlement_report,
)

__all__ = [
    # Constants
    "EXPENSE_RECORD_SCHEMA",
    "SETTLEMENT_REPORT_SCHEMA",
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "ContractViolation",
    "ExpenseRecordValidator",
    "SettlementReportValidator",
    # Functions
    "validate_expense_record",
    "validate_settlement_report",
    "load_expense_record",
    "load_expense_records",
]
