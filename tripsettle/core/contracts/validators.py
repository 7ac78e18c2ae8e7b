"""
Expense & Report Contracts

Граница движка расчётов: записи расходов приходят из внешнего хранилища
как JSON (деньги строками), отчёт уходит в слой представления как JSON.
Обе формы описаны JSON Schema в contracts/schema/ и проверяются jsonschema.

Схема проверяет только форму; доменные правила (amount > 0, веса
неотрицательны, itemized требует participant_amounts) проверяет модель
Expense. load_expense_record прогоняет обе проверки и сводит ошибки
к одному ContractViolation.
"""

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator
from pydantic import ValidationError as ModelValidationError

from tripsettle.core.domain.expense import Expense


EXPENSE_RECORD_SCHEMA = "expense_record"
SETTLEMENT_REPORT_SCHEMA = "settlement_report"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class ContractViolation(ValueError):
    """
    Запись не соответствует контракту.

    errors: "путь: сообщение" для каждого нарушения, путь в нотации
    JSONPath ($.participants.bob).
    """

    def __init__(self, contract: str, record_id: str | None, errors: list[str]):
        self.contract = contract
        self.record_id = record_id
        self.errors = errors
        subject = f"{contract} '{record_id}'" if record_id else contract
        super().__init__(f"{subject} violates contract: " + "; ".join(errors))


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик схем контрактов.

    По умолчанию читает schema/ рядом с модулем (ставится как package data).
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Contract schema directory not found: {self._schema_dir}")

        self._schemas: Dict[str, Dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Схема контракта по имени (expense_record, settlement_report).

        Raises:
            FileNotFoundError: Схемы с таким именем нет
            ValueError: Файл не проходит meta-validation Draft 2020-12
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Contract schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}") from e

        self._schemas[schema_name] = schema
        return schema


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """Проверка JSON-документа против одной схемы контракта."""

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: первое найденное нарушение
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        return self.validator.iter_errors(data)

    def describe_errors(self, data: Dict[str, Any]) -> list[str]:
        """Все нарушения как "путь: сообщение", отсортированные по пути."""
        errors = sorted(self.iter_errors(data), key=lambda error: error.json_path)
        return [f"{error.json_path}: {error.message}" for error in errors]

    def ensure_valid(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            ContractViolation: со всеми нарушениями документа
        """
        errors = self.describe_errors(data)
        if errors:
            raise ContractViolation(self.schema_name, _record_id(data), errors)


class ExpenseRecordValidator(ContractValidator):
    """Запись расхода из внешнего хранилища."""

    def __init__(self):
        super().__init__(EXPENSE_RECORD_SCHEMA)


class SettlementReportValidator(ContractValidator):
    """Отчёт SettlementComputationResult.to_report()."""

    def __init__(self):
        super().__init__(SETTLEMENT_REPORT_SCHEMA)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_expense_record(data: Dict[str, Any]) -> None:
    """
    Проверка формы записи расхода.

    Raises:
        jsonschema.ValidationError: Запись не соответствует схеме
    """
    ExpenseRecordValidator().validate(data)


def validate_settlement_report(data: Dict[str, Any]) -> None:
    """
    Raises:
        jsonschema.ValidationError: Отчёт не соответствует схеме
    """
    SettlementReportValidator().validate(data)


def load_expense_record(data: Dict[str, Any]) -> Expense:
    """
    Запись хранилища → Expense.

    Сначала схема (все нарушения формы разом), затем доменные правила
    модели Expense.

    Raises:
        ContractViolation: Нарушена схема или доменные правила
    """
    ExpenseRecordValidator().ensure_valid(data)
    try:
        return Expense.model_validate(data)
    except ModelValidationError as e:
        errors = [
            f"$.{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            if error["loc"]
            else f"$: {error['msg']}"
            for error in e.errors()
        ]
        raise ContractViolation(EXPENSE_RECORD_SCHEMA, _record_id(data), errors) from e


def load_expense_records(records: Iterable[Dict[str, Any]]) -> list[Expense]:
    """
    Пакет записей → расходы в исходном порядке.

    Raises:
        ContractViolation: на первой невалидной записи
    """
    return [load_expense_record(record) for record in records]


def _record_id(data: Any) -> str | None:
    if isinstance(data, dict) and isinstance(data.get("id"), str):
        return data["id"]
    return None
