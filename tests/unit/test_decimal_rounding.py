"""
Тесты для Currency Precision Table и Decimal Rounding

Проверяет:
1. Точность валют (0 / 2 / 3 знака, неизвестная валюта → 2)
2. Режимы округления half-up / half-even / floor / ceil
3. Безопасное деление
4. Сравнение в пределах точности валюты
5. Форматирование
"""

from decimal import Decimal

import pytest

from tripsettle.core.domain import (
    DEFAULT_DECIMAL_PLACES,
    RoundingConfig,
    RoundingMode,
    get_decimal_places,
    is_three_decimal_currency,
    is_zero_decimal_currency,
    normalize_currency_code,
    supported_currencies,
)
from tripsettle.core.math import (
    ZERO,
    are_equal_within_precision,
    format_for_currency,
    quantum,
    round_money,
    round_to_places,
    safe_divide,
    sum_decimals,
    to_decimal,
)


# =============================================================================
# CURRENCY PRECISION TABLE
# =============================================================================


class TestCurrencyPrecision:
    """Тесты таблицы точности валют"""

    @pytest.mark.parametrize(
        "code, places",
        [("USD", 2), ("EUR", 2), ("JPY", 0), ("VND", 0), ("KRW", 0), ("KWD", 3), ("BHD", 3)],
    )
    def test_known_currencies(self, code: str, places: int) -> None:
        assert get_decimal_places(code) == places

    def test_unknown_currency_uses_default(self) -> None:
        """Неизвестная валюта получает 2 знака"""
        assert get_decimal_places("XYZ") == DEFAULT_DECIMAL_PLACES == 2

    def test_lookup_is_case_insensitive(self) -> None:
        assert get_decimal_places("jpy") == 0
        assert get_decimal_places(" kwd ") == 3

    def test_normalize_empty_code_raises(self) -> None:
        with pytest.raises(ValueError):
            normalize_currency_code("   ")

    def test_classification_helpers(self) -> None:
        assert is_zero_decimal_currency("JPY")
        assert not is_zero_decimal_currency("USD")
        assert is_three_decimal_currency("OMR")
        assert not is_three_decimal_currency("EUR")

    def test_supported_currencies_sorted(self) -> None:
        codes = supported_currencies()
        assert codes == sorted(codes)
        assert {"USD", "JPY", "KWD"} <= set(codes)

    def test_rounding_config_for_currency(self) -> None:
        assert RoundingConfig.for_currency("JPY").unit == Decimal("1")
        assert RoundingConfig.for_currency("USD").unit == Decimal("0.01")
        assert RoundingConfig.for_currency("KWD").unit == Decimal("0.001")


# =============================================================================
# ROUNDING MODES
# =============================================================================


class TestRoundToPlaces:
    """Тесты режимов округления"""

    def test_half_up_ties_away_from_zero(self) -> None:
        assert round_to_places(Decimal("1.235"), 2, RoundingMode.HALF_UP) == Decimal("1.24")
        assert round_to_places(Decimal("-1.235"), 2, RoundingMode.HALF_UP) == Decimal("-1.24")
        assert round_to_places(Decimal("1.275"), 2, RoundingMode.HALF_UP) == Decimal("1.28")

    def test_half_even_ties_to_even_digit(self) -> None:
        assert round_to_places(Decimal("1.225"), 2, RoundingMode.HALF_EVEN) == Decimal("1.22")
        assert round_to_places(Decimal("1.235"), 2, RoundingMode.HALF_EVEN) == Decimal("1.24")
        assert round_to_places(Decimal("2.5"), 0, RoundingMode.HALF_EVEN) == Decimal("2")
        assert round_to_places(Decimal("3.5"), 0, RoundingMode.HALF_EVEN) == Decimal("4")

    def test_half_even_non_tie_rounds_normally(self) -> None:
        """Не-tie значения округляются к ближайшему"""
        assert round_to_places(Decimal("1.2251"), 2, RoundingMode.HALF_EVEN) == Decimal("1.23")

    def test_floor_and_ceil_are_directional(self) -> None:
        assert round_to_places(Decimal("1.239"), 2, RoundingMode.FLOOR) == Decimal("1.23")
        assert round_to_places(Decimal("-1.231"), 2, RoundingMode.FLOOR) == Decimal("-1.24")
        assert round_to_places(Decimal("1.231"), 2, RoundingMode.CEIL) == Decimal("1.24")
        assert round_to_places(Decimal("-1.239"), 2, RoundingMode.CEIL) == Decimal("-1.23")

    def test_zero_and_three_places(self) -> None:
        assert round_to_places(Decimal("1000.7"), 0, RoundingMode.HALF_UP) == Decimal("1001")
        assert round_to_places(Decimal("1.2345"), 3, RoundingMode.HALF_UP) == Decimal("1.235")

    def test_result_has_exact_exponent(self) -> None:
        """Результат квантован ровно до N знаков"""
        assert round_to_places(Decimal("5"), 2, RoundingMode.HALF_UP).as_tuple().exponent == -2

    def test_round_money_uses_currency_precision(self) -> None:
        assert round_money(Decimal("1234.5"), "JPY", RoundingMode.HALF_UP) == Decimal("1235")
        assert round_money(Decimal("1.2345"), "KWD", RoundingMode.HALF_UP) == Decimal("1.235")

    def test_negative_places_rejected(self) -> None:
        with pytest.raises(ValueError):
            quantum(-1)


# =============================================================================
# CONVERSION, DIVISION, COMPARISON
# =============================================================================


class TestDecimalHelpers:
    """Тесты вспомогательных функций"""

    def test_to_decimal_from_float_avoids_binary_artifacts(self) -> None:
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal("12.50") == Decimal("12.50")
        assert to_decimal(3) == Decimal(3)

    def test_to_decimal_rejects_non_finite(self) -> None:
        with pytest.raises(ValueError):
            to_decimal(float("nan"))
        with pytest.raises(ValueError):
            to_decimal("Infinity")

    def test_safe_divide_by_zero_returns_zero(self) -> None:
        assert safe_divide(Decimal("10"), ZERO) == ZERO
        assert safe_divide(Decimal("10"), Decimal("4")) == Decimal("2.5")

    def test_equal_within_precision(self) -> None:
        assert are_equal_within_precision(Decimal("10.00"), Decimal("10.009"), "USD")
        assert not are_equal_within_precision(Decimal("10.00"), Decimal("10.01"), "USD")
        assert are_equal_within_precision(Decimal("100"), Decimal("100.9"), "JPY")
        assert not are_equal_within_precision(Decimal("1.000"), Decimal("1.001"), "KWD")

    def test_sum_decimals_empty(self) -> None:
        assert sum_decimals([]) == ZERO
        assert sum_decimals([Decimal("1.10"), Decimal("2.20")]) == Decimal("3.30")

    def test_format_for_currency(self) -> None:
        assert format_for_currency(Decimal("10.5"), "USD") == "10.50"
        assert format_for_currency(Decimal("10000.7"), "VND") == "10001"
        assert format_for_currency(Decimal("1.2"), "KWD") == "1.200"
        assert format_for_currency(Decimal("0E-2"), "USD") == "0.00"
