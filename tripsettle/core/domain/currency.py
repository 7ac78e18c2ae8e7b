"""
Currency Precision Table — точность валют по ISO 4217

Статическая таблица: код валюты → количество знаков после запятой (minor units).

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Любое округление денежных сумм использует точность из этой таблицы
2. Неизвестная валюта получает точность по умолчанию (2 знака)
3. Коды валют нечувствительны к регистру
"""

from typing import Final


# =============================================================================
# ТАБЛИЦА ТОЧНОСТИ
# =============================================================================

# Точность по умолчанию для валют, отсутствующих в таблице
DEFAULT_DECIMAL_PLACES: Final[int] = 2

_PRECISION_TABLE: Final[dict[str, int]] = {
    # Валюты без дробной части
    "BIF": 0,  # Burundian Franc
    "CLP": 0,  # Chilean Peso
    "DJF": 0,  # Djiboutian Franc
    "GNF": 0,  # Guinean Franc
    "ISK": 0,  # Icelandic Krona
    "JPY": 0,  # Japanese Yen
    "KMF": 0,  # Comorian Franc
    "KRW": 0,  # South Korean Won
    "PYG": 0,  # Paraguayan Guarani
    "RWF": 0,  # Rwandan Franc
    "UGX": 0,  # Ugandan Shilling
    "VND": 0,  # Vietnamese Dong
    "VUV": 0,  # Vanuatu Vatu
    "XAF": 0,  # Central African CFA Franc
    "XOF": 0,  # West African CFA Franc
    "XPF": 0,  # CFP Franc
    # Валюты с тремя знаками
    "BHD": 3,  # Bahraini Dinar
    "IQD": 3,  # Iraqi Dinar
    "JOD": 3,  # Jordanian Dinar
    "KWD": 3,  # Kuwaiti Dinar
    "LYD": 3,  # Libyan Dinar
    "OMR": 3,  # Omani Rial
    "TND": 3,  # Tunisian Dinar
    # Стандартные валюты с двумя знаками
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "AUD": 2,
    "CAD": 2,
    "CHF": 2,
    "CNY": 2,
    "HKD": 2,
    "INR": 2,
    "MXN": 2,
    "NZD": 2,
    "SEK": 2,
    "SGD": 2,
    "THB": 2,
}


# =============================================================================
# LOOKUP
# =============================================================================


def normalize_currency_code(currency_code: str) -> str:
    """
    Нормализация кода валюты (trim + upper case).

    Raises:
        ValueError: Если код пустой
    """
    code = currency_code.strip().upper()
    if not code:
        raise ValueError("currency_code cannot be empty")
    return code


def get_decimal_places(currency_code: str) -> int:
    """
    Количество знаков после запятой для валюты.

    Args:
        currency_code: Код валюты (например, 'USD', 'vnd')

    Returns:
        Точность из таблицы или DEFAULT_DECIMAL_PLACES для неизвестной валюты

    Examples:
        >>> get_decimal_places("USD")
        2
        >>> get_decimal_places("VND")
        0
        >>> get_decimal_places("BHD")
        3
        >>> get_decimal_places("XXX")
        2
    """
    return _PRECISION_TABLE.get(normalize_currency_code(currency_code), DEFAULT_DECIMAL_PLACES)


def is_zero_decimal_currency(currency_code: str) -> bool:
    """Валюта без дробной части (JPY, VND, ...)."""
    return get_decimal_places(currency_code) == 0


def is_three_decimal_currency(currency_code: str) -> bool:
    """Валюта с тремя знаками после запятой (BHD, KWD, ...)."""
    return get_decimal_places(currency_code) == 3


def supported_currencies() -> list[str]:
    """Отсортированный список валют, явно присутствующих в таблице."""
    return sorted(_PRECISION_TABLE)
