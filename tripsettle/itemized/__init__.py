"""
Itemized split: позиции чека + extras → разбивка по участникам.
"""

from tripsettle.itemized.calculator import ItemizedSplitCalculator, ItemizedSplitResult

__all__ = [
    "ItemizedSplitCalculator",
    "ItemizedSplitResult",
]
