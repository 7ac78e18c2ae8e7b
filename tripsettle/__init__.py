"""
tripsettle — decimal-exact settlement engine for shared trip expenses.

Pure computation over value inputs: itemized splits with taxes, tips, fees
and discounts, per-person summaries, minimal transfer sets and settlement
validation.
"""

__version__ = "0.1.0"
