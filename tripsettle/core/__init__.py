"""
Core domain models, decimal primitives, and wire contracts.

This module contains the foundational building blocks that are independent
of external systems (expense stores, presentation layers, etc.).
"""
