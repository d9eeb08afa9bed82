"""
Core Ledger

A small in-memory ledger with per-account overdraft limits, atomic
limit-checked balance updates and a recent transaction history.
"""

__version__ = "1.0.0"
