"""
Finance Tracker - Source Package

The ledger core of a personal finance tracker: income and expense
transactions, per-category spending limits, running balances and
daily/weekly/monthly summaries.

DESIGN PRINCIPLES:
1. balance == income - expense, always
2. One explicitly constructed engine owns the ledger
3. Storage failures are logged, never fatal
4. Storage layer is swappable
5. The engine never talks to the user; callers do
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
