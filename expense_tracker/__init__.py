"""
Expense Tracker - Ledger Core

Local personal-finance ledger: expenses tagged with categories, incomes,
period statistics, and a versioned backup export/import.

DESIGN PRINCIPLES:
1. One owner of ledger state, one lock around every mutation
2. No orphaned expenses and no stale category copies, ever
3. Imports are all-or-nothing at the document level
4. Failures are reported, never silently dropped
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
