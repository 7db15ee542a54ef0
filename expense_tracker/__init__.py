"""
Expense Tracker - Source Package

A personal expense tracker that records expenses against half-month
periods, shows running balances and summarises spending across periods.

DESIGN PRINCIPLES:
1. Period arithmetic and aggregation are pure functions
2. The user and the selected period are explicit parameters, never ambient state
3. Bad input is rejected at the validation boundary, not deep in aggregation
4. Every ledger change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
