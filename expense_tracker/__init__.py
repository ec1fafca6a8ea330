"""
Expense Tracker - Source Package

A single-user expense ledger with filtered, sorted, paginated views
and aggregate spending metrics.

DESIGN PRINCIPLES:
1. The ledger is the only owner of expense records
2. Views and metrics are derived, never stored
3. Time is always injected, never read from a global clock
4. Fail early on bad input, recover quietly from bad storage
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
