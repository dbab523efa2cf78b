"""
Finance Manager - Source Package

Personal finance core: income/expense transactions across wallets,
borrow/lend obligations with settlement tracking, summaries, rule-based
insights and period reports.

DESIGN PRINCIPLES:
1. Every summary is recomputed from the current snapshot
2. Storage totals are reported as stored, never silently corrected
3. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Manager Team"
