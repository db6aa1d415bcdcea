"""
Local Ledger - Source Package

A local-first personal finance ledger for a single user on a single
device: income, expenses, bank loans, informal debts, chit funds,
saving buckets and reminders.

DESIGN PRINCIPLES:
1. One snapshot is the source of truth
2. Status is derived from history, never from counters
3. Reject bad input, never silently clamp
4. Every mutation is written through as a full snapshot
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Local Ledger Team"

from local_ledger.orchestrator import LedgerService, create_ledger

__all__ = ["LedgerService", "create_ledger"]
