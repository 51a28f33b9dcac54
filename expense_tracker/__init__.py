"""
Personal Expense Tracker - Source Package

An offline-first expense tracker: spending entries are recorded in a
local store, shown as time-window summaries, and reconciled with a remote
record service whenever it is reachable.

DESIGN PRINCIPLES:
1. The local store is always writable, online or not
2. Remote is canonical for every record it knows about
3. Pending work is explicit per record, never implied
4. Every sync step is auditable
5. Storage layers are swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Expense Tracker Team"
