"""
Family Ledger - Source Package

A household asset and budget dashboard backed by a spreadsheet web-app.

DESIGN PRINCIPLES:
1. The spreadsheet is the source of truth; local state is a copy
2. Free text is normalized once, at the edge
3. Every number on screen is recomputed from the snapshot
4. Edits are optimistic and every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Family Ledger Team"
