"""
Budget Ledger - Source Package

A personal finance ledger that keeps its data in plain Markdown documents
(one per month, plus a settings document) instead of a private database.

DESIGN PRINCIPLES:
1. Memory is the source of truth, documents are a derived projection
2. Documents can always be regenerated from memory
3. Text flows back into memory only through the reconciling importer
4. Hand edits are tolerated, never overwritten before being imported
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Ledger Team"
