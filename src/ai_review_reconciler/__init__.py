"""
AI Review Reconciler

Diff parsing, issue extraction and cross-cycle reconciliation
for automated pull request reviews
"""

__version__ = "1.0.0"

from .api import ReviewReconcilerAPI, ReconciliationReport

__all__ = ["ReviewReconcilerAPI", "ReconciliationReport"]
