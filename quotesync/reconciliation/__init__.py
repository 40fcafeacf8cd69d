"""Local/remote quote reconciliation"""

from quotesync.reconciliation.reconciler import QuoteReconciler, reconcile

__all__ = ["QuoteReconciler", "reconcile"]
