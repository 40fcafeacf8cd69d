"""Quote storage, reconciliation and sync"""

__version__ = "0.1.0"
