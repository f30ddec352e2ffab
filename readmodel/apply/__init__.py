"""
Apply module for the read model - the write path.

This module handles:
- Entity payload and sort projection storage
- Index set maintenance (add, reconcile, external and inverted indexes)
- Entity deletion

Invariants:
    - Every public write is one MULTI/EXEC batch
    - Index membership exactly matches the latest extracted values

How to change safely:
    - Keep all mutations of one call on the same pipeline
    - Run scans and existence checks before pipe.execute()
"""

from .reconciler import IndexReconciler, index_values
from .writer import EntityWriter

__all__ = [
    "EntityWriter",
    "IndexReconciler",
    "index_values",
]
