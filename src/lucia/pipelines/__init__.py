"""
Batch pipelines.

- sync: Stricker catalog -> Spot catalog tables
"""

from lucia.pipelines.sync import CatalogSync, SyncResult

__all__ = ["CatalogSync", "SyncResult"]
