"""Catalog store: table definitions and row access."""

from lucia.catalog.store import CatalogStore
from lucia.catalog import tables

__all__ = ["CatalogStore", "tables"]
