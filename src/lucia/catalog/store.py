#!/usr/bin/env python3
"""
Catalog Row Store.

Thin layer over SQLAlchemy Core providing the two access patterns the service
needs:
- single-row filtered selects for the assistant tools
- batched upserts keyed by a conflict column for the catalog sync
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import create_engine, func, make_url, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.schema import Table

from lucia.catalog.tables import metadata
from lucia.core.errors import AmbiguousMatch

logger = logging.getLogger(__name__)


# Dialect-specific INSERT constructs that support ON CONFLICT DO UPDATE
UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Chunk size for IN (...) lookups
ID_LOOKUP_CHUNK = 500


def like_pattern(term: str) -> str:
    """Build a substring LIKE pattern, escaping wildcard characters in the term."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def dedupe_records(records: Iterable[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    """
    Collapse records sharing the same conflict key (last one wins).

    Records with an empty key are dropped. Order of first appearance is kept.
    """
    by_key: Dict[Any, Dict[str, Any]] = {}
    skipped = 0
    for record in records:
        value = record.get(key)
        if value is None or value == "":
            skipped += 1
            continue
        by_key[value] = record

    if skipped:
        logger.warning(f"Skipped {skipped} record(s) without '{key}'")
    return list(by_key.values())


class CatalogStore:
    """
    Access to the catalog tables.

    The engine is shared for the whole process; each operation checks out its
    own connection.
    """

    def __init__(self, engine: Engine, schema: Optional[str] = None):
        self.schema = schema
        if schema:
            engine = engine.execution_options(schema_translate_map={None: schema})
        self.engine = engine

    @classmethod
    def from_url(cls, url: str, schema: Optional[str] = None) -> "CatalogStore":
        """Create a store from a database URL."""
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite":
            options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
            # An in-memory database lives in one connection; file databases keep a real pool
            if parsed.database in (None, "", ":memory:"):
                options["poolclass"] = StaticPool
            engine = create_engine(url, **options)
            # SQLite has no schemas
            schema = None
        else:
            engine = create_engine(url, pool_pre_ping=True)
        return cls(engine, schema=schema)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def create_all(self) -> None:
        """Create the schema (Postgres only) and all catalog tables if missing."""
        if self.schema and self.dialect == "postgresql":
            with self.engine.begin() as conn:
                conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{self.schema}"'))
        metadata.create_all(self.engine)
        logger.info(f"Catalog tables ready (schema: {self.schema or 'default'})")

    # =========================================================================
    # Reads
    # =========================================================================

    def find_one(self, table: Table, *criteria, columns: Optional[Sequence[str]] = None) -> Optional[Dict[str, Any]]:
        """
        Fetch at most one row matching all criteria.

        Returns:
            The row as a dict, or None when nothing matches

        Raises:
            AmbiguousMatch: If more than one row matches
        """
        selected = [table.c[name] for name in columns] if columns else [table]
        stmt = select(*selected).where(*criteria).limit(2)

        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        if len(rows) > 1:
            raise AmbiguousMatch(f"More than one row in '{table.name}' matches the lookup")
        return dict(rows[0]) if rows else None

    def count(self, table: Table) -> int:
        """Count rows in a table."""
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(table)).scalar_one()

    def map_ids(self, table: Table, key_column: str, keys: Iterable[str]) -> Dict[str, int]:
        """Map values of ``key_column`` to row ids for the given keys."""
        unique_keys = sorted({k for k in keys if k})
        key_col = table.c[key_column]
        ids: Dict[str, int] = {}

        with self.engine.connect() as conn:
            for i in range(0, len(unique_keys), ID_LOOKUP_CHUNK):
                chunk = unique_keys[i:i + ID_LOOKUP_CHUNK]
                stmt = select(key_col, table.c.id).where(key_col.in_(chunk))
                for key, row_id in conn.execute(stmt):
                    ids[key] = row_id
        return ids

    # =========================================================================
    # Writes
    # =========================================================================

    def _upsert_statement(self, table: Table, batch: List[Dict[str, Any]], conflict_column: str):
        insert = UPSERT_DIALECTS.get(self.dialect)
        if insert is None:
            raise ValueError(f"Upsert is not supported for dialect '{self.dialect}'")

        stmt = insert(table).values(batch)
        update_columns = [c for c in batch[0] if c not in (conflict_column, "id")]
        return stmt.on_conflict_do_update(
            index_elements=[conflict_column],
            set_={c: stmt.excluded[c] for c in update_columns},
        )

    def upsert(self, table: Table, records: List[Dict[str, Any]], conflict_column: str, batch_size: int) -> int:
        """
        Insert-or-update records in sequential batches.

        Each batch commits on its own, so a failure leaves earlier batches in
        place. All records must share the same keys.

        Returns:
            Number of records written
        """
        written = 0
        for i in range(0, len(records), batch_size):
            batch = records[i:i + batch_size]
            stmt = self._upsert_statement(table, batch, conflict_column)
            with self.engine.begin() as conn:
                conn.execute(stmt)
            written += len(batch)
            logger.debug(f"Upserted {table.name} batch {i // batch_size + 1}: {len(batch)} rows")

        return written

    def insert(self, table: Table, records: List[Dict[str, Any]]) -> None:
        """Plain insert, used to seed the main catalog."""
        if not records:
            return
        with self.engine.begin() as conn:
            conn.execute(table.insert(), records)

    def dispose(self) -> None:
        self.engine.dispose()
