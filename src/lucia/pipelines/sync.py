#!/usr/bin/env python3
"""
Spot Gifts Catalog Sync.

Pulls the Stricker catalog and upserts it into the Spot tables:

1. Authenticate with the access key
2. Fetch colors, products and optionals concurrently
3. Upsert colors, then products, then price tiers (sequential batches)

The job is not resumable: the first failure aborts it and the store keeps
whatever the last committed batch wrote. Rerunning on unchanged vendor data
rewrites the same rows (upserts keyed by color code, product reference and
price SKU).

Usage:
    sync = CatalogSync(StrickerClient(api_url, access_key), store)
    result = sync.run()
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from lucia.catalog.store import CatalogStore, dedupe_records
from lucia.catalog.tables import spot_cores, spot_precos, spot_produtos
from lucia.integrations.stricker.client import CatalogSnapshot, StrickerClient
from lucia.integrations.stricker.config import (
    COLOR_BATCH_SIZE,
    PRICE_BATCH_SIZE,
    PRODUCT_BATCH_SIZE,
)
from lucia.integrations.stricker.transformer import (
    build_color_records,
    build_price_records,
    build_product_records,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Result of one catalog sync run."""
    success: bool
    counts: Dict[str, int] = field(default_factory=dict)
    duration_seconds: float = 0.0
    error: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def duration(self) -> str:
        return f"{self.duration_seconds:.2f}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CatalogSync:
    """Linear fetch-and-upsert job for the Spot catalog."""

    def __init__(
        self,
        client: StrickerClient,
        store: CatalogStore,
        color_batch_size: int = COLOR_BATCH_SIZE,
        product_batch_size: int = PRODUCT_BATCH_SIZE,
        price_batch_size: int = PRICE_BATCH_SIZE,
        clock=time.monotonic
    ):
        self.client = client
        self.store = store
        self.color_batch_size = color_batch_size
        self.product_batch_size = product_batch_size
        self.price_batch_size = price_batch_size
        self.clock = clock

    def sync_colors(self, snapshot: CatalogSnapshot) -> int:
        logger.info(f"Syncing {len(snapshot.colors)} colors...")
        records = dedupe_records(build_color_records(snapshot.colors), "codigo_cor")
        written = self.store.upsert(spot_cores, records, "codigo_cor", self.color_batch_size)
        logger.info(f"Colors synced: {written}")
        return written

    def sync_products(self, snapshot: CatalogSnapshot) -> int:
        logger.info(f"Syncing {len(snapshot.products)} products...")
        records = dedupe_records(build_product_records(snapshot.products), "referencia_spot")
        written = self.store.upsert(spot_produtos, records, "referencia_spot", self.product_batch_size)
        logger.info(f"Products synced: {written}")
        return written

    def sync_prices(self, snapshot: CatalogSnapshot) -> int:
        logger.info("Syncing prices...")
        records = dedupe_records(build_price_records(snapshot.optionals), "sku")
        logger.info(f"Extracted {len(records)} price tiers")

        # Link each tier to its product row; tiers of unknown products keep a null id
        product_ids = self.store.map_ids(spot_produtos, "referencia_spot", (r["referencia_spot"] for r in records))
        unlinked = 0
        for record in records:
            record["produto_id"] = product_ids.get(record["referencia_spot"])
            if record["produto_id"] is None:
                unlinked += 1
        if unlinked:
            logger.warning(f"{unlinked} price tier(s) reference unknown products")

        written = self.store.upsert(spot_precos, records, "sku", self.price_batch_size)
        logger.info(f"Prices synced: {written}")
        return written

    def run(self) -> SyncResult:
        """
        Run the whole sync.

        Never raises: failures are reported in the returned SyncResult.
        The vendor client is closed when the run ends.
        """
        start = self.clock()

        logger.info("=" * 60)
        logger.info("SPOT GIFTS SYNC STARTED")
        logger.info("=" * 60)

        counts: Dict[str, int] = {}
        try:
            self.client.authenticate()
            snapshot = self.client.fetch_catalog()

            counts["colors"] = self.sync_colors(snapshot)
            counts["products"] = self.sync_products(snapshot)
            counts["prices"] = self.sync_prices(snapshot)

        except Exception as e:
            duration = self.clock() - start
            logger.error(f"Sync failed after {duration:.2f}s: {e}")
            return SyncResult(success=False, counts=counts, duration_seconds=duration, error=str(e))
        finally:
            self.client.close()

        result = SyncResult(success=True, counts=counts, duration_seconds=self.clock() - start)

        logger.info("=" * 60)
        logger.info(f"SYNC COMPLETED in {result.duration}s")
        logger.info("=" * 60)
        logger.info(f"Colors: {counts['colors']}")
        logger.info(f"Products: {counts['products']}")
        logger.info(f"Prices: {counts['prices']}")
        return result
