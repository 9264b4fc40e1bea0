"""Tests for the Spot catalog sync job."""

import pytest

from lucia.assistant.tools import CatalogTools
from lucia.catalog.tables import spot_cores, spot_precos, spot_produtos
from lucia.integrations.stricker.client import CatalogSnapshot, StrickerAPIError
from lucia.pipelines.sync import CatalogSync, SyncResult


class FakeStrickerClient:
    def __init__(self, catalog, auth_error=None):
        self.catalog = catalog
        self.auth_error = auth_error
        self.calls = []

    def authenticate(self):
        self.calls.append("authenticate")
        if self.auth_error:
            raise self.auth_error
        return "tok"

    def fetch_catalog(self):
        self.calls.append("fetch_catalog")
        return CatalogSnapshot(**self.catalog)

    def close(self):
        self.calls.append("close")


@pytest.fixture
def sync_job(store, sample_catalog):
    return CatalogSync(FakeStrickerClient(sample_catalog), store)


def test_sync_writes_all_collections(sync_job, store):
    result = sync_job.run()

    assert result.success is True
    assert result.error is None
    assert result.counts == {"colors": 2, "products": 2, "prices": 3}
    assert store.count(spot_cores) == 2
    assert store.count(spot_produtos) == 2
    assert store.count(spot_precos) == 3
    assert sync_job.client.calls == ["authenticate", "fetch_catalog", "close"]


def test_sync_links_price_tiers_to_products(sync_job, store):
    sync_job.run()

    product = store.find_one(spot_produtos, spot_produtos.c.referencia_spot == "93500")
    tier = store.find_one(spot_precos, spot_precos.c.sku == "93500-10-999999")

    assert tier["produto_id"] == product["id"]
    assert tier["preco_unitario"] == 120.5


def test_rerun_is_idempotent(sync_job, store):
    first = sync_job.run()
    second = sync_job.run()

    assert first.counts == second.counts
    assert store.count(spot_cores) == 2
    assert store.count(spot_produtos) == 2
    assert store.count(spot_precos) == 3


def test_rerun_updates_changed_rows(store, sample_catalog):
    CatalogSync(FakeStrickerClient(sample_catalog), store).run()

    sample_catalog["products"][0]["Name"] = "Caneca Cerâmica 350ml Nova"
    CatalogSync(FakeStrickerClient(sample_catalog), store).run()

    row = store.find_one(spot_produtos, spot_produtos.c.referencia_spot == "91234")
    assert row["nome_produto"] == "Caneca Cerâmica 350ml Nova"
    assert store.count(spot_produtos) == 2


def test_duplicate_vendor_keys_are_collapsed(store, sample_catalog):
    sample_catalog["colors"].append({"ColorCode": "03", "Description": "Preto Fosco"})

    result = CatalogSync(FakeStrickerClient(sample_catalog), store).run()

    assert result.counts["colors"] == 2
    row = store.find_one(spot_cores, spot_cores.c.codigo_cor == "03")
    assert row["nome_cor"] == "Preto Fosco"


def test_small_batches(store, sample_catalog):
    job = CatalogSync(
        FakeStrickerClient(sample_catalog), store,
        color_batch_size=1, product_batch_size=1, price_batch_size=2,
    )
    assert job.run().counts == {"colors": 2, "products": 2, "prices": 3}


def test_failure_is_reported_not_raised(store, sample_catalog):
    client = FakeStrickerClient(sample_catalog, auth_error=StrickerAPIError("Authentication failed"))

    result = CatalogSync(client, store).run()

    assert result.success is False
    assert result.error == "Authentication failed"
    assert result.counts == {}
    assert client.calls == ["authenticate", "close"]
    assert store.count(spot_produtos) == 0


def test_duration_uses_clock(store, sample_catalog):
    ticks = iter([10.0, 12.5])
    job = CatalogSync(FakeStrickerClient(sample_catalog), store, clock=lambda: next(ticks))

    result = job.run()

    assert result.duration_seconds == 2.5
    assert result.duration == "2.50"


def test_result_to_dict():
    result = SyncResult(success=True, counts={"colors": 1}, duration_seconds=1.0, timestamp="t")
    assert result.to_dict() == {
        "success": True,
        "counts": {"colors": 1},
        "duration_seconds": 1.0,
        "error": None,
        "timestamp": "t",
    }


def test_synced_catalog_is_queryable_by_tools(sync_job, store):
    """After a sync the Spot lookup tool quotes the synced tiers."""
    sync_job.run()
    tools = CatalogTools(store)

    result = tools.spot_inventory_lookup("91234", 60)

    assert result["nome"] == "Caneca Cerâmica 350ml"
    assert result["preco_unitario"] == 8.0
    assert result["preco_total"] == 480.0
    assert tools.spot_inventory_lookup("mochila", 5) == {"error": "Preço não disponível para esta quantidade."}
