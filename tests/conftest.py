"""Shared test fixtures for lucia tests."""

import json
from types import SimpleNamespace

import pytest

from lucia.catalog.store import CatalogStore
from lucia.catalog.tables import precos, produtos, spot_precos, spot_produtos


# =============================================================================
# Catalog Store
# =============================================================================

@pytest.fixture
def store():
    """Empty in-memory catalog store."""
    store = CatalogStore.from_url("sqlite://")
    store.create_all()
    yield store
    store.dispose()


@pytest.fixture
def seeded_store(store):
    """Catalog store with a small main catalog and Spot catalog."""
    store.insert(produtos, [
        {"sku_base": "CAN-001", "nome_produto": "Caneta Metálica Premium", "ativo": True},
        {"sku_base": "SQZ-500", "nome_produto": "Squeeze Alumínio 500ml", "ativo": True},
        {"sku_base": "SQZ-750", "nome_produto": "Squeeze Alumínio 750ml", "ativo": True},
    ])
    store.insert(precos, [
        {"produto_sku": "CAN-001", "num_areas": 1, "quantidade_min": 1, "quantidade_max": 99, "preco_unitario": 12.5},
        {"produto_sku": "CAN-001", "num_areas": 1, "quantidade_min": 100, "quantidade_max": 499, "preco_unitario": 9.9},
        {"produto_sku": "CAN-001", "num_areas": 2, "quantidade_min": 100, "quantidade_max": 499, "preco_unitario": 11.4},
    ])
    store.insert(spot_produtos, [
        {
            "referencia_spot": "91234",
            "nome_produto": "Caneca Cerâmica 350ml",
            "descricao_curta": "Caneca de cerâmica",
            "preco_custo_base": 8.0,
            "ativo": True,
        },
        {
            "referencia_spot": "93500",
            "nome_produto": "Mochila Executiva",
            "descricao_curta": "Mochila para notebook",
            "preco_custo_base": 95.0,
            "ativo": True,
        },
    ])
    ids = store.map_ids(spot_produtos, "referencia_spot", ["91234", "93500"])
    store.insert(spot_precos, [
        {"sku": "91234-1-49", "referencia_spot": "91234", "produto_id": ids["91234"],
         "quantidade_minima": 1, "quantidade_maxima": 49, "preco_unitario": 10.0},
        {"sku": "91234-50-999999", "referencia_spot": "91234", "produto_id": ids["91234"],
         "quantidade_minima": 50, "quantidade_maxima": 999999, "preco_unitario": 8.25},
    ])
    return store


# =============================================================================
# Assistant Fakes
# =============================================================================

def make_tool_call(call_id, name, arguments):
    """Build a tool call shaped like the SDK's RequiredActionFunctionToolCall."""
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return SimpleNamespace(id=call_id, type="function", function=SimpleNamespace(name=name, arguments=arguments))


def make_run(status, run_id="run_1", tool_calls=None, last_error=None):
    """Build a run object with the attributes the conversation loop reads."""
    required_action = None
    if tool_calls is not None:
        required_action = SimpleNamespace(submit_tool_outputs=SimpleNamespace(tool_calls=tool_calls))
    return SimpleNamespace(id=run_id, status=status, required_action=required_action, last_error=last_error)


def make_message(text, role="assistant", run_id="run_1"):
    content = [SimpleNamespace(type="text", text=SimpleNamespace(value=text, annotations=[]))]
    return SimpleNamespace(role=role, run_id=run_id, content=content)


class FakeAssistant:
    """
    Scripted stand-in for AssistantClient.

    ``retrieve_runs`` are returned by successive retrieve_run() calls;
    submit_tool_outputs() returns a run with ``submit_status``.
    """

    def __init__(self, retrieve_runs, messages=None, initial_status="queued", submit_status="in_progress"):
        self.retrieve_runs = list(retrieve_runs)
        self.messages = messages or []
        self.initial_status = initial_status
        self.submit_status = submit_status
        self.calls = []
        self.submitted = []

    def create_thread(self):
        self.calls.append(("create_thread",))
        return "thread_new"

    def add_user_message(self, thread_id, content):
        self.calls.append(("add_user_message", thread_id, content))

    def create_run(self, thread_id, assistant_id):
        self.calls.append(("create_run", thread_id, assistant_id))
        return make_run(self.initial_status)

    def retrieve_run(self, thread_id, run_id):
        self.calls.append(("retrieve_run", thread_id, run_id))
        if len(self.retrieve_runs) > 1:
            return self.retrieve_runs.pop(0)
        return self.retrieve_runs[0]

    def submit_tool_outputs(self, thread_id, run_id, tool_outputs):
        self.calls.append(("submit_tool_outputs", thread_id, run_id))
        self.submitted.append(tool_outputs)
        return make_run(self.submit_status, run_id=run_id)

    def list_run_messages(self, thread_id, run_id):
        self.calls.append(("list_run_messages", thread_id, run_id))
        return self.messages


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fakes():
    """Builders for scripted assistant objects."""
    return SimpleNamespace(
        tool_call=make_tool_call,
        run=make_run,
        message=make_message,
        Assistant=FakeAssistant,
    )


# =============================================================================
# Vendor Data
# =============================================================================

@pytest.fixture
def sample_catalog():
    """Raw Stricker collections as returned by the API."""
    return {
        "colors": [
            {"ColorCode": "03", "Description": "Preto"},
            {"ColorCode": "05", "Description": ""},
        ],
        "products": [
            {
                "ProdReference": "91234",
                "Name": "Caneca Cerâmica 350ml",
                "ShortDescription": "Caneca de cerâmica",
                "Description": "Caneca de cerâmica com acabamento brilhante.",
                "Materials": "Cerâmica",
                "CombinedSizes": "ø82 x 95 mm",
                "Weight": "320",
                "Colors": "03,05",
                "Price": "7.90",
                "MainImage": "https://example.com/91234.jpg",
            },
            {
                "ProdReference": "93500",
                "Name": "Mochila Executiva",
                "Price": "not a price",
            },
        ],
        "optionals": [
            {"ProdReference": "91234", "Price1": "10", "MinQt1": "1", "Price2": "8", "MinQt2": "50"},
            {"ProdReference": "93500", "Price1": "120.5", "MinQt1": "10"},
        ],
    }
