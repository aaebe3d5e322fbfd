from fastapi.testclient import TestClient

from src.wine_search import pipeline as pipeline_mod
from src.wine_search.api import create_app
from src.wine_search.catalog import CatalogSourceError, StaticCatalogSource
from src.wine_search.vector_index import InMemoryVectorIndex


REMOTE_PAYLOAD = {
    "totalItems": 3,
    "products": [
        {"id": "p-1", "title": "Alpha Pinot Noir", "wine": {"type": "red"}},
        {"id": "p-2", "title": "Bravo Chardonnay", "wine": {"type": "white"}},
        {"id": "p-3", "title": "Charlie Rose", "wine": {"type": "rose"}},
    ],
}


class FakeRemoteSource:
    def __init__(self, payload=REMOTE_PAYLOAD):
        self.payload = payload

    def fetch(self):
        return self.payload


class FailingSource:
    def fetch(self):
        raise CatalogSourceError("HTTP 503: Service Unavailable")


class RecordingEmbedder:
    """Stand-in for embed_texts that records each batch it receives."""

    def __init__(self):
        self.calls = []

    def __call__(self, texts, **kwargs):
        self.calls.append(list(texts))
        return [[float(len(t)), 1.0] for t in texts]


def make_client(monkeypatch, source=None, index=None):
    embedder = RecordingEmbedder()
    monkeypatch.setattr(pipeline_mod, "embed_texts", embedder)
    # An empty InMemoryVectorIndex is falsy, so compare against None
    app = create_app(
        source=source if source is not None else FakeRemoteSource(),
        index=index if index is not None else InMemoryVectorIndex(),
    )
    return TestClient(app, raise_server_exceptions=False), embedder


def test_products_returns_raw_catalog(monkeypatch):
    client, _ = make_client(monkeypatch)

    response = client.get("/products")

    assert response.status_code == 200
    assert response.json() == REMOTE_PAYLOAD


def test_products_from_static_source_is_a_plain_list(monkeypatch):
    client, _ = make_client(monkeypatch, source=StaticCatalogSource())

    data = client.get("/products").json()

    assert isinstance(data, list)
    assert data[0]["sku"] == "WN-1001"


def test_text_data_returns_normalized_records(monkeypatch):
    client, embedder = make_client(monkeypatch)

    response = client.get("/text-data")

    assert response.status_code == 200
    records = response.json()
    assert [r["id"] for r in records] == ["p-1", "p-2", "p-3"]
    assert records[0]["text"] == "Alpha Pinot Noir. Type: red"
    assert records[0]["metadata"]["searchText"] == "alpha pinot noir. type: red"
    assert embedder.calls == []


def test_text_data_does_not_catch_source_errors(monkeypatch):
    client, _ = make_client(monkeypatch, source=FailingSource())

    response = client.get("/text-data")

    assert response.status_code == 500
    assert "error" not in response.text


def test_insert_embeds_once_and_upserts_all(monkeypatch):
    index = InMemoryVectorIndex()
    client, embedder = make_client(monkeypatch, index=index)

    response = client.post("/insert")

    assert response.status_code == 200
    assert response.json() == {"count": 3, "ids": ["p-1", "p-2", "p-3"]}
    assert len(embedder.calls) == 1
    assert len(embedder.calls[0]) == 3
    assert len(index) == 3


def test_insert_failure_returns_error_body(monkeypatch):
    client, _ = make_client(monkeypatch, source=FailingSource())

    response = client.get("/insert")

    assert response.status_code == 500
    assert response.json() == {"error": "HTTP 503: Service Unavailable"}


def test_query_without_q_uses_defaults(monkeypatch):
    index = InMemoryVectorIndex()
    client, embedder = make_client(
        monkeypatch,
        source=FakeRemoteSource({
            "totalItems": 7,
            "products": [{"id": f"p-{i}", "title": f"Wine {i}"} for i in range(7)],
        }),
        index=index,
    )
    client.post("/insert")

    response = client.get("/query")

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "red wine"
    assert len(body["matches"]) == 5
    assert embedder.calls[-1] == ["red wine"]
    assert {"id", "score", "metadata"} <= set(body["matches"][0])


def test_query_with_q_and_top_k(monkeypatch):
    client, embedder = make_client(monkeypatch)
    client.post("/insert")

    body = client.get("/query", params={"q": "crisp white", "topK": 2}).json()

    assert body["query"] == "crisp white"
    assert len(body["matches"]) == 2
    assert embedder.calls[-1] == ["crisp white"]


def test_query_failure_returns_error_body(monkeypatch):
    class BrokenIndex:
        def query(self, vector, top_k, include_metadata=True):
            raise RuntimeError("index offline")

    client, _ = make_client(monkeypatch, index=BrokenIndex())

    response = client.get("/query", params={"q": "syrah"})

    assert response.status_code == 500
    assert response.json() == {"error": "index offline"}


def test_unknown_path_lists_endpoints(monkeypatch):
    client, _ = make_client(monkeypatch)

    response = client.get("/anything/else")

    assert response.status_code == 200
    assert "/insert" in response.json()["endpoints"]
