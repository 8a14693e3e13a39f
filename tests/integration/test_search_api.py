import pytest
from fastapi.testclient import TestClient

from graphsearch.api.dependencies import get_index_client, get_mapping, get_searcher
from graphsearch.api.main import app
from graphsearch.core.exceptions import InvalidQueryError, SearchTransportError
from graphsearch.index.client import IndexResult
from graphsearch.mapping import DefaultMapping
from graphsearch.models.graph import EntityKind, NodeRepresentation, RelationshipRepresentation
from graphsearch.models.search import SearchMatch


class StubSearcher:
    def __init__(self, error=None):
        self.error = error
        self.queries = []

    async def search(self, query, kind):
        self.queries.append((query, kind))
        if self.error is not None:
            raise self.error
        if kind is EntityKind.NODE:
            entity = NodeRepresentation(graph_id="4:db:1", labels=("Person",), properties={"uuid": "u1", "name": "Ann"})
            return [SearchMatch(key="u1", score=1.2, item=entity)]
        entity = RelationshipRepresentation(
            graph_id="5:db:9", type="KNOWS", start_node_graph_id="4:db:1", end_node_graph_id="4:db:2",
            properties={"uuid": "k1"},
        )
        return [SearchMatch(key="k1", score=0.5, item=entity)]

    async def raw_search(self, query, kind):
        return '{"hits": {"hits": []}, "aggregations": {"by_label": {"buckets": []}}}'


class StubIndexClient:
    def __init__(self):
        self.created = []

    async def index_exists(self, name):
        return False

    async def create_index(self, name, schema=None):
        self.created.append(name)
        return IndexResult(succeeded=True)

    async def put_mapping(self, name, schema):
        return IndexResult(succeeded=True)


@pytest.fixture
def searcher():
    return StubSearcher()


@pytest.fixture
def client(searcher):
    # No context manager: the lifespan would connect to real backends.
    app.dependency_overrides[get_searcher] = lambda: searcher
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_node_search(client, searcher):
    response = client.post("/api/search/node", json={"query": {"match": {"name": "Ann"}}})

    assert response.status_code == 200
    assert response.json() == [
        {
            "key": "u1",
            "score": 1.2,
            "entity": {
                "graph_id": "4:db:1",
                "labels": ["Person"],
                "type": None,
                "start_node_graph_id": None,
                "end_node_graph_id": None,
                "properties": {"uuid": "u1", "name": "Ann"},
            },
        }
    ]
    assert searcher.queries == [({"query": {"match": {"name": "Ann"}}}, EntityKind.NODE)]


def test_relationship_search(client):
    response = client.post("/api/search/relationship", json={"query": {"match_all": {}}})

    (match,) = response.json()
    assert match["entity"]["type"] == "KNOWS"
    assert match["entity"]["end_node_graph_id"] == "4:db:2"


def test_unknown_kind_is_rejected(client):
    assert client.post("/api/search/path", json={}).status_code == 422


def test_raw_search(client):
    response = client.post("/api/search/node/raw", json={"size": 0, "aggs": {}})

    assert response.status_code == 200
    assert "aggregations" in response.json()


@pytest.mark.parametrize(
    "error, status_code, code",
    [
        (SearchTransportError("Error while performing query on Elasticsearch"), 502, "search_transport"),
        (InvalidQueryError("Query must be a JSON object"), 400, "invalid_query"),
    ],
)
def test_errors_are_mapped_to_responses(error, status_code, code):
    app.dependency_overrides[get_searcher] = lambda: StubSearcher(error=error)
    try:
        response = TestClient(app).post("/api/search/node", json={})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == status_code
    assert response.json()["code"] == code


def test_health(client):
    response = client.get("/api/admin/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_ensure_indices_endpoint():
    index_client = StubIndexClient()
    app.dependency_overrides[get_mapping] = lambda: DefaultMapping("graph", "uuid")
    app.dependency_overrides[get_index_client] = lambda: index_client
    try:
        response = TestClient(app).post("/api/admin/indices")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == {"mapping": "default", "indices": ["graph-node", "graph-relationship"]}
    assert index_client.created == ["graph-node", "graph-relationship"]
