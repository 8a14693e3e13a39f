import pytest

from graphsearch.core.exceptions import IndexProvisioningError, SearchTransportError
from graphsearch.index.client import IndexResult
from graphsearch.mapping import TYPE_FIELD, DefaultMapping, RuleMapping
from graphsearch.models import MappingDefinition, ProjectionRule


class StubIndexClient:
    def __init__(self, existing=(), fail_create=False, fail_mapping=False, unreachable=False):
        self.indices = dict.fromkeys(existing)
        self.fail_create = fail_create
        self.fail_mapping = fail_mapping
        self.unreachable = unreachable
        self.created = []
        self.mappings = {}

    async def index_exists(self, name):
        if self.unreachable:
            raise SearchTransportError("connection refused")
        return name in self.indices

    async def create_index(self, name, schema=None):
        if self.fail_create:
            return IndexResult(succeeded=False, error_message="400 invalid_index_name_exception")
        self.indices[name] = None
        self.created.append(name)
        if schema:
            self.mappings[name] = schema
        return IndexResult(succeeded=True)

    async def put_mapping(self, name, schema):
        if self.fail_mapping:
            return IndexResult(succeeded=False, error_message="400 illegal_argument_exception")
        self.mappings[name] = schema
        return IndexResult(succeeded=True)


@pytest.mark.asyncio
async def test_creates_missing_indices_with_schema():
    client = StubIndexClient()

    await DefaultMapping("graph", "uuid").ensure_indices(client)

    assert client.created == ["graph-node", "graph-relationship"]
    type_field = client.mappings["graph-node"]["properties"][TYPE_FIELD]
    assert type_field["fields"]["raw"]["type"] == "keyword"


@pytest.mark.asyncio
async def test_existing_index_gets_schema_reapplied():
    client = StubIndexClient(existing=["graph-node", "graph-relationship"])

    await DefaultMapping("graph", "uuid").ensure_indices(client)

    assert client.created == []
    assert TYPE_FIELD in client.mappings["graph-node"]["properties"]
    assert TYPE_FIELD in client.mappings["graph-relationship"]["properties"]


@pytest.mark.asyncio
async def test_ensure_indices_is_idempotent():
    client = StubIndexClient()
    mapping = DefaultMapping("graph", "uuid")

    await mapping.ensure_indices(client)
    await mapping.ensure_indices(client)

    assert client.created == ["graph-node", "graph-relationship"]


@pytest.mark.asyncio
async def test_rule_indices_are_created_once():
    definition = MappingDefinition(
        node_mappings=[
            ProjectionRule(condition="has_label('Person')", index="people", type="person"),
            ProjectionRule(condition="has_label('Admin')", index="people", type="admin"),
        ]
    )
    client = StubIndexClient()

    await RuleMapping(definition).ensure_indices(client)

    assert client.created == ["graph-node", "graph-relationship", "people"]


@pytest.mark.asyncio
async def test_creation_failure_raises_provisioning_error():
    client = StubIndexClient(fail_create=True)

    with pytest.raises(IndexProvisioningError) as excinfo:
        await DefaultMapping("graph", "uuid").ensure_indices(client)

    assert excinfo.value.details["index"] == "graph-node"


@pytest.mark.asyncio
async def test_schema_failure_on_existing_index_raises_provisioning_error():
    client = StubIndexClient(existing=["graph-node"], fail_mapping=True)

    with pytest.raises(IndexProvisioningError) as excinfo:
        await DefaultMapping("graph", "uuid").ensure_indices(client)

    assert excinfo.value.message == "Failed to apply index mapping"


@pytest.mark.asyncio
async def test_unreachable_backend_raises_provisioning_error():
    client = StubIndexClient(unreachable=True)

    with pytest.raises(IndexProvisioningError):
        await DefaultMapping("graph", "uuid").ensure_indices(client)
