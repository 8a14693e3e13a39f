import pytest

from graphsearch.index.actions import ActionType
from graphsearch.index.client import IndexResult
from graphsearch.index.synchronizer import IndexSynchronizer
from graphsearch.mapping import TYPE_FIELD, DefaultMapping, RuleMapping
from graphsearch.models import MappingDefinition, NodeCreated, NodeDeleted, NodeRepresentation, ProjectionRule


def node(key, **properties):
    values = {"name": "n"}
    if key is not None:
        values["uuid"] = key
    values.update(properties)
    return NodeRepresentation(graph_id=f"id-{key}", labels=("Person",), properties=values)


class RecordingClient:
    def __init__(self, fail=False, existing=("graph-node", "graph-relationship")):
        self.batches = []
        self.fail = fail
        self.indices = dict.fromkeys(existing)
        self.created = {}

    async def bulk(self, actions):
        self.batches.append(list(actions))
        if self.fail:
            return IndexResult(succeeded=False, error_message="1 bulk items failed", body={"errors": [{"index": {}}]})
        return IndexResult(succeeded=True)

    async def index_exists(self, name):
        return name in self.indices

    async def create_index(self, name, schema=None):
        self.indices[name] = None
        self.created[name] = schema
        return IndexResult(succeeded=True)

    async def put_mapping(self, name, schema):
        return IndexResult(succeeded=True)


@pytest.mark.asyncio
async def test_apply_batches_actions():
    client = RecordingClient()
    synchronizer = IndexSynchronizer(DefaultMapping("graph", "uuid"), client, batch_size=2)

    report = await synchronizer.apply(
        [NodeCreated(node("a")), NodeCreated(node("b")), NodeDeleted(node("c"))]
    )

    assert report.succeeded
    assert report.operations == 3
    assert report.actions == 3
    assert [len(batch) for batch in client.batches] == [2, 1]
    assert client.batches[1][0].action is ActionType.DELETE


@pytest.mark.asyncio
async def test_unprojectable_operation_is_reported_and_skipped():
    client = RecordingClient()
    synchronizer = IndexSynchronizer(DefaultMapping("graph", "uuid"), client)

    report = await synchronizer.apply([NodeCreated(node(None)), NodeCreated(node("b"))])

    assert not report.succeeded
    assert report.failed_operations[0]["operation"] == "NodeCreated"
    assert [action.id for action in client.batches[0]] == ["b"]


@pytest.mark.asyncio
async def test_partly_failed_operation_is_reported_and_its_valid_actions_sent():
    definition = MappingDefinition(
        node_mappings=[
            ProjectionRule(condition="True", index="graph-node", type="person"),
            ProjectionRule(condition="True", index="graph-node", type="aged", properties={"n": "get_property('age') + 1"}),
        ]
    )
    client = RecordingClient()

    report = await IndexSynchronizer(RuleMapping(definition), client).apply([NodeCreated(node("a"))])

    assert not report.succeeded
    assert report.failed_operations[0]["actions"] == 1
    assert len(report.failed_operations[0]["errors"]) == 1
    assert [(action.index, action.id) for action in client.batches[0]] == [("graph-node", "a")]


@pytest.mark.asyncio
async def test_computed_indices_are_provisioned_with_schema_before_writing():
    definition = MappingDefinition(
        node_mappings=[ProjectionRule(condition="True", index="lower(get_property('name'))", type="person")]
    )
    client = RecordingClient()
    synchronizer = IndexSynchronizer(RuleMapping(definition), client)

    await synchronizer.apply([NodeCreated(node("a", name="Ann"))])
    await synchronizer.apply([NodeCreated(node("b", name="Ann"))])

    assert list(client.created) == ["ann"]
    assert TYPE_FIELD in client.created["ann"]["properties"]
    assert len(client.batches) == 2


@pytest.mark.asyncio
async def test_bulk_errors_are_collected():
    synchronizer = IndexSynchronizer(DefaultMapping("graph", "uuid"), RecordingClient(fail=True))

    report = await synchronizer.apply([NodeCreated(node("a"))])

    assert report.bulk_errors == [{"index": {}}]


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        IndexSynchronizer(DefaultMapping("graph", "uuid"), RecordingClient(), batch_size=0)
