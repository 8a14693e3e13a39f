"""Search endpoints resolving index hits to graph entities."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Response
from pydantic import BaseModel, Field

from graphsearch.api.dependencies import get_searcher
from graphsearch.models.graph import EntityKind, NodeRepresentation
from graphsearch.search.searcher import Searcher

router = APIRouter(prefix="/search", tags=["search"])


class EntityPayload(BaseModel):
    graph_id: str
    labels: Optional[List[str]] = None
    type: Optional[str] = None
    start_node_graph_id: Optional[str] = None
    end_node_graph_id: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)


class SearchMatchResponse(BaseModel):
    key: str
    score: float
    entity: EntityPayload


def _entity_payload(entity) -> EntityPayload:
    if isinstance(entity, NodeRepresentation):
        return EntityPayload(graph_id=entity.graph_id, labels=list(entity.labels), properties=entity.properties)
    return EntityPayload(
        graph_id=entity.graph_id,
        type=entity.type,
        start_node_graph_id=entity.start_node_graph_id,
        end_node_graph_id=entity.end_node_graph_id,
        properties=entity.properties,
    )


@router.post("/{kind}", response_model=List[SearchMatchResponse])
async def search(
    kind: EntityKind,
    query: Dict[str, Any] = Body(...),
    searcher: Searcher = Depends(get_searcher),
) -> List[SearchMatchResponse]:
    """Run an Elasticsearch query and return the matching live entities."""

    matches = await searcher.search(query, kind)
    return [
        SearchMatchResponse(key=match.key, score=match.score, entity=_entity_payload(match.item))
        for match in matches
    ]


@router.post("/{kind}/raw")
async def raw_search(
    kind: EntityKind,
    query: Dict[str, Any] = Body(...),
    searcher: Searcher = Depends(get_searcher),
) -> Response:
    """Run an Elasticsearch query and return the backend response as is."""

    return Response(content=await searcher.raw_search(query, kind), media_type="application/json")
