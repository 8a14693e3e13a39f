"""Administrative endpoints."""

from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends

from graphsearch.api.dependencies import get_index_client, get_mapping
from graphsearch.core.config import settings
from graphsearch.index.client import SearchIndexClient
from graphsearch.mapping import Mapping

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health")
async def healthcheck() -> Dict[str, str]:
    """Liveness check."""

    return {"status": "ok", "environment": settings.ENVIRONMENT}


@router.post("/indices")
async def ensure_indices(
    mapping: Mapping = Depends(get_mapping),
    client: SearchIndexClient = Depends(get_index_client),
) -> Dict[str, object]:
    """Create any missing index used by the active mapping."""

    await mapping.ensure_indices(client)
    indices: List[str] = list(dict.fromkeys(mapping.index_names()))
    return {"mapping": mapping.name, "indices": indices}
