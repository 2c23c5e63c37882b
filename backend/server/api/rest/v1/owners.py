from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from application.ports.movie_store_port import MovieStorePort
from server.api.rest.dependencies import get_movie_store
from server.models.schemas import OwnerRegisterRequest

router = APIRouter(prefix="/api/v1", tags=["owners-v1"])


@router.post("/owners")
async def register_owner(
    req: OwnerRegisterRequest,
    store: MovieStorePort = Depends(get_movie_store),
) -> Dict[str, Any]:
    """Upsert the reminder recipient for a user (email stored lower-cased)."""
    try:
        owner = await store.register_owner(user_id=req.user_id, email=req.email, name=req.name)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"id": owner.id, "email": owner.email, "name": owner.name}
