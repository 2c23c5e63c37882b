from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from application.movies.catalog_service import MovieCatalogService
from server.api.rest.dependencies import get_catalog_service

router = APIRouter(prefix="/api/v1", tags=["genres-v1"])


@router.get("/genres", response_model=List[str])
async def list_genres(
    user_id: str = Query(..., description="Owner id"),
    service: MovieCatalogService = Depends(get_catalog_service),
) -> List[str]:
    """Distinct genres across the user's movies, capitalized and sorted."""
    return await service.list_genres(owner_id=user_id)
