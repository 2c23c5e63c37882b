from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from application.movies.catalog_service import MovieCatalogService, MoviePage
from application.movies.errors import MovieNotFoundError, MovieTitleConflictError
from application.movies.filter_parser import split_filter_path
from server.api.rest.dependencies import get_catalog_service
from server.models.schemas import MovieCreateRequest, MovieUpdateRequest, movie_to_dict

router = APIRouter(prefix="/api/v1", tags=["movies-v1"])


def _parse_movie_id(movie_id: str) -> UUID:
    try:
        return UUID(movie_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid movie_id (expected UUID)") from None


def _raw_filter_path(request: Request, decoded: str) -> str:
    """The filter part of the URL before percent-decoding.

    Starlette hands `{segments:path}` over already decoded, which would turn an
    escaped `/` in a search term into a separator.
    """
    raw = request.scope.get("raw_path")
    if raw:
        path = raw.decode("latin-1").split("?", 1)[0]
        marker = "/movies/f/"
        idx = path.find(marker)
        if idx >= 0:
            return path[idx + len(marker):]
    return "/".join(quote(s, safe="") for s in decoded.split("/"))


def _page_to_dict(result: MoviePage) -> Dict[str, Any]:
    return {
        "items": [movie_to_dict(m) for m in result.items],
        "page": result.page,
        "per_page": result.per_page,
        "total": result.total,
    }


@router.get("/movies")
async def list_movies(
    user_id: str = Query(..., description="Owner id"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1, le=50),
    search: Optional[str] = Query(default=None, description="Title search (ignored if `filters` has one)"),
    filters: Optional[str] = Query(default=None, description="Encoded filter, e.g. durationMin=90&genres=acao"),
    service: MovieCatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    parsed = service.parse_filters(filters=filters, search=search)
    try:
        result = await service.list_movies(owner_id=user_id, page=page, per_page=per_page, filters=parsed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _page_to_dict(result)


@router.get("/movies/f/{segments:path}")
async def list_movies_by_segments(
    segments: str,
    request: Request,
    user_id: str = Query(..., description="Owner id"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1, le=50),
    search: Optional[str] = Query(default=None),
    service: MovieCatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    """Same listing with the filter in path form: /movies/f/dur-gte-90/genre-acao,aventura."""
    parsed = service.parse_filters(segments=split_filter_path(_raw_filter_path(request, segments)), search=search)
    try:
        result = await service.list_movies(owner_id=user_id, page=page, per_page=per_page, filters=parsed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _page_to_dict(result)


@router.get("/movies/{movie_id}")
async def get_movie(
    movie_id: str,
    user_id: str = Query(..., description="Owner id"),
    service: MovieCatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    try:
        movie = await service.get_movie(movie_id=_parse_movie_id(movie_id), owner_id=user_id)
    except MovieNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return movie_to_dict(movie)


@router.post("/movies", status_code=201)
async def create_movie(
    req: MovieCreateRequest,
    service: MovieCatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    try:
        movie = await service.create_movie(owner_id=req.user_id, payload=req.movie_fields())
    except MovieTitleConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return movie_to_dict(movie)


@router.put("/movies/{movie_id}")
async def update_movie(
    movie_id: str,
    req: MovieUpdateRequest,
    service: MovieCatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    uuid = _parse_movie_id(movie_id)
    try:
        movie = await service.update_movie(movie_id=uuid, owner_id=req.user_id, payload=req.movie_fields())
    except MovieNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MovieTitleConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return movie_to_dict(movie)


@router.delete("/movies/{movie_id}", status_code=204, response_class=Response)
async def delete_movie(
    movie_id: str,
    user_id: str = Query(..., description="Owner id"),
    service: MovieCatalogService = Depends(get_catalog_service),
) -> Response:
    try:
        await service.delete_movie(movie_id=_parse_movie_id(movie_id), owner_id=user_id)
    except MovieNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(status_code=204)
