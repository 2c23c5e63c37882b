from __future__ import annotations

from fastapi import APIRouter

import server.api.rest.v1.genres as genres_v1
import server.api.rest.v1.movies as movies_v1
import server.api.rest.v1.owners as owners_v1

# Canonical API router aggregator (v1 only).
api_router = APIRouter()
api_router.include_router(movies_v1.router)
api_router.include_router(genres_v1.router)
api_router.include_router(owners_v1.router)

__all__ = ["api_router"]
