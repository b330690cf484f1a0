# src/flockrewards/api/routes_public.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from flockrewards import __version__
from flockrewards.api.routes_rewards import router as rewards_router

health_router = APIRouter()


@health_router.get("/health")
def health() -> Dict[str, Any]:
    return {"ok": True, "service": "flockrewards", "version": __version__}


public_router = APIRouter()

# Versioned API surface
public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(rewards_router, prefix="/v1", tags=["rewards"])
