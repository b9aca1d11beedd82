# src/gemmarket/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from gemmarket.api.routes_public_parts.gems import router as gems_router
from gemmarket.api.routes_public_parts.health import router as health_router
from gemmarket.api.routes_public_parts.marketplace import router as marketplace_router
from gemmarket.api.routes_public_parts.metrics import router as metrics_router
from gemmarket.api.routes_public_parts.users import router as users_router

public_router = APIRouter()

public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(gems_router, prefix="/v1", tags=["gems"])
public_router.include_router(marketplace_router, prefix="/v1", tags=["marketplace"])
public_router.include_router(users_router, prefix="/v1", tags=["users"])

# Ops
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])
