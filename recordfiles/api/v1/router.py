"""
Aggregates all v1 API routers into a single APIRouter.
"""
from __future__ import annotations

from fastapi import APIRouter

from recordfiles.api.v1 import attachments, records

api_router = APIRouter()

api_router.include_router(records.router)
api_router.include_router(attachments.router)
