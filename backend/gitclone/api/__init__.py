# backend/gitclone/api/__init__.py
from __future__ import annotations

"""
API router aggregation.

This module exposes a single `api_router` that the FastAPI app
includes at the root, so the clone endpoint answers on `POST /`.
"""

from fastapi import APIRouter

from . import clone

api_router = APIRouter()
api_router.include_router(clone.router)
