# backend/gitclone/main.py
from __future__ import annotations

"""
FastAPI application setup.

This module depends on:
- gitclone.config.get_settings for configuration
- gitclone.api.api_router for route registration
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gitclone.api import api_router
from gitclone.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
)


# ---- Routes ----

app.include_router(api_router)


# ---- Errors ----


@app.exception_handler(RequestValidationError)
async def request_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Undecodable or ill-typed bodies are a plain 400, like a request that
    selects no authentication scheme.
    """
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid clone request.", "errors": jsonable_encoder(exc.errors())},
    )


# ---- Lifecycle ----


@app.on_event("startup")
def on_startup() -> None:
    current = get_settings()
    logger.info("Cloning into %s", current.clone_directory)
    if not current.strict_host_key_checking:
        logger.warning(
            "SSH host key verification is disabled; "
            "set GITCLONE_STRICT_HOST_KEY_CHECKING=true to enable it"
        )


# ---- Healthcheck ----


@app.get("/health", tags=["health"])
def health() -> dict:
    return {"status": "ok"}
