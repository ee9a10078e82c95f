# backend/gitclone/api/clone.py
from __future__ import annotations

import logging
import sys

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from gitclone import schemas
from gitclone.config import Settings, get_settings
from gitclone.services.diagnostics.error_classifier import ErrorKind
from gitclone.services.git import orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["clone"])

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.REPOSITORY_NOT_FOUND: 404,
    ErrorKind.BAD_CREDENTIALS: 403,
    ErrorKind.SSH_KEY_READING_ERROR: 400,
    ErrorKind.OTHER_ERROR: 400,
}


def status_for(kind: ErrorKind) -> int:
    return _STATUS_BY_KIND.get(kind, 400)


@router.post("/", response_model=schemas.CloneResponse)
def clone_repository(
    payload: schemas.CloneRequest,
    settings: Settings = Depends(get_settings),
):
    """
    Clone one branch of a remote repository into the configured directory.

    Declared as a plain function so every request runs on its own worker
    thread; the clone itself blocks until git is done.
    """
    credential = payload.credential()
    if credential is None:
        logger.warning("Clone request rejected: no authentication scheme selected")
        raise HTTPException(
            status_code=400,
            detail="No authentication scheme selected: set useSsh or useHttp.",
        )

    context = orchestrator.CloneContext(
        target_directory=settings.clone_directory,
        branch=payload.branch,
        no_checkout=payload.no_checkout,
        progress=sys.stdout,
    )
    error = orchestrator.clone(context, credential, settings=settings)

    if error is None:
        return schemas.CloneResponse(status="cloned")

    body = schemas.CloneResponse(status="error", error=error.kind, message=error.message)
    return JSONResponse(status_code=status_for(error.kind), content=body.model_dump(mode="json"))
