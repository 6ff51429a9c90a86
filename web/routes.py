"""
REST API routes for the ckd-assessments web API.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict

from assessment_store import (
    SCHEMA_VERSION,
    InitializationError,
    NotFoundError,
    RecordStore,
    StoreReadError,
    StoreState,
    StoreWriteError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# --- Request models ---

class AssessmentPayload(BaseModel):
    """Questionnaire answers plus computed risk fields.

    The shape is owned by the UI; every field is passed through untouched.
    """

    model_config = ConfigDict(extra="allow")


# --- Helpers ---

async def get_store(request: Request) -> RecordStore:
    """Return the app's store, retrying the open if the last attempt failed."""
    store: RecordStore = request.app.state.store
    if store.state is StoreState.FAILED:
        try:
            await store.open()
        except InitializationError as e:
            raise HTTPException(status_code=503, detail=str(e))
    return store


def _store_http_error(e: Exception) -> HTTPException:
    """Map a store failure to the HTTP error the UI shows as a notification."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InitializationError):
        return HTTPException(status_code=503, detail=str(e))
    logger.warning("Store operation failed: %s (cause: %r)", e, getattr(e, "cause", None))
    return HTTPException(status_code=500, detail=str(e))


_STORE_ERRORS = (InitializationError, NotFoundError, StoreReadError, StoreWriteError)


# --- Routes ---

@router.get("/config")
async def get_config(store: RecordStore = Depends(get_store)):
    """Report where the history lives and its schema version."""
    return {
        "db_path": str(store.db_path),
        "schema_version": SCHEMA_VERSION,
        "state": store.state.value,
    }


@router.post("/assessments", status_code=201)
async def save_assessment(payload: AssessmentPayload, store: RecordStore = Depends(get_store)):
    """Persist a computed assessment. Any ``id``/``timestamp`` sent is ignored."""
    try:
        record_id = await store.save(payload.model_dump())
    except _STORE_ERRORS as e:
        raise _store_http_error(e)
    return {"id": record_id}


@router.get("/assessments")
async def list_assessments(store: RecordStore = Depends(get_store)):
    """List all stored assessments, newest first."""
    try:
        assessments = await store.list_all()
    except _STORE_ERRORS as e:
        raise _store_http_error(e)
    return {"assessments": assessments, "count": len(assessments)}


@router.get("/assessments/{assessment_id}")
async def get_assessment(assessment_id: int, store: RecordStore = Depends(get_store)):
    """Get a single stored assessment."""
    try:
        return await store.get_by_id(assessment_id)
    except _STORE_ERRORS as e:
        raise _store_http_error(e)


@router.delete("/assessments/{assessment_id}")
async def delete_assessment(assessment_id: int, store: RecordStore = Depends(get_store)):
    """Delete a stored assessment. Deleting an unknown id still succeeds."""
    try:
        await store.delete_by_id(assessment_id)
    except _STORE_ERRORS as e:
        raise _store_http_error(e)
    return {"deleted": True}


@router.delete("/assessments")
async def clear_assessments(store: RecordStore = Depends(get_store)):
    """Delete every stored assessment."""
    try:
        removed = await store.clear()
    except _STORE_ERRORS as e:
        raise _store_http_error(e)
    logger.info("DELETE /api/assessments: removed %d assessment(s)", removed)
    return {"deleted": removed}
