"""
FastAPI application setup for the ckd-assessments web API.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from assessment_store import InitializationError, RecordStore
from assessment_store.config import get_db_path

from . import __version__ as WEB_VERSION
from .routes import router

logger = logging.getLogger(__name__)

# Load .env file (if present) so CKD_ASSESSMENTS_DB_PATH is available via os.environ
load_dotenv()


def create_app(db_path: str | Path | None = None) -> FastAPI:
    """Build the app. The store is opened once, when the app starts up."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = get_db_path(db_path)
        store = RecordStore(resolved)
        try:
            await store.open()
        except InitializationError as e:
            # Routes answer 503 and retry the open on the next request.
            logger.warning("Assessment store unavailable at startup: %s", e)
        app.state.store = store
        yield

    app = FastAPI(
        title="ckd-assessments",
        description="Local history of CKD risk assessments",
        version=WEB_VERSION,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()
