from __future__ import annotations
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request
import structlog
from fitchallenge.config import settings
from fitchallenge.services.documents import CHALLENGES_KEY, DocumentStore, get_store

router = APIRouter(tags=["system"])
log = structlog.get_logger()

@router.get("/health")
async def health(request: Request, store: DocumentStore = Depends(get_store)):
    # One read proves the document backend answers; an empty catalog still counts
    try:
        await store.get(CHALLENGES_KEY)
        storage_ok = True
    except Exception as e:
        log.warning("health_storage_failed", backend=settings.storage_backend, error=str(e))
        storage_ok = False
    return {
        "status": "ok" if storage_ok else "degraded",
        "env": settings.environment,
        "storage": {"backend": settings.storage_backend, "ok": storage_ok},
        "time": datetime.now(timezone.utc).isoformat(),
        "request_id": request.state.request_id,
    }

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "display_name": settings.app_display_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
    }
