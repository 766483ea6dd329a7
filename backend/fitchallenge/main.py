from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fitchallenge.config import settings
from fitchallenge.logging_setup import configure_logging
from fitchallenge.routes.system import router as system_router
from fitchallenge.routes.auth import router as auth_router
from fitchallenge.routes.challenges import router as challenges_router
from fitchallenge.routes.integrations import router as integrations_router
from fitchallenge.routes.leaderboard import router as leaderboard_router
from fitchallenge.services.catalog import ChallengeCatalog
from fitchallenge.services.documents import get_store
from fitchallenge.services.users import UserDirectory
import structlog

configure_logging(settings.log_level)
log = structlog.get_logger()

async def seed_store(store):
    await ChallengeCatalog(store).seed_defaults()
    if settings.seed_demo_data:
        await UserDirectory(store).seed_demo_users()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha, storage=settings.storage_backend)
    await seed_store(get_store())
    yield
    # Shutdown
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for fitness challenges",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(system_router)
app.include_router(auth_router)
app.include_router(challenges_router)
app.include_router(integrations_router)
app.include_router(leaderboard_router)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response
