"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shepherd_service.db.engine import close_db, init_db
from shepherd_service.rest.errors import register_error_handlers
from shepherd_service.rest.routes.auth import router as auth_router
from shepherd_service.rest.routes.health import router as health_router
from shepherd_service.rest.routes.members import router as members_router
from shepherd_service.rest.routes.organizations import router as organizations_router
from shepherd_service.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db()
    yield
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shepherd API",
        description="Church membership service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.site_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Public routes
    app.include_router(health_router, tags=["health"])

    # Auth routes (OTP sign-in is public; session and sign-out read the bearer token)
    app.include_router(auth_router, prefix="/api/v1", tags=["auth"])

    # Protected API routes
    app.include_router(organizations_router, prefix="/api/v1", tags=["organizations"])
    app.include_router(members_router, prefix="/api/v1", tags=["members"])

    return app
