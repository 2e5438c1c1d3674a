"""
FastAPI application factory.

Assembles the app, registers all routers, builds the route → guard
requirement map, and wires up lifecycle events.  Database schema is
managed by Alembic, NOT create_all.
"""

import logging
import time

from fastapi import FastAPI, Request

from app.controllers.admin_controller import router as admin_router
from app.controllers.article_controller import router as article_router
from app.controllers.auth_controller import router as auth_router
from app.controllers.profile_controller import router as profile_router
from app.core.config import settings
from app.core.database import async_session_factory, engine
from app.models import Base  # noqa: F401 — ensures all models are registered
from app.rbac.decorators import build_route_requirements, check_route_requirements
from app.rbac.permission_seed import seed_at_startup

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)
access_logger = logging.getLogger("access")

ROUTERS = (auth_router, admin_router, profile_router, article_router)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ── Register routers ─────────────────────────────────────────────
    for router in ROUTERS:
        app.include_router(router)

    # ── Guard requirements (built once, read per request) ────────────
    # Built from the controller routers themselves, then checked against
    # whatever route tree include_router produced.
    app.state.route_requirements = build_route_requirements(
        route for router in ROUTERS for route in router.routes
    )
    check_route_requirements(app.routes, app.state.route_requirements)

    # ── Access log ───────────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        access_logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    # ── Startup / Shutdown ───────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup() -> None:
        """Optionally seed roles & permissions on startup.

        NOTE: Database schema is managed by Alembic migrations.
        Run `alembic upgrade head` and `python -m app.rbac.permission_seed`
        before starting the app; SEED_ON_STARTUP is off by default.
        """
        if not settings.SEED_ON_STARTUP:
            return
        await seed_at_startup(async_session_factory)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await engine.dispose()
        logger.info("Database engine disposed.")

    # ── Health check ─────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
