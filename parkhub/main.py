import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import inspect

from .config import settings
from .db import Base, engine
from .errors import register_exception_handlers
from .logging import setup_logging, RequestIdMiddleware, structlog
from .models import models  # noqa: F401  registers tables on Base.metadata
from .auth.router import router as auth_router
from .routes.parks import router as parks_router
from .routes.users import router as users_router
from .routes.instructors import router as instructors_router, public_router as public_instructors_router
from .routes.volunteers import router as volunteers_router


def _ensure_tables() -> None:
    log = structlog.get_logger()
    if settings.database_url.startswith("sqlite:///./"):
        os.makedirs("var", exist_ok=True)
    existing = set(inspect(engine).get_table_names())
    missing = set(Base.metadata.tables.keys()) - existing
    if missing:
        log.info("creating_tables", tables=sorted(missing))
        Base.metadata.create_all(bind=engine)
    else:
        log.info("tables_present", count=len(existing))


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_exception_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(parks_router)
    app.include_router(users_router)
    app.include_router(instructors_router)
    app.include_router(public_instructors_router)
    app.include_router(volunteers_router)

    # Metrics
    Instrumentator().instrument(app).expose(app)

    @app.get("/healthz", tags=["health"])
    def healthz():
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup():
        if settings.auto_create_db:
            _ensure_tables()

    return app


app = create_app()
