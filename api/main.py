import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core import db, errors, schema
from core.settings import DatabaseSettings, Settings, load_settings
from reports import router as reports_router
from visits import router as visits_router

logger = logging.getLogger(__name__)

PoolFactory = Callable[[DatabaseSettings], Awaitable[object]]

ERROR_STATUS = {
    errors.ErrorKind.CONNECTIVITY: 503,
    errors.ErrorKind.CONSTRAINT_VIOLATION: 409,
    errors.ErrorKind.CALLER_MISUSE: 400,
    errors.ErrorKind.NOT_FOUND: 404,
    errors.ErrorKind.QUERY: 500,
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


async def database_error_handler(_: Request, exc: errors.DatabaseError) -> JSONResponse:
    status_code = ERROR_STATUS.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("request_failed kind=%s error=%s", exc.kind.value, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "kind": exc.kind.value},
    )


def create_app(
    settings: Settings | None = None,
    pool_factory: PoolFactory | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    make_pool = pool_factory or db.create_pool

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One pool per process; requests are served only after the schema is in place.
        app.state.ready = False
        pool = await make_pool(settings.database)
        app.state.pool = pool

        if settings.schema_bootstrap:
            result = await schema.bootstrap_schema(pool, settings.schema_dir)
            if not result.ok:
                await db.close_pool(pool)
                app.state.pool = None
                raise errors.SchemaBootstrapError(
                    f"Schema bootstrap failed for: {', '.join(sorted(result.failed))}"
                )
        app.state.ready = True
        try:
            yield
        finally:
            app.state.ready = False
            app.state.pool = None
            await db.close_pool(pool)

    app = FastAPI(title="caregiver-visit-report-api", lifespan=lifespan)
    app.state.pool = None
    app.state.ready = False

    # Allow local frontend dev server to call this API from the browser.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(errors.DatabaseError, database_error_handler)

    app.include_router(reports_router.router, tags=["reports"])
    app.include_router(visits_router.router, tags=["visits"])

    @app.get("/health")
    def health(request: Request) -> dict:
        return {"status": "ok", "ready": bool(request.app.state.ready)}

    return app


_settings = load_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)
