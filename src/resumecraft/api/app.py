from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from resumecraft.api.admin import router as admin_router
from resumecraft.api.routes import router as api_router
from resumecraft.config import Settings, get_settings
from resumecraft.db.init import init_database
from resumecraft.db.session import Database
from resumecraft.errors import ResumecraftError
from resumecraft.llm.router import LLMRouter

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    llm: LLMRouter | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    database = database or Database(settings.database_url)
    llm = llm or LLMRouter(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        result = init_database(database, settings)
        logger.info("Database ready url=%s seeded=%s", database.engine.url.render_as_string(), result)
        yield
        await llm.aclose()
        database.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.llm = llm

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ResumecraftError)
    async def _handle_domain_error(request: Request, exc: ResumecraftError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(exc.to_payload(), status_code=exc.status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = {
            ".".join(str(part) for part in error["loc"] if part != "body"): error["msg"]
            for error in exc.errors()
        }
        return JSONResponse(
            {"success": False, "error": "Validation failed", "code": "validation_failed", "details": details},
            status_code=400,
        )

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    app.include_router(admin_router)
    return app
