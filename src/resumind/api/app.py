from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from resumind.api.cover_letters import router as cover_letter_router
from resumind.api.outreach import router as outreach_router
from resumind.api.routes import router as api_router
from resumind.config import get_settings
from resumind.core.context import AppContext
from resumind.db.init import init_database
from resumind.errors import AppError, InputValidationError, error_response
from resumind.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(context: AppContext | None = None) -> FastAPI:
    settings = context.settings if context else get_settings()
    configure_logging()
    # fail fast on missing credentials instead of on the first request
    context = context or AppContext.from_settings(settings)

    app = FastAPI(title=settings.app_name)
    app.state.context = context
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(InputValidationError())

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(AppError())

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    app.include_router(cover_letter_router)
    app.include_router(outreach_router)
    return app
