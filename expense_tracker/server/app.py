"""
Record Service Application

FastAPI app holding the authoritative record list.

DESIGN DECISION: The repository is injected. Request handlers only talk
to ExpenseRepositoryInterface, so the backing store (JSON file, in-memory
for tests) can change without touching them.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import expense_tracker
from expense_tracker.config import ServerSettings, get_settings
from expense_tracker.server.routes import router
from expense_tracker.services.storage import (
    ExpenseRepositoryInterface,
    JsonFileExpenseRepository,
)


logger = structlog.get_logger(__name__)


def create_app(
    repository: Optional[ExpenseRepositoryInterface] = None,
    settings: Optional[ServerSettings] = None,
) -> FastAPI:
    """
    Build the record service.

    Args:
        repository: Record store; defaults to the JSON backing file
        settings: Server settings; read from the environment when omitted
    """
    settings = settings or get_settings().server
    if repository is None:
        repository = JsonFileExpenseRepository(
            settings.data_path,
            write_attempts=settings.write_attempts,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await app.state.repository.load()
        logger.info("record_service_started", host=settings.host, port=settings.port)
        yield
        logger.info("record_service_stopped")

    app = FastAPI(
        title="Expense Record Service",
        version=expense_tracker.__version__,
        lifespan=lifespan,
    )
    app.state.repository = repository

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            {"error": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    app.include_router(router)
    return app
