"""
Vitalis - Application Entry Point
==================================
FastAPI application factory.  The lifespan handler wires one
``RAGOrchestrator`` from settings at startup, stores it on
``app.state`` and releases its network resources on shutdown.

``VitalisError`` subclasses are mapped to their ``status_code``, request
body validation failures to 400 and anything unhandled to 500, all with
one uniform JSON body::

    {"error": ..., "status": ..., "details": ..., "timestamp": ..., "path": ...}

Run locally:
    uvicorn vitalis.src.main:app --reload --port 8000
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vitalis.config.settings import settings
from vitalis.src.api.routes import router
from vitalis.src.core.errors import VitalisError
from vitalis.src.core.rag_engine import RAGOrchestrator
from vitalis.src.utils.logger import get_logger

logger = get_logger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _error_response(request: Request, status: int, error: str, details: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "error": error,
            "status": status,
            "details": details,
            "timestamp": _utc_timestamp(),
            "path": request.url.path,
        },
    )


async def _handle_vitalis_error(request: Request, exc: VitalisError) -> JSONResponse:
    logger.warning("[API] %s on %s: %s", type(exc).__name__, request.url.path, exc)
    return _error_response(request, exc.status_code, type(exc).__name__, str(exc))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    details = "; ".join(problems) or "Invalid request body"
    logger.warning("[API] Invalid request on %s: %s", request.url.path, details)
    return _error_response(request, 400, "ClientInputError", details)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[API] Unhandled error on %s", request.url.path)
    details = "Internal Server Error" if settings.ENV == "prod" else str(exc)
    return _error_response(request, 500, "InternalServerError", details)


def create_app(orchestrator: RAGOrchestrator | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Parameters
    ----------
    orchestrator
        Pre-built orchestrator (tests inject one).  When *None* the
        lifespan builds it with ``RAGOrchestrator.from_settings()``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.started_at = time.monotonic()
        app.state.orchestrator = orchestrator or RAGOrchestrator.from_settings()
        rag = app.state.orchestrator
        logger.info("[API] Vitalis starting (embedding=%s, generation=%s).", rag.embedder.mode.value, rag.generator.mode.value)
        yield
        await rag.aclose()
        logger.info("[API] Vitalis shut down.")

    app = FastAPI(title="Vitalis Health Assistant API", description="Retrieval-augmented health information chatbot with graceful provider fallback.", version="1.0.0", lifespan=lifespan)

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.add_exception_handler(VitalisError, _handle_vitalis_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
    app.include_router(router)
    return app


app = create_app()
