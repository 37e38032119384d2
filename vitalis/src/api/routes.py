"""
Vitalis - API Route Definitions
================================
Thin controllers over ``RAGOrchestrator``:

    POST /chat                      → answer a message (ResponseEnvelope)
    GET  /chat/health/{topic}       → topic overview (HealthInfoEnvelope)
    GET  /chat/history/{session_id} → placeholder, history is not stored
    GET  /chat/test                 → liveness text and endpoint list
    GET  /health                    → service status and provider modes

Validation lives in the orchestrator; its ``ClientInputError`` is turned
into a 400 by the application's error handler.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from vitalis.src.core.rag_engine import RAGOrchestrator

router = APIRouter()

HISTORY_PLACEHOLDER = "Chat history feature not implemented yet - would require database integration"


class ChatRequest(BaseModel):
    """``{message, sessionId?}``.  ``message`` is typed loosely so bad input reaches the orchestrator's validation."""

    model_config = ConfigDict(populate_by_name=True)

    message: Any = None
    session_id: str | None = Field(default=None, alias="sessionId")


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _orchestrator(request: Request) -> RAGOrchestrator:
    return request.app.state.orchestrator


# ── Chat ───────────────────────────────────────────────────────────────

@router.post("/chat")
async def chat(body: ChatRequest, request: Request) -> dict:
    envelope = await _orchestrator(request).answer(body.message, session_id=body.session_id)
    return envelope.model_dump(by_alias=True)


@router.get("/chat/health/{topic}")
async def health_info(topic: str, request: Request) -> dict:
    envelope = await _orchestrator(request).health_info(topic)
    return envelope.model_dump(by_alias=True)


@router.get("/chat/history/{session_id}")
async def chat_history(session_id: str) -> dict:
    return {"sessionId": session_id, "messages": [], "message": HISTORY_PLACEHOLDER}


@router.get("/chat/test")
async def chat_test() -> dict:
    return {
        "message": "Vitalis Health Assistant API is working!",
        "timestamp": _utc_timestamp(),
        "endpoints": {
            "chat": "POST /chat",
            "healthInfo": "GET /chat/health/{topic}",
            "history": "GET /chat/history/{session_id}",
            "test": "GET /chat/test",
        },
    }


# ── Service health ─────────────────────────────────────────────────────

@router.get("/health")
async def health(request: Request) -> dict:
    rag = _orchestrator(request)
    store_mode = rag.vector_store.mode
    return {
        "status": "healthy",
        "timestamp": _utc_timestamp(),
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "providers": {
            "embedding": rag.embedder.mode.value,
            "vectorStore": store_mode.value if store_mode is not None else "uninitialized",
            "generation": rag.generator.mode.value,
        },
    }
