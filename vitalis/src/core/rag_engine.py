"""
Vitalis - RAG Engine
=====================
Orchestrates the Retrieval-Augmented Generation pipeline for one query.

Pipeline (``RAGOrchestrator.answer``)
-------------------------------------
    1. VALIDATE         → non-empty string, ≤ ``MAX_MESSAGE_LENGTH`` chars
    2. EMBED            → query vector (never raises; self-fallback)
    3. RETRIEVE         → top-K passages (never raises; mock fallback)
    4. ASSEMBLE_PROMPT  → grounded prompt from passages + query
    5. GENERATE         → model answer (never raises; keyword fallback)
    6. DISCLAIM         → append one canonical disclaimer
    7. RESPOND          → immutable ``ResponseEnvelope``

Only step 1 can fail.  The orchestrator keeps no per-session state: the
session id is a correlation token, minted when the caller has none.
Stage and session id are bound to the logging context for every line
emitted while the request runs.

Usage:
    from vitalis.src.core.rag_engine import RAGOrchestrator
    rag = RAGOrchestrator.from_settings()
    envelope = await rag.answer("What are the benefits of regular exercise?")
"""

from __future__ import annotations

import secrets
import string
import time
from collections.abc import Sequence

from vitalis.config.settings import Settings, settings
from vitalis.src.core.embedding import EmbeddingProvider, create_embedding_provider
from vitalis.src.core.errors import ClientInputError
from vitalis.src.core.generation import GenerationOptions, GenerationProvider, create_generation_provider
from vitalis.src.core.models import HealthInfoEnvelope, ResponseEnvelope, ResponseMetadata, RetrievedMatch, SourceCitation
from vitalis.src.core.prompt_builder import DisclaimerChooser, append_disclaimer, build_grounded_prompt, build_health_info_prompt
from vitalis.src.database.vector_store import VectorStore
from vitalis.src.utils.logger import correlation, get_logger

logger = get_logger(__name__)

_SESSION_ALPHABET = string.digits + string.ascii_lowercase
_SESSION_SUFFIX_LENGTH = 9


def new_session_id() -> str:
    """``session_<epoch-ms>_<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(_SESSION_SUFFIX_LENGTH))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def to_citations(matches: Sequence[RetrievedMatch]) -> list[SourceCitation]:
    """Ranked source citations with scores rounded to two decimals."""
    return [SourceCitation(id=m.passage.id, score=round(m.score, 2), category=m.passage.category, source=m.passage.source) for m in matches]


class RAGOrchestrator:
    """
    Sequences embed → retrieve → prompt → generate → disclaim per request.

    Parameters
    ----------
    embedder
        Any ``EmbeddingProvider`` (live or fallback).
    vector_store
        A ``VectorStore``; resolves its backend lazily.
    generator
        Any ``GenerationProvider`` (live or fallback).
    choose_disclaimer
        Optional disclaimer chooser (defaults to ``random.choice``).
    top_k
        Passages retrieved per chat query.
    max_message_length
        Longest accepted (trimmed) message.
    """

    __slots__ = ("_embedder", "_store", "_generator", "_choose", "_top_k", "_info_top_k", "_max_length", "_generation_options")

    def __init__(self, embedder: EmbeddingProvider, vector_store: VectorStore, generator: GenerationProvider, choose_disclaimer: DisclaimerChooser | None = None, top_k: int = 3, info_top_k: int = 5, max_message_length: int = 1000, generation_options: GenerationOptions | None = None) -> None:
        self._embedder = embedder
        self._store = vector_store
        self._generator = generator
        self._choose = choose_disclaimer
        self._top_k = top_k
        self._info_top_k = info_top_k
        self._max_length = max_message_length
        self._generation_options = generation_options or GenerationOptions()


    @classmethod
    def from_settings(cls, config: Settings | None = None) -> RAGOrchestrator:
        """Wire the default providers from *config* (or the global ``settings``)."""
        config = config or settings
        return cls(
            embedder=create_embedding_provider(config),
            vector_store=VectorStore(config=config),
            generator=create_generation_provider(config),
            top_k=config.SEARCH_RESULTS_LIMIT,
            info_top_k=config.HEALTH_INFO_RESULTS_LIMIT,
            max_message_length=config.MAX_MESSAGE_LENGTH,
        )


    @property
    def embedder(self) -> EmbeddingProvider:
        return self._embedder

    @property
    def vector_store(self) -> VectorStore:
        return self._store

    @property
    def generator(self) -> GenerationProvider:
        return self._generator

    # ══════════════════════════════════════════════════════════════════
    #  CHAT
    # ══════════════════════════════════════════════════════════════════

    async def answer(self, message: object, session_id: str | None = None) -> ResponseEnvelope:
        """
        Answer one chat message.

        Raises
        ------
        ClientInputError
            If *message* is missing, blank, or longer than the limit.
            Raised before any provider is called.
        """
        session = session_id or new_session_id()

        with correlation(session_id=session, stage="VALIDATE"):
            query = self._validate(message)
            logger.info("[RAG] Processing chat request (%d chars).", len(query))

            t_start = time.perf_counter()

            with correlation(stage="EMBED"):
                vector = await self._embedder.embed(query)

            with correlation(stage="RETRIEVE"):
                matches = await self._store.query(vector, self._top_k)
                logger.info("[RAG] Retrieved %d passage(s), top score %.2f.", len(matches), matches[0].score if matches else 0.0)

            with correlation(stage="ASSEMBLE_PROMPT"):
                prompt = build_grounded_prompt(query, matches)

            with correlation(stage="GENERATE"):
                raw_answer = await self._generator.generate(prompt, self._generation_options)

            with correlation(stage="DISCLAIM"):
                answer = self._disclaim(raw_answer)

            with correlation(stage="RESPOND"):
                elapsed_ms = int((time.perf_counter() - t_start) * 1000)
                envelope = ResponseEnvelope(
                    answer=answer,
                    session_id=session,
                    sources=to_citations(matches),
                    metadata=ResponseMetadata(processing_time_ms=elapsed_ms, passages_used=len(matches), embedding_dimensions=len(vector)),
                )
                logger.info("[RAG] Pipeline total: %dms (%d chars, %d sources).", elapsed_ms, len(answer), len(envelope.sources))
                return envelope

    # ══════════════════════════════════════════════════════════════════
    #  HEALTH TOPIC INFORMATION
    # ══════════════════════════════════════════════════════════════════

    async def health_info(self, topic: object) -> HealthInfoEnvelope:
        """
        Produce an informational overview of *topic* grounded on up to
        ``info_top_k`` passages.

        Raises
        ------
        ClientInputError
            If *topic* is missing or blank.
        """
        with correlation(stage="VALIDATE"):
            if not isinstance(topic, str) or not topic.strip():
                logger.warning("[RAG] Rejected health-info request: topic is required.")
                raise ClientInputError("Health topic is required")
            topic = topic.strip()
            logger.info("[RAG] Fetching health information on '%s'.", topic)

        with correlation(stage="EMBED"):
            vector = await self._embedder.embed(topic)
        with correlation(stage="RETRIEVE"):
            matches = await self._store.query(vector, self._info_top_k)
        with correlation(stage="GENERATE"):
            information = await self._generator.generate(build_health_info_prompt(topic, matches), self._generation_options)

        return HealthInfoEnvelope(topic=topic, information=self._disclaim(information), sources=to_citations(matches))

    # ── Helpers ────────────────────────────────────────────────────────

    def _validate(self, message: object) -> str:
        if not isinstance(message, str) or not message.strip():
            logger.warning("[RAG] Rejected message: empty or missing.")
            raise ClientInputError("Message is required and must be a non-empty string")

        query = message.strip()
        if len(query) > self._max_length:
            logger.warning("[RAG] Rejected message: %d chars exceeds %d.", len(query), self._max_length)
            raise ClientInputError(f"Message must be at most {self._max_length} characters")
        return query


    def _disclaim(self, answer: str) -> str:
        if self._choose is None:
            return append_disclaimer(answer)
        return append_disclaimer(answer, self._choose)


    async def aclose(self) -> None:
        """Release provider network resources."""
        await self._embedder.aclose()
