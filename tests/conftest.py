"""
Shared test fixtures.

Every fixture runs fully offline: providers are the fallback variants,
the vector store is pinned to its mock index, and live HTTP is faked
with ``httpx.MockTransport``.
"""

from collections.abc import Sequence

import pytest

from vitalis.config.prompt_templates import DISCLAIMERS
from vitalis.config.settings import Settings
from vitalis.src.core.embedding import FallbackEmbeddingProvider
from vitalis.src.core.generation import GenerationOptions, GenerationProvider, KeywordGenerationProvider
from vitalis.src.core.models import ProviderMode, Vector
from vitalis.src.core.rag_engine import RAGOrchestrator
from vitalis.src.database.vector_store import MockVectorIndex, VectorStore


def first_disclaimer(options: Sequence[str]) -> str:
    return options[0]


class CountingEmbedder(FallbackEmbeddingProvider):
    """Fallback embedder that records every text it is asked to embed."""

    def __init__(self, dimension: int = 1024) -> None:
        super().__init__(dimension)
        self.calls: list[str] = []

    async def embed(self, text: str) -> Vector:
        self.calls.append(text)
        return await super().embed(text)


class RecordingGenerator(GenerationProvider):
    """Returns a fixed answer and keeps the prompts it received."""

    mode = ProviderMode.FALLBACK

    def __init__(self, answer: str = "Stay active and rest well.") -> None:
        self.answer = answer
        self.prompts: list[str] = []

    async def generate(self, prompt: str, options: GenerationOptions | None = None) -> str:
        self.prompts.append(prompt)
        return self.answer


@pytest.fixture
def offline_settings() -> Settings:
    return Settings(_env_file=None, HUGGINGFACE_API_KEY=None, GOOGLE_API_KEY=None, VECTOR_DB_URI=None, VECTOR_DB_API_KEY=None)


@pytest.fixture
def embedder() -> FallbackEmbeddingProvider:
    return FallbackEmbeddingProvider(dimension=1024)


@pytest.fixture
def mock_store() -> VectorStore:
    return VectorStore(index=MockVectorIndex())


@pytest.fixture
def generator() -> KeywordGenerationProvider:
    return KeywordGenerationProvider()


@pytest.fixture
def orchestrator(embedder, mock_store, generator) -> RAGOrchestrator:
    return RAGOrchestrator(embedder=embedder, vector_store=mock_store, generator=generator, choose_disclaimer=first_disclaimer)


@pytest.fixture
def counting_embedder() -> CountingEmbedder:
    return CountingEmbedder()


@pytest.fixture
def recording_generator() -> RecordingGenerator:
    return RecordingGenerator()


@pytest.fixture
def spy_orchestrator(counting_embedder, mock_store, recording_generator) -> RAGOrchestrator:
    return RAGOrchestrator(embedder=counting_embedder, vector_store=mock_store, generator=recording_generator, choose_disclaimer=first_disclaimer)


@pytest.fixture
def disclaimers() -> tuple[str, ...]:
    return DISCLAIMERS
