"""
Vitalis - Embedding Providers
==============================
Turns text into fixed-length vectors of ``settings.EMBEDDING_DIMENSIONS``
(``D = 1024``) floats.

Architecture (OOP)
------------------
``EmbeddingProvider``
    Abstract interface: ``embed``, ``embed_batch``, ``dimension``, ``mode``.

``FallbackEmbeddingProvider``
    Deterministic "semantic mock".  No network, no randomness: identical
    text always yields a bit-identical vector.  Texts sharing health
    topic keywords land close together in vector space.

``LiveEmbeddingProvider``
    Hugging Face inference API (``intfloat/multilingual-e5-large``) over
    ``httpx``.  A 503 ("model is loading") is retried with a fixed delay;
    every other failure, or a vector of the wrong length, is answered by
    the fallback algorithm so ``embed`` never raises.

Fallback Vector Layout (D = 1024)
---------------------------------
``[0, 900)``      ten 90-wide primary windows, one per health category
``[900, 1020)``   ten 12-wide secondary windows, one per health category
``[1000, 1024)``  per-text signature (written last, so it wins overlaps)

The vector is L2-normalised at the end.

Usage:
    from vitalis.src.core.embedding import create_embedding_provider
    embedder = create_embedding_provider()
    vector = await embedder.embed("How much sleep do adults need?")
"""

from __future__ import annotations

import asyncio
import math
import re
import struct
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence

import httpx

from vitalis.config.settings import FALLBACK_SIGNATURE_WIDTH, Settings, settings
from vitalis.src.core.errors import UpstreamUnavailableError
from vitalis.src.core.models import ProviderMode, Vector
from vitalis.src.utils.logger import get_logger
from vitalis.src.utils.retry import RetryPolicy, call_with_retry

logger = get_logger(__name__)

# ── Health categories: (name, keywords, weight), in index order ──────
HEALTH_CATEGORIES: tuple[tuple[str, tuple[str, ...], float], ...] = (
    ("exercise", ("exercise", "cardio", "workout", "fitness", "running", "walking", "gym", "sport", "physical", "activity", "training", "jogging", "cycling", "swimming"), 0.8),
    ("nutrition", ("nutrition", "diet", "food", "eating", "vitamin", "protein", "healthy", "meal", "calories", "carbs", "fiber", "minerals", "supplements", "organic"), 0.7),
    ("sleep", ("sleep", "rest", "insomnia", "bedtime", "nap", "tired", "fatigue", "dream", "wake", "drowsy", "exhausted", "slumber"), 0.9),
    ("mental", ("stress", "anxiety", "depression", "mental", "mood", "emotion", "mind", "psychological", "therapy", "counseling", "mindfulness", "meditation"), 0.8),
    ("medical", ("doctor", "hospital", "medicine", "treatment", "symptom", "diagnosis", "medical", "health", "physician", "clinic", "prescription"), 0.6),
    ("prevention", ("prevent", "screening", "vaccine", "checkup", "wellness", "preventive", "immunization", "mammogram", "colonoscopy"), 0.7),
    ("chronic", ("diabetes", "hypertension", "cholesterol", "arthritis", "heart", "blood", "pressure", "chronic", "disease", "condition"), 0.9),
    ("womens", ("pregnancy", "prenatal", "mammogram", "cervical", "pap", "women", "female", "maternal", "gynecology"), 0.8),
    ("mens", ("prostate", "psa", "testosterone", "men", "male", "masculine", "urology"), 0.8),
    ("senior", ("elderly", "senior", "aging", "falls", "bone", "osteoporosis", "geriatric", "older"), 0.7),
)

# ── Fallback layout ────────────────────────────────────────────────────
_PRIMARY_WIDTH = 90
_PRIMARY_LIMIT = 900
_SECONDARY_OFFSET = 900
_SECONDARY_WIDTH = 12

# Whitespace runs split tokens; empty edge tokens are kept, so leading or
# trailing whitespace adds an empty token that matches every keyword.
_WHITESPACE = re.compile(r"\s+")

# ── Fuzzy keyword matching ─────────────────────────────────────────────
_FUZZY_MIN_LENGTH = 3
_FUZZY_THRESHOLD = 0.6
_FUZZY_BONUS = 0.5

# E5 models expect a role prefix on batch inputs.
_E5_BATCH_PREFIX = "query: "
_WARMING_UP_STATUS = 503


# ══════════════════════════════════════════════════════════════════════
#  STRING HELPERS
# ══════════════════════════════════════════════════════════════════════

def levenshtein_distance(a: str, b: str) -> int:
    """Classic dynamic-programming edit distance (insert / delete / substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        for j, char_b in enumerate(b, 1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """``(maxLen - editDistance) / maxLen``; two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def _utf16_units(text: str) -> tuple[int, ...]:
    data = text.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


def text_hash(text: str) -> int:
    """
    Absolute value of a signed 32-bit ``h = h*31 + unit`` rolling hash
    over the UTF-16 code units of *text*.
    """
    h = 0
    for unit in _utf16_units(text):
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


# ══════════════════════════════════════════════════════════════════════
#  DETERMINISTIC SEMANTIC EMBEDDING
# ══════════════════════════════════════════════════════════════════════

def category_relevance(tokens: Sequence[str], keywords: Sequence[str], weight: float) -> float:
    """Weighted substring + fuzzy keyword score of *tokens* for one category."""
    score = 0.0
    for keyword in keywords:
        for token in tokens:
            if token in keyword or keyword in token:
                score += 1
            if len(token) > _FUZZY_MIN_LENGTH and len(keyword) > _FUZZY_MIN_LENGTH:
                similarity = string_similarity(token, keyword)
                if similarity > _FUZZY_THRESHOLD:
                    score += similarity * _FUZZY_BONUS
    return score * weight


def semantic_embedding(text: str, dimension: int = 1024) -> Vector:
    """
    Build the deterministic fallback vector for *text*.

    Pure function of ``(text, dimension)``; see the module docstring for
    the vector layout.
    """
    tokens = _WHITESPACE.split(text.lower())
    text_length = len(_utf16_units(text))
    vector = [0.0] * dimension

    primary_limit = min(_PRIMARY_LIMIT, dimension)
    for index, (_, keywords, weight) in enumerate(HEALTH_CATEGORIES):
        score = category_relevance(tokens, keywords, weight)
        if score <= 0:
            continue

        base = index * _PRIMARY_WIDTH
        for i in range(_PRIMARY_WIDTH):
            if base + i >= primary_limit:
                break
            vector[base + i] = score * 0.4 + math.sin(text_length + i + index) * 0.1

        secondary = _SECONDARY_OFFSET + index * _SECONDARY_WIDTH
        for i in range(_SECONDARY_WIDTH):
            if secondary + i >= dimension:
                break
            vector[secondary + i] = score * 0.2 + math.cos(text_length + i + index) * 0.05

    signature = text_hash(text)
    for k in range(dimension - FALLBACK_SIGNATURE_WIDTH, dimension):
        vector[k] = math.sin(signature + k) * 0.1

    norm = math.sqrt(sum(v * v for v in vector))
    if norm > 0:
        return [v / norm for v in vector]
    return vector


# ══════════════════════════════════════════════════════════════════════
#  PROVIDER INTERFACE
# ══════════════════════════════════════════════════════════════════════

class EmbeddingProvider(ABC):
    """Abstract embedding provider: every vector it returns has ``dimension`` floats."""

    mode: ProviderMode

    def __init__(self, dimension: int = 1024) -> None:
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    @abstractmethod
    async def embed(self, text: str) -> Vector:
        """Embed one text.  Never raises."""

    @abstractmethod
    async def embed_batch(self, texts: Sequence[str]) -> list[Vector]:
        """Embed many texts, preserving order."""

    async def aclose(self) -> None:
        """Release network resources (no-op by default)."""


class FallbackEmbeddingProvider(EmbeddingProvider):
    """Network-free provider backed by ``semantic_embedding``."""

    mode = ProviderMode.FALLBACK

    async def embed(self, text: str) -> Vector:
        return semantic_embedding(text, self._dimension)

    async def embed_batch(self, texts: Sequence[str]) -> list[Vector]:
        logger.info("[EMBED] Semantic batch embedding for %d text(s).", len(texts))
        return [semantic_embedding(text, self._dimension) for text in texts]


def _is_warming_up(exc: BaseException) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == _WARMING_UP_STATUS


class LiveEmbeddingProvider(EmbeddingProvider):
    """
    Hugging Face E5 embeddings with per-text and per-batch fallback.

    Parameters
    ----------
    api_key
        Hugging Face inference token.
    model_url
        Inference endpoint of the embedding model.
    client
        Optional pre-built ``httpx.AsyncClient`` (tests inject one backed
        by ``httpx.MockTransport``).  Created on demand otherwise.
    retry_policy
        Retry rule for single-text calls.  Defaults to three attempts,
        one second apart, retrying only on HTTP 503.
    """

    mode = ProviderMode.LIVE

    def __init__(self, api_key: str, model_url: str, dimension: int = 1024, timeout: float = 15.0, batch_timeout: float = 60.0, batch_size: int = 8, batch_pause: float = 0.2, retry_policy: RetryPolicy | None = None, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(dimension)
        self._model_url = model_url
        self._headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        self._timeout = timeout
        self._batch_timeout = batch_timeout
        self._batch_size = batch_size
        self._batch_pause = batch_pause
        self._retry_policy = retry_policy or RetryPolicy(max_attempts=3, delay=1.0, retryable=_is_warming_up)
        self._client = client or httpx.AsyncClient()
        logger.info("[EMBED] Live E5 embedding provider ready (%s).", model_url)


    async def embed(self, text: str) -> Vector:
        t_start = time.perf_counter()
        try:
            vector = await call_with_retry(lambda: self._request_one(text), self._retry_policy, label="E5 embedding")
        except Exception as exc:
            logger.error("[EMBED] E5 embedding failed: %s — falling back to semantic embedding.", exc)
            return semantic_embedding(text, self._dimension)

        logger.info("[EMBED] E5 embedding generated in %.1fms.", (time.perf_counter() - t_start) * 1000)
        return vector


    async def embed_batch(self, texts: Sequence[str]) -> list[Vector]:
        """
        Embed *texts* in chunks of ``batch_size``.

        A failing chunk is embedded with the fallback algorithm; the rest
        of the call is unaffected.  Successful chunks are followed by a
        short pause to stay under the inference API's rate limit.
        """
        results: list[Vector] = []
        total = len(texts)

        for start in range(0, total, self._batch_size):
            batch = list(texts[start : start + self._batch_size])
            batch_no = start // self._batch_size + 1
            t_batch = time.perf_counter()
            try:
                vectors = await self._request_batch(batch)
            except Exception as exc:
                logger.error("[EMBED] E5 batch %d failed: %s — using semantic embeddings for %d text(s).", batch_no, exc, len(batch))
                results.extend(semantic_embedding(text, self._dimension) for text in batch)
                continue

            results.extend(vectors)
            logger.info("[EMBED] E5 batch %d (%d texts) generated in %.1fms.", batch_no, len(batch), (time.perf_counter() - t_batch) * 1000)

            if start + self._batch_size < total:
                await asyncio.sleep(self._batch_pause)

        return results


    async def aclose(self) -> None:
        await self._client.aclose()

    # ── HTTP calls ─────────────────────────────────────────────────────

    async def _request_one(self, text: str) -> Vector:
        response = await self._client.post(self._model_url, json={"inputs": text}, headers=self._headers, timeout=self._timeout)
        response.raise_for_status()
        return self._check_vector(response.json())


    async def _request_batch(self, batch: list[str]) -> list[Vector]:
        payload = {"inputs": [_E5_BATCH_PREFIX + text for text in batch]}
        response = await self._client.post(self._model_url, json=payload, headers=self._headers, timeout=self._batch_timeout)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, list) or len(data) != len(batch):
            raise UpstreamUnavailableError(f"Expected {len(batch)} embeddings, got {len(data) if isinstance(data, list) else type(data).__name__}")
        return [self._check_vector(item) for item in data]


    def _check_vector(self, data: object) -> Vector:
        if not isinstance(data, list):
            raise UpstreamUnavailableError(f"Expected a flat numeric array, got {type(data).__name__}")
        if len(data) != self._dimension:
            raise UpstreamUnavailableError(f"Expected {self._dimension} dimensions, got {len(data)}")
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in data):
            raise UpstreamUnavailableError("Embedding contains non-numeric values")
        return [float(v) for v in data]


# ══════════════════════════════════════════════════════════════════════
#  FACTORY
# ══════════════════════════════════════════════════════════════════════

def create_embedding_provider(config: Settings | None = None, client: httpx.AsyncClient | None = None) -> EmbeddingProvider:
    """Return the live provider when a Hugging Face key is configured, else the fallback."""
    config = config or settings

    if config.HUGGINGFACE_API_KEY is None:
        logger.warning("[EMBED] HUGGINGFACE_API_KEY not set — using deterministic semantic embeddings.")
        return FallbackEmbeddingProvider(dimension=config.EMBEDDING_DIMENSIONS)

    policy = RetryPolicy(max_attempts=config.EMBED_MAX_RETRIES, delay=config.EMBED_RETRY_DELAY_SECONDS, retryable=_is_warming_up)
    return LiveEmbeddingProvider(
        api_key=config.HUGGINGFACE_API_KEY.get_secret_value(),
        model_url=config.EMBEDDING_MODEL_URL,
        dimension=config.EMBEDDING_DIMENSIONS,
        timeout=config.EMBED_TIMEOUT_SECONDS,
        batch_timeout=config.EMBED_BATCH_TIMEOUT_SECONDS,
        batch_size=config.EMBED_BATCH_SIZE,
        batch_pause=config.EMBED_BATCH_PAUSE_SECONDS,
        retry_policy=policy,
        client=client,
    )
