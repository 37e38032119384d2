"""Tests for the deterministic semantic embedding and the live E5 provider."""

import json
import math

import httpx
import pytest
from pydantic import SecretStr, ValidationError

from vitalis.config.settings import FALLBACK_SIGNATURE_WIDTH, Settings

from vitalis.src.core.embedding import (
    FallbackEmbeddingProvider,
    LiveEmbeddingProvider,
    create_embedding_provider,
    levenshtein_distance,
    semantic_embedding,
    string_similarity,
    text_hash,
)
from vitalis.src.core.models import ProviderMode
from vitalis.src.utils.retry import RetryPolicy

MODEL_URL = "https://inference.test/models/e5"
DIM = 1024


def _norm(vector):
    return math.sqrt(sum(v * v for v in vector))


def _cosine(a, b):
    return sum(x * y for x, y in zip(a, b)) / (_norm(a) * _norm(b))


def _live(handler, **kwargs) -> LiveEmbeddingProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs.setdefault("retry_policy", RetryPolicy(max_attempts=3, delay=0, retryable=lambda exc: isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 503))
    kwargs.setdefault("batch_pause", 0)
    return LiveEmbeddingProvider(api_key="hf_test", model_url=MODEL_URL, dimension=DIM, client=client, **kwargs)


class TestStringHelpers:
    def test_levenshtein_classic_cases(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("same", "same") == 0

    def test_similarity_bounds(self):
        assert string_similarity("", "") == 1.0
        assert string_similarity("abc", "xyz") == 0.0
        assert string_similarity("running", "running") == 1.0

    def test_text_hash_matches_32bit_rolling_hash(self):
        assert text_hash("") == 0
        assert text_hash("a") == 97
        assert text_hash("ab") == 97 * 31 + 98

    def test_text_hash_wraps_to_signed_32bit(self):
        # overflows 32 bits
        value = text_hash("zzzzzzzzzzzzzzzz")
        assert 0 <= value <= 2**31

    def test_text_hash_uses_utf16_code_units(self):
        # U+1F600 is the surrogate pair D83D DE00
        assert text_hash("\U0001F600") == 0xD83D * 31 + 0xDE00


class TestSemanticEmbedding:
    def test_length_and_unit_norm(self):
        vector = semantic_embedding("How much exercise do I need each week?", DIM)
        assert len(vector) == DIM
        assert _norm(vector) == pytest.approx(1.0, abs=1e-9)

    def test_deterministic(self):
        text = "I feel stressed and anxious at work"
        assert semantic_embedding(text) == semantic_embedding(text)

    def test_different_texts_differ(self):
        assert semantic_embedding("sleep tips") != semantic_embedding("diet tips")

    def test_empty_text_still_has_signature(self):
        vector = semantic_embedding("", DIM)
        assert len(vector) == DIM
        assert _norm(vector) == pytest.approx(1.0, abs=1e-9)

    def test_unrelated_text_only_fills_signature_window(self):
        vector = semantic_embedding("qqq zzz", DIM)
        assert all(v == 0.0 for v in vector[: DIM - 24])
        assert any(v != 0.0 for v in vector[DIM - 24 :])

    def test_category_windows(self):
        vector = semantic_embedding("sleep", DIM)
        # sleep is category index 2: primary window [180, 270), secondary [924, 936)
        assert any(v != 0.0 for v in vector[180:270])
        assert any(v != 0.0 for v in vector[924:936])
        assert all(v == 0.0 for v in vector[0:90])

    def test_exercise_sentences_closer_than_sleep(self):
        running = semantic_embedding("I love running and swimming")
        jogging = semantic_embedding("I enjoy jogging daily")
        sleep = semantic_embedding("I need more sleep")
        assert _cosine(running, jogging) > _cosine(running, sleep)

    def test_small_dimension(self):
        vector = semantic_embedding("exercise and sleep", 32)
        assert len(vector) == 32
        assert _norm(vector) == pytest.approx(1.0, abs=1e-9)


def _reference_vector(text_length, scores, signature, dim=DIM):
    """Build the expected fallback vector from literal layout constants."""
    raw = [0.0] * dim
    for index, score in sorted(scores.items()):
        for i in range(90):
            if index * 90 + i < 900:
                raw[index * 90 + i] = score * 0.4 + math.sin(text_length + i + index) * 0.1
        for i in range(12):
            raw[900 + index * 12 + i] = score * 0.2 + math.cos(text_length + i + index) * 0.05
    for k in range(dim - 24, dim):
        raw[k] = math.sin(signature + k) * 0.1
    norm = math.sqrt(sum(v * v for v in raw))
    return [v / norm for v in raw]


# Keyword counts per category; an empty token matches each keyword once.
_EMPTY_TOKEN_SCORES = {0: 14 * 0.8, 1: 14 * 0.7, 2: 12 * 0.9, 3: 12 * 0.8, 4: 11 * 0.6, 5: 9 * 0.7, 6: 10 * 0.9, 7: 9 * 0.8, 8: 7 * 0.8, 9: 8 * 0.7}


class TestReferenceVectors:
    def test_hashes(self):
        assert text_hash("sleep") == 109522647
        assert text_hash("sleep ") == 899765207
        assert text_hash(" diet") == 32635924
        assert text_hash("\U0001F600 sleep") == 1559725606

    def test_single_keyword(self):
        expected = _reference_vector(5, {2: (1 + 0.5) * 0.9}, 109522647)
        assert semantic_embedding("sleep") == pytest.approx(expected, abs=1e-12)

    def test_non_bmp_text_uses_utf16_length(self):
        # the emoji is one code point but two UTF-16 units: length 8, not 7
        expected = _reference_vector(8, {2: (1 + 0.5) * 0.9}, 1559725606)
        assert semantic_embedding("\U0001F600 sleep") == pytest.approx(expected, abs=1e-12)

    def test_trailing_space_scores_every_category(self):
        scores = dict(_EMPTY_TOKEN_SCORES)
        scores[2] = (12 + 1 + 0.5) * 0.9
        expected = _reference_vector(6, scores, 899765207)
        assert semantic_embedding("sleep ") == pytest.approx(expected, abs=1e-12)

    def test_leading_space_scores_every_category(self):
        scores = dict(_EMPTY_TOKEN_SCORES)
        scores[1] = (14 + 1 + 0.5) * 0.7
        expected = _reference_vector(5, scores, 32635924)
        assert semantic_embedding(" diet") == pytest.approx(expected, abs=1e-12)

    def test_padding_changes_the_vector(self):
        assert semantic_embedding("diet")[0] == 0.0
        assert semantic_embedding(" diet")[0] != 0.0

    def test_pinned_elements(self):
        vector = semantic_embedding("sleep")
        raw_primary = 1.35 * 0.4 + math.sin(7) * 0.1
        raw_secondary = 1.35 * 0.2 + math.cos(7) * 0.05
        raw_signature = math.sin(109522647 + 1000) * 0.1
        assert vector[180] / vector[924] == pytest.approx(raw_primary / raw_secondary, rel=1e-9)
        assert vector[1000] / vector[924] == pytest.approx(raw_signature / raw_secondary, rel=1e-9)


class TestSignatureWidth:
    def test_settings_reject_dimensions_without_room(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, EMBEDDING_DIMENSIONS=FALLBACK_SIGNATURE_WIDTH)

    def test_smallest_accepted_dimension(self):
        dimension = FALLBACK_SIGNATURE_WIDTH + 1
        assert Settings(_env_file=None, EMBEDDING_DIMENSIONS=dimension).EMBEDDING_DIMENSIONS == dimension
        vector = semantic_embedding("qqq zzz", dimension)
        assert vector[0] == 0.0
        assert all(v != 0.0 for v in vector[1:])


class TestFallbackProvider:
    @pytest.mark.asyncio
    async def test_embed(self, embedder):
        vector = await embedder.embed("What are the benefits of regular exercise?")
        assert len(vector) == embedder.dimension == DIM
        assert embedder.mode is ProviderMode.FALLBACK

    @pytest.mark.asyncio
    async def test_embed_batch_matches_single(self, embedder):
        texts = ["walking", "fiber rich food", "bedtime routine"]
        batch = await embedder.embed_batch(texts)
        assert batch == [semantic_embedding(t) for t in texts]

    @pytest.mark.asyncio
    async def test_aclose_is_noop(self, embedder):
        await embedder.aclose()


class TestLiveProvider:
    @pytest.mark.asyncio
    async def test_success(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer hf_test"
            assert json.loads(request.content) == {"inputs": "hello"}
            return httpx.Response(200, json=[0.5] * DIM)

        provider = _live(handler)
        assert await provider.embed("hello") == [0.5] * DIM
        assert provider.mode is ProviderMode.LIVE
        await provider.aclose()

    @pytest.mark.asyncio
    async def test_warming_up_is_retried(self):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] < 3:
                return httpx.Response(503, json={"error": "Model is currently loading"})
            return httpx.Response(200, json=[0.1] * DIM)

        provider = _live(handler)
        assert await provider.embed("hello") == [0.1] * DIM
        assert calls["n"] == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_fall_back(self):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            return httpx.Response(503)

        provider = _live(handler)
        assert await provider.embed("sleep well") == semantic_embedding("sleep well")
        assert calls["n"] == 3

    @pytest.mark.asyncio
    async def test_server_error_falls_back_without_retry(self):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            return httpx.Response(500)

        provider = _live(handler)
        assert await provider.embed("sleep well") == semantic_embedding("sleep well")
        assert calls["n"] == 1

    @pytest.mark.asyncio
    async def test_wrong_length_falls_back(self):
        provider = _live(lambda request: httpx.Response(200, json=[0.1] * 384))
        assert await provider.embed("diet") == semantic_embedding("diet")

    @pytest.mark.asyncio
    async def test_nested_payload_falls_back(self):
        provider = _live(lambda request: httpx.Response(200, json=[[0.1] * DIM]))
        assert await provider.embed("diet") == semantic_embedding("diet")

    @pytest.mark.asyncio
    async def test_transport_error_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = _live(handler)
        assert await provider.embed("stress") == semantic_embedding("stress")

    @pytest.mark.asyncio
    async def test_batch_prefixes_and_chunks(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            inputs = json.loads(request.content)["inputs"]
            seen.append(inputs)
            return httpx.Response(200, json=[[0.2] * DIM for _ in inputs])

        provider = _live(handler, batch_size=2)
        vectors = await provider.embed_batch(["a", "b", "c"])
        assert vectors == [[0.2] * DIM] * 3
        assert seen == [["query: a", "query: b"], ["query: c"]]

    @pytest.mark.asyncio
    async def test_failed_batch_falls_back_per_batch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            inputs = json.loads(request.content)["inputs"]
            if "query: c" in inputs:
                return httpx.Response(500)
            return httpx.Response(200, json=[[0.2] * DIM for _ in inputs])

        provider = _live(handler, batch_size=2)
        vectors = await provider.embed_batch(["a", "b", "c", "d"])
        assert vectors[:2] == [[0.2] * DIM] * 2
        assert vectors[2:] == [semantic_embedding("c"), semantic_embedding("d")]


class TestFactory:
    def test_without_key_uses_fallback(self, offline_settings):
        provider = create_embedding_provider(offline_settings)
        assert isinstance(provider, FallbackEmbeddingProvider)
        assert provider.dimension == offline_settings.EMBEDDING_DIMENSIONS

    @pytest.mark.asyncio
    async def test_with_key_uses_live(self, offline_settings):
        config = offline_settings.model_copy(update={"HUGGINGFACE_API_KEY": SecretStr("hf_test")})
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[0.0] * DIM)))
        provider = create_embedding_provider(config, client=client)
        assert isinstance(provider, LiveEmbeddingProvider)
        await provider.aclose()
