"""Tests for the corpus seeding routine and the built-in corpus."""

import pytest

from vitalis.config.health_corpus import HEALTH_CORPUS
from vitalis.scripts.seed_db import _parse_args, seed_corpus
from vitalis.src.database.vector_store import VectorStore


class RecordingStore(VectorStore):
    def __init__(self):
        super().__init__(uri="", table_name="t", dimension=1024)
        self.events = []

    async def upsert(self, records):
        self.events.append(("upsert", [r.id for r in records]))
        return {"upsertedCount": len(records)}

    async def delete_all(self):
        self.events.append(("delete_all", None))


class TestCorpus:
    def test_ids_unique(self):
        ids = [p.id for p in HEALTH_CORPUS]
        assert len(ids) == len(set(ids))

    def test_passages_complete(self):
        for passage in HEALTH_CORPUS:
            assert passage.text and passage.category and passage.source and passage.keywords


class TestSeedCorpus:
    @pytest.mark.asyncio
    async def test_embeds_and_upserts(self, counting_embedder):
        store = RecordingStore()
        count = await seed_corpus(store, counting_embedder, HEALTH_CORPUS[:3])
        assert count == 3
        assert store.events == [("upsert", [p.id for p in HEALTH_CORPUS[:3]])]

    @pytest.mark.asyncio
    async def test_drop_deletes_first(self, embedder):
        store = RecordingStore()
        await seed_corpus(store, embedder, HEALTH_CORPUS[:1], drop=True)
        assert [event for event, _ in store.events] == ["delete_all", "upsert"]

    @pytest.mark.asyncio
    async def test_empty_corpus(self, embedder):
        store = RecordingStore()
        assert await seed_corpus(store, embedder, []) == 0
        assert store.events == []


class TestArgs:
    def test_flags(self):
        assert _parse_args([]).drop is False
        assert _parse_args(["--drop"]).drop is True
        assert _parse_args(["--drop-only"]).drop_only is True
