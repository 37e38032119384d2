"""
Vitalis - VectorStore
======================
Nearest-neighbour retrieval over the health reference corpus, with a
built-in mock index for deployments without a vector database.

Architecture (OOP)
------------------
``VectorIndex``
    Abstract backend: ``query``, ``upsert``, ``delete_all``.

``MockVectorIndex``
    Three canonical passages with fixed scores (0.95 / 0.87 / 0.82).
    ``query`` ignores the input vector and returns the first ``top_k``.

``LanceVectorIndex``
    LanceDB table (local directory or LanceDB Cloud ``db://`` URI) with a
    strict PyArrow schema.  Cosine distance; ``score = 1 - distance``.

``VectorStore``
    Public facade.  Resolves its backend lazily on first use:
    no ``VECTOR_DB_URI`` or a failed connection → mock mode for the
    lifetime of the instance.  Initialisation is guarded by an
    ``asyncio.Lock`` so concurrent first callers share one backend.

Failure Semantics
-----------------
- ``query`` never raises: a live failure is answered from the mock index.
- ``upsert`` / ``delete_all`` raise ``VectorStoreAdminError`` on a live
  failure.  A silent fallback there would hide data loss.

Usage:
    from vitalis.src.database.vector_store import VectorStore
    store = VectorStore()
    matches = await store.query(vector, top_k=3)
"""

from __future__ import annotations

import asyncio
import math
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence

import lancedb
import pyarrow as pa

from vitalis.config.settings import Settings, settings
from vitalis.src.core.errors import VectorStoreAdminError
from vitalis.src.core.models import Passage, ProviderMode, RetrievedMatch, Vector, VectorRecord
from vitalis.src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Type Aliases ──────────────────────────────────────────────────────
MetadataFilter = dict[str, str]

# ── Mock corpus (fixed order, fixed scores) ───────────────────────────
MOCK_MATCHES: tuple[RetrievedMatch, ...] = (
    RetrievedMatch(
        passage=Passage(id="health-tip-1", text="Regular exercise for at least 30 minutes a day can significantly improve cardiovascular health and reduce the risk of heart disease.", category="exercise", source="health-guidelines"),
        score=0.95,
    ),
    RetrievedMatch(
        passage=Passage(id="health-tip-2", text="A balanced diet rich in fruits, vegetables, whole grains, and lean proteins provides essential nutrients for optimal body function.", category="nutrition", source="dietary-guidelines"),
        score=0.87,
    ),
    RetrievedMatch(
        passage=Passage(id="health-tip-3", text="Getting 7-9 hours of quality sleep each night is crucial for mental health, immune function, and overall well-being.", category="sleep", source="sleep-research"),
        score=0.82,
    ),
)


def passage_schema(dimension: int) -> pa.Schema:
    """PyArrow schema of the passage table for vectors of *dimension* floats."""
    return pa.schema([
        pa.field("id", pa.utf8()),
        pa.field("vector", pa.list_(pa.float32(), dimension)),
        pa.field("text", pa.utf8()),
        pa.field("category", pa.utf8()),
        pa.field("source", pa.utf8()),
        pa.field("keywords", pa.list_(pa.utf8())),
    ])


FILTERABLE_COLUMNS = frozenset({"id", "category", "source"})


def build_where_clause(filter_dict: MetadataFilter | None) -> str | None:
    """
    ``{"category": "sleep"}`` → ``category = 'sleep'`` (clauses joined by AND).

    Raises
    ------
    ValueError
        If a key is not one of ``FILTERABLE_COLUMNS``.
    """
    if not filter_dict:
        return None
    clauses = []
    for key, value in filter_dict.items():
        if key not in FILTERABLE_COLUMNS:
            raise ValueError(f"Cannot filter on column {key!r}; expected one of {sorted(FILTERABLE_COLUMNS)}")
        escaped = str(value).replace("'", "''")
        clauses.append(f"{key} = '{escaped}'")
    return " AND ".join(clauses)


def distance_to_score(distance: float) -> float:
    """Map a cosine distance onto a similarity score in ``[0, 1]``."""
    if math.isnan(distance):
        return 0.0
    return min(max(1.0 - distance, 0.0), 1.0)


# ══════════════════════════════════════════════════════════════════════
#  BACKENDS
# ══════════════════════════════════════════════════════════════════════

class VectorIndex(ABC):
    mode: ProviderMode

    @abstractmethod
    async def query(self, vector: Vector, top_k: int, filter_dict: MetadataFilter | None = None) -> list[RetrievedMatch]: ...

    @abstractmethod
    async def upsert(self, records: Sequence[VectorRecord]) -> int: ...

    @abstractmethod
    async def delete_all(self) -> None: ...


class MockVectorIndex(VectorIndex):
    """Input-independent stand-in returning the canonical passages."""

    mode = ProviderMode.FALLBACK

    async def query(self, vector: Vector, top_k: int, filter_dict: MetadataFilter | None = None) -> list[RetrievedMatch]:
        logger.info("[VECTOR] Using mock query (top_k=%d).", top_k)
        return list(MOCK_MATCHES[: max(top_k, 0)])

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        logger.info("[VECTOR] Mock: accepted %d record(s) without storing.", len(records))
        return len(records)

    async def delete_all(self) -> None:
        logger.info("[VECTOR] Mock: nothing to delete.")


class LanceVectorIndex(VectorIndex):
    """
    LanceDB-backed index.

    LanceDB's Python client is synchronous; every call is moved off the
    event loop with ``asyncio.to_thread``.

    Parameters
    ----------
    db
        An open ``lancedb.DBConnection``.
    table_name
        Passage table name (created with ``passage_schema`` when missing).
    dimension
        Vector length of the table.
    """

    mode = ProviderMode.LIVE

    def __init__(self, db: lancedb.DBConnection, table_name: str, dimension: int) -> None:
        self._db = db
        self._table_name = table_name
        self._dimension = dimension
        self._table = self._open_or_create()


    def _open_or_create(self) -> lancedb.table.Table:
        if self._table_name in self._db.table_names():
            table = self._db.open_table(self._table_name)
            logger.info("[VECTOR] Opened existing table '%s' (%d rows).", self._table_name, table.count_rows())
            return table
        table = self._db.create_table(self._table_name, schema=passage_schema(self._dimension))
        logger.info("[VECTOR] Created new table '%s'.", self._table_name)
        return table


    async def query(self, vector: Vector, top_k: int, filter_dict: MetadataFilter | None = None) -> list[RetrievedMatch]:
        rows = await asyncio.to_thread(self._search, vector, top_k, build_where_clause(filter_dict))
        return [RetrievedMatch(passage=Passage.from_metadata(str(row["id"]), row), score=distance_to_score(float(row.get("_distance", 1.0)))) for row in rows]


    def _search(self, vector: Vector, top_k: int, where: str | None) -> list[dict]:
        query = self._table.search(vector).distance_type("cosine").limit(top_k)
        if where:
            query = query.where(where)
        return query.to_list()


    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        rows = [
            {
                "id": record.id,
                "vector": record.values,
                "text": str(record.metadata.get("text", "")),
                "category": str(record.metadata.get("category", "General")),
                "source": str(record.metadata.get("source", "Health Guidelines")),
                "keywords": list(record.metadata.get("keywords", [])),
            }
            for record in records
        ]
        await asyncio.to_thread(self._merge_insert, rows)
        logger.info("[VECTOR] Upserted %d vector(s) into '%s'.", len(rows), self._table_name)
        return len(rows)


    def _merge_insert(self, rows: list[dict]) -> None:
        data = pa.Table.from_pylist(rows, schema=passage_schema(self._dimension))
        self._table.merge_insert("id").when_matched_update_all().when_not_matched_insert_all().execute(data)


    async def delete_all(self) -> None:
        await asyncio.to_thread(self._recreate_table)
        logger.info("[VECTOR] Deleted all vectors from '%s'.", self._table_name)


    def _recreate_table(self) -> None:
        self._db.drop_table(self._table_name)
        self._table = self._db.create_table(self._table_name, schema=passage_schema(self._dimension))


# ══════════════════════════════════════════════════════════════════════
#  CONNECTION CACHE
# ══════════════════════════════════════════════════════════════════════

_DB_LOCK = threading.Lock()
_db_connection_cache: dict[str, lancedb.DBConnection] = {}


def _get_connection(uri: str, api_key: str | None) -> lancedb.DBConnection:
    """
    Return a **singleton** ``lancedb.DBConnection`` for *uri*.

    Thread-safe via ``_DB_LOCK``.  Re-uses an existing connection for the
    same URI, avoiding file-lock contention when several ``VectorStore``
    instances share one database.
    """
    if uri not in _db_connection_cache:
        with _DB_LOCK:
            if uri not in _db_connection_cache:
                logger.info("[VECTOR] Opening new LanceDB connection: %s", uri)
                _db_connection_cache[uri] = lancedb.connect(uri, api_key=api_key)
    return _db_connection_cache[uri]


# ══════════════════════════════════════════════════════════════════════
#  FACADE
# ══════════════════════════════════════════════════════════════════════

class VectorStore:
    """
    Lazily-initialised vector store with mock fallback.

    Parameters
    ----------
    uri
        LanceDB location.  ``None`` → mock mode.  Defaults to
        ``settings.VECTOR_DB_URI``.
    api_key
        LanceDB Cloud key.  Defaults to ``settings.VECTOR_DB_API_KEY``.
    table_name
        Defaults to ``settings.VECTOR_TABLE_NAME``.
    dimension
        Defaults to ``settings.EMBEDDING_DIMENSIONS``.
    index
        Pre-built backend (skips lazy resolution; used by tests).
    """

    __slots__ = ("_uri", "_api_key", "_table_name", "_dimension", "_index", "_mock", "_init_lock")

    def __init__(self, uri: str | None = None, api_key: str | None = None, table_name: str | None = None, dimension: int | None = None, index: VectorIndex | None = None, config: Settings | None = None) -> None:
        config = config or settings
        self._uri: str | None = uri if uri is not None else config.VECTOR_DB_URI
        if api_key is None and config.VECTOR_DB_API_KEY is not None:
            api_key = config.VECTOR_DB_API_KEY.get_secret_value()
        self._api_key: str | None = api_key
        self._table_name: str = table_name or config.VECTOR_TABLE_NAME
        self._dimension: int = dimension or config.EMBEDDING_DIMENSIONS
        self._index: VectorIndex | None = index
        self._mock = MockVectorIndex()
        self._init_lock = asyncio.Lock()


    @property
    def mode(self) -> ProviderMode | None:
        """Backend mode, or *None* before the first call resolved it."""
        return self._index.mode if self._index is not None else None


    async def _ensure_index(self) -> VectorIndex:
        if self._index is not None:
            return self._index

        async with self._init_lock:
            if self._index is None:
                self._index = await self._connect()
        return self._index


    async def initialize(self) -> ProviderMode:
        """Resolve the backend now instead of on first use; returns its mode."""
        index = await self._ensure_index()
        return index.mode


    async def _connect(self) -> VectorIndex:
        if not self._uri:
            logger.warning("[VECTOR] VECTOR_DB_URI not set — using mock mode.")
            return self._mock

        try:
            db = await asyncio.to_thread(_get_connection, self._uri, self._api_key)
            index = await asyncio.to_thread(LanceVectorIndex, db, self._table_name, self._dimension)
        except Exception:
            logger.exception("[VECTOR] Failed to connect to LanceDB at %s — falling back to mock mode.", self._uri)
            return self._mock

        logger.info("[VECTOR] Connected to LanceDB table '%s'.", self._table_name)
        return index


    async def query(self, vector: Vector, top_k: int = 3, filter_dict: MetadataFilter | None = None) -> list[RetrievedMatch]:
        """
        Return up to *top_k* matches ordered by descending score.

        Never raises: a live failure is logged and answered by the mock index.
        """
        index = await self._ensure_index()
        try:
            matches = await index.query(vector, top_k, filter_dict)
        except Exception:
            logger.exception("[VECTOR] Query failed — using mock results.")
            return await self._mock.query(vector, top_k)

        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]


    async def upsert(self, records: Sequence[VectorRecord]) -> dict[str, int]:
        """
        Insert or replace *records* by id.

        Raises
        ------
        VectorStoreAdminError
            If the live index rejects the write.
        """
        index = await self._ensure_index()
        try:
            count = await index.upsert(records)
        except Exception as exc:
            logger.exception("[VECTOR] Upsert of %d record(s) failed.", len(records))
            raise VectorStoreAdminError(f"Upsert failed: {exc}") from exc
        return {"upsertedCount": count}


    async def delete_all(self) -> None:
        """
        Remove every stored vector.

        Raises
        ------
        VectorStoreAdminError
            If the live index rejects the delete.
        """
        index = await self._ensure_index()
        try:
            await index.delete_all()
        except Exception as exc:
            logger.exception("[VECTOR] Delete-all failed.")
            raise VectorStoreAdminError(f"Delete-all failed: {exc}") from exc


    def __repr__(self) -> str:
        return f"VectorStore(uri={self._uri!r}, table={self._table_name!r}, mode={self.mode})"
