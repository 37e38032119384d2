"""
Vitalis - Vector Database Seeding Script
=========================================
CLI entry point that orchestrates:
    1. Build the embedding provider and ``VectorStore`` from settings.
    2. Refuse to run when the store resolves to mock mode (nothing would
       be stored).
    3. Optionally delete every existing vector.
    4. Embed the built-in health corpus in batches and upsert it.
    5. Run a verification query and print a timed summary.

Flags:
    --drop       Delete all vectors before seeding.
    --drop-only  Delete all vectors and exit (no seeding).

Usage:
    python -m vitalis.scripts.seed_db
    python -m vitalis.scripts.seed_db --drop
    python -m vitalis.scripts.seed_db --drop-only
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from collections.abc import Sequence
from pathlib import Path

# ── Ensure project root is importable when run directly ────────────────
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from dotenv import load_dotenv  # noqa: E402
load_dotenv(_PROJECT_ROOT / ".env")

from vitalis.src.core.embedding import EmbeddingProvider  # noqa: E402
from vitalis.src.core.models import Passage, ProviderMode, VectorRecord  # noqa: E402
from vitalis.src.database.vector_store import VectorStore  # noqa: E402
from vitalis.src.utils.logger import get_logger  # noqa: E402

logger = get_logger(__name__)

VERIFICATION_QUERY = "How can I improve my cardiovascular health through exercise?"


async def seed_corpus(store: VectorStore, embedder: EmbeddingProvider, passages: Sequence[Passage], drop: bool = False) -> int:
    """
    Embed *passages* and upsert them into *store*.

    Returns
    -------
    int
        Number of records the store reports as upserted.

    Raises
    ------
    VectorStoreAdminError
        If the delete or upsert fails against the live index.
    """
    if drop:
        logger.warning("[SEED] Deleting all vectors before seeding.")
        await store.delete_all()

    if not passages:
        logger.warning("[SEED] No passages to seed.")
        return 0

    logger.info("[SEED] Embedding %d passage(s) …", len(passages))
    vectors = await embedder.embed_batch([p.text for p in passages])
    records = [VectorRecord.from_passage(passage, vector) for passage, vector in zip(passages, vectors)]

    result = await store.upsert(records)
    logger.info("[SEED] Upserted %d vector(s).", result["upsertedCount"])
    return result["upsertedCount"]


# ── CLI Argument Parsing ───────────────────────────────────────────────

def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="seed_db", description="Vitalis — Seed the vector database with the built-in health corpus.")
    parser.add_argument("--drop", action="store_true", default=False, help="Delete all vectors before seeding.")
    parser.add_argument("--drop-only", action="store_true", default=False, help="Delete all vectors and exit (no seeding).")
    return parser.parse_args(argv)


# ── Main Orchestration ─────────────────────────────────────────────────

async def _run(args: argparse.Namespace) -> int:
    from vitalis.config.health_corpus import HEALTH_CORPUS
    from vitalis.config.settings import settings
    from vitalis.src.core.embedding import create_embedding_provider

    t_start = time.perf_counter()
    _print_header(settings)

    embedder = create_embedding_provider(settings)
    store = VectorStore(config=settings)

    t_connect = time.perf_counter()
    mode = await store.initialize()
    connect_ms = (time.perf_counter() - t_connect) * 1000

    if mode is not ProviderMode.LIVE:
        logger.error("[SEED] Vector store is in mock mode — set VECTOR_DB_URI to seed a real index.")
        await embedder.aclose()
        return 1

    try:
        if args.drop_only:
            await store.delete_all()
            logger.info("--drop-only: all vectors deleted. Exiting.")
            _print_footer(0, 0, time.perf_counter() - t_start, connect_ms)
            return 0

        count = await seed_corpus(store, embedder, HEALTH_CORPUS, drop=args.drop)

        # ── Verification query ─────────────────────────────────────────
        matches = await store.query(await embedder.embed(VERIFICATION_QUERY), top_k=3)
        for match in matches:
            logger.info("[SEED] Verify: %s (%s) score=%.3f", match.passage.id, match.passage.category, match.score)
    finally:
        await embedder.aclose()

    _print_footer(len(HEALTH_CORPUS), count, time.perf_counter() - t_start, connect_ms)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    try:
        exit_code = asyncio.run(_run(args))
    except Exception:
        logger.exception("[SEED] Seeding failed.")
        exit_code = 1
    sys.exit(exit_code)


# ── Pretty-print helpers ──────────────────────────────────────────────

def _print_header(settings: object) -> None:
    print()
    print("=" * 60)
    print("  VITALIS — Vector Database Seeding")
    print("=" * 60)
    print(f"  Environment  : {settings.ENV}")                         # type: ignore[attr-defined]
    print(f"  Embedding    : {'E5 (live)' if settings.HUGGINGFACE_API_KEY else 'semantic fallback'}")  # type: ignore[attr-defined]
    print(f"  Dimensions   : {settings.EMBEDDING_DIMENSIONS}")        # type: ignore[attr-defined]
    print(f"  Vector DB    : {settings.VECTOR_DB_URI or '(not set)'}")  # type: ignore[attr-defined]
    print(f"  Table        : {settings.VECTOR_TABLE_NAME}")           # type: ignore[attr-defined]
    print("=" * 60)
    print()


def _print_footer(total: int, upserted: int, elapsed: float, connect_ms: float) -> None:
    print()
    print("=" * 60)
    print("  EXECUTION SUMMARY")
    print("-" * 60)
    print(f"  Corpus passages      : {total}")
    print(f"  Vectors upserted     : {upserted}")
    print(f"  Vector DB connection : {connect_ms:>8.1f}ms")
    print(f"  Total elapsed        : {elapsed:>8.2f}s")
    print("=" * 60)
    print()


# ── Entry point ────────────────────────────────────────────────────────

if __name__ == "__main__":
    main()
