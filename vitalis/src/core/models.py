"""
Vitalis - Pipeline Data Model
==============================
Value types exchanged between the RAG stages and the response models
returned to callers.

Internal values (``Passage``, ``RetrievedMatch``, ``VectorRecord``) are
frozen dataclasses: they are created once and never mutated.  Caller-facing
envelopes are frozen Pydantic models serialised with camelCase aliases
(``model_dump(by_alias=True)``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ── Type Aliases ──────────────────────────────────────────────────────
Vector = list[float]
MetadataValue = str | list[str]


class ProviderMode(str, Enum):
    """Which variant of a provider is serving calls."""

    LIVE = "live"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Passage:
    """A reference unit of the health corpus."""

    id: str
    text: str
    category: str = "General"
    source: str = "Health Guidelines"
    keywords: tuple[str, ...] = ()

    def to_metadata(self) -> dict[str, MetadataValue]:
        return {"text": self.text, "category": self.category, "source": self.source, "keywords": list(self.keywords)}

    @classmethod
    def from_metadata(cls, passage_id: str, metadata: dict) -> Passage:
        return cls(
            id=passage_id,
            text=str(metadata.get("text", "")),
            category=str(metadata.get("category") or "General"),
            source=str(metadata.get("source") or "Health Guidelines"),
            keywords=tuple(metadata.get("keywords") or ()),
        )


@dataclass(frozen=True)
class RetrievedMatch:
    passage: Passage
    score: float


@dataclass(frozen=True)
class VectorRecord:
    """One row for ``VectorStore.upsert``."""

    id: str
    values: Vector
    metadata: dict[str, MetadataValue] = field(default_factory=dict)

    @classmethod
    def from_passage(cls, passage: Passage, values: Vector) -> VectorRecord:
        return cls(id=passage.id, values=values, metadata=passage.to_metadata())


# ══════════════════════════════════════════════════════════════════════
#  CALLER-FACING ENVELOPES
# ══════════════════════════════════════════════════════════════════════

class _Envelope(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class SourceCitation(_Envelope):
    id: str
    score: float
    category: str
    source: str


class ResponseMetadata(_Envelope):
    processing_time_ms: int
    passages_used: int
    embedding_dimensions: int
    # Populated only by an external translation layer.
    was_translated: bool = False
    original_language: str | None = None


class ResponseEnvelope(_Envelope):
    answer: str
    session_id: str
    sources: list[SourceCitation] = Field(default_factory=list)
    metadata: ResponseMetadata
    language: str | None = None


class HealthInfoEnvelope(_Envelope):
    topic: str
    information: str
    sources: list[SourceCitation] = Field(default_factory=list)
    generated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"))
