"""Vector Index Backends

Thin adapters over the vector store used for product search. Both
backends expose the same two calls:

  upsert(entries) -> {"count": n, "ids": [...]}
  query(vector, top_k, include_metadata) -> [{"id", "score", "metadata"}]

Upserts are keyed by entry id: writing an existing id replaces its
vector and metadata, so re-running an ingestion is idempotent.

Backends:
  - PineconeVectorIndex: production index (cosine metric)
  - InMemoryVectorIndex: process-local index for development and tests
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .models import VectorEntry

logger = logging.getLogger(__name__)


def _cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise ValueError(
            f"Vector dimension mismatch: index has {len(b)}, query has {len(a)}"
        )
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return dot / norm


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from either a plain dict or a Pinecone response model."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PineconeVectorIndex:
    """Adapter over a `pinecone.Index` handle."""

    def __init__(self, index: Any, namespace: Optional[str] = None):
        self.index = index
        self.namespace = namespace

    def upsert(self, entries: List[VectorEntry]) -> Dict[str, Any]:
        vectors = [
            {"id": e.id, "values": e.vector, "metadata": e.metadata}
            for e in entries
        ]
        response = self.index.upsert(vectors=vectors, namespace=self.namespace)
        count = _field(response, "upserted_count", len(vectors))
        logger.info(
            "Upserted %d vectors into namespace %r", count, self.namespace
        )
        return {"count": count, "ids": [e.id for e in entries]}

    def query(
        self,
        vector: List[float],
        top_k: int,
        include_metadata: bool = True,
    ) -> List[Dict[str, Any]]:
        response = self.index.query(
            vector=vector,
            top_k=top_k,
            include_metadata=include_metadata,
            namespace=self.namespace,
        )
        matches = _field(response, "matches") or []
        return [
            {
                "id": _field(m, "id"),
                "score": _field(m, "score"),
                "metadata": _field(m, "metadata") if include_metadata else None,
            }
            for m in matches
        ]


class InMemoryVectorIndex:
    """Dict-backed index ranked by cosine similarity. Last write wins."""

    def __init__(self):
        self._entries: Dict[str, VectorEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Optional[VectorEntry]:
        return self._entries.get(entry_id)

    def upsert(self, entries: List[VectorEntry]) -> Dict[str, Any]:
        for entry in entries:
            self._entries[entry.id] = entry
        logger.info(
            "Upserted %d vectors into in-memory index (size=%d)",
            len(entries), len(self._entries)
        )
        return {"count": len(entries), "ids": [e.id for e in entries]}

    def query(
        self,
        vector: List[float],
        top_k: int,
        include_metadata: bool = True,
    ) -> List[Dict[str, Any]]:
        scored = [
            (_cosine_similarity(vector, entry.vector), entry)
            for entry in self._entries.values()
        ]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            {
                "id": entry.id,
                "score": score,
                "metadata": dict(entry.metadata) if include_metadata else None,
            }
            for score, entry in scored[:top_k]
        ]


def get_pinecone_index(
    index_name: str = config.PINECONE_INDEX_NAME,
    namespace: str = config.PINECONE_NAMESPACE,
) -> PineconeVectorIndex:
    from pinecone import Pinecone

    api_key = config.PINECONE_API_KEY
    if not api_key:
        raise RuntimeError("PINECONE_API_KEY is not set")

    pc = Pinecone(api_key=api_key)
    logger.info("Using Pinecone index %r (namespace=%r)", index_name, namespace)
    return PineconeVectorIndex(pc.Index(index_name), namespace=namespace)


def get_vector_index(backend: Optional[str] = None):
    """Build the configured index backend ('pinecone' or 'memory')."""
    backend = (backend or config.VECTOR_BACKEND).lower()
    if backend == "memory":
        logger.warning("Using in-memory vector index; data is lost on exit")
        return InMemoryVectorIndex()
    if backend == "pinecone":
        return get_pinecone_index()
    raise ValueError(f"Unknown vector backend: {backend!r}")
