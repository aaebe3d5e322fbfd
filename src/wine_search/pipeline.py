"""
Wine Product Indexing Pipeline

Turns raw catalog products into vector-index entries and serves
nearest-neighbor queries over them.

Stages (each strictly after the previous one):
- Normalize raw products into text + string metadata (1:1, in order)
- Drop duplicate ids, keeping the first occurrence
- Embed every text in a single batched call
- Re-attach vectors to records by position and upsert in one call

Also provides `run_pipeline`, the batch entry point used by the CLI,
which writes the intermediate outputs to disk with timestamped names.
"""

from pathlib import Path
import json
from typing import List, Dict, Any, Optional, Tuple
import logging
import time
from datetime import datetime

from . import config
from .alignment import BatchAligned
from .catalog import RemoteCatalogSource, StaticCatalogSource
from .config import CatalogSourceConfig
from .embeddings import embed_texts
from .loaders import load_products_file
from .models import NormalizedRecord, VectorEntry
from .normalizer import normalize_products
from .vector_index import get_vector_index


logger = logging.getLogger(__name__)

SOURCES = ("file", "remote", "static")


def deduplicate_records(records: List[NormalizedRecord]) -> List[NormalizedRecord]:
    """Keep the first record for each id; later duplicates are dropped with a warning."""
    seen_ids: set[str] = set()
    unique: List[NormalizedRecord] = []

    for record in records:
        if record.id in seen_ids:
            logger.warning(
                "Duplicate product id detected: %s. Keeping first occurrence.",
                record.id,
            )
            continue
        seen_ids.add(record.id)
        unique.append(record)

    return unique


def build_vector_entries(records: List[NormalizedRecord]) -> List[VectorEntry]:
    """
    Embed records and pair each vector with the record it came from.

    All texts go to the embedding API in one call. The response is matched
    back by position, so the record list is never reordered or filtered
    between building the request and reading the result.

    Args:
        records: Normalized records, ids already unique

    Returns:
        One VectorEntry per record, in input order
    """
    if not records:
        logger.warning("No records to embed")
        return []

    batch = BatchAligned(records)
    texts = batch.split(lambda record: record.text)

    try:
        start_time = time.time()
        vectors = embed_texts(texts)
        logger.info(
            "Embeddings generated for %d records (%.2fs)",
            len(texts),
            time.time() - start_time,
        )
    except Exception as e:
        logger.error("Failed to generate embeddings for batch: %s", e)
        raise

    entries = [
        VectorEntry(id=record.id, vector=vector, metadata=record.metadata)
        for record, vector in batch.zip(vectors)
    ]

    logger.info("Built %d vector entries", len(entries))
    return entries


def insert_records(records: List[NormalizedRecord], index) -> Dict[str, Any]:
    """Embed records and upsert them in a single call; returns the index ack."""
    entries = build_vector_entries(records)
    if not entries:
        return {"count": 0, "ids": []}
    return index.upsert(entries)


def insert_products(raw_products: List[Dict[str, Any]], index) -> Dict[str, Any]:
    """Normalize, deduplicate, embed and upsert raw products."""
    records = deduplicate_records(normalize_products(raw_products))
    logger.info("Inserting %d products", len(records))
    return insert_records(records, index)


def query_index(
    index,
    query: Optional[str] = None,
    top_k: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Embed a free-text query and return the nearest indexed products.

    The query goes through the same embedding model as the corpus.
    Matches are returned as ranked by the index, with metadata.
    """
    if not query or not query.strip():
        query = config.DEFAULT_QUERY
    if top_k is None:
        top_k = config.DEFAULT_TOP_K

    batch = BatchAligned([query])
    [(_, vector)] = batch.zip(embed_texts(batch.split(str)))

    matches = index.query(vector, top_k=top_k, include_metadata=True)
    logger.info("Query %r returned %d matches", query, len(matches))
    return {"query": query, "matches": matches}


def load_raw_products(
    source: str,
    input_path: Path | str | None = None,
    catalog_config: Optional[CatalogSourceConfig] = None,
) -> List[Dict[str, Any]]:
    """Load raw products from a JSON file, the remote catalog, or the static catalog."""
    if source == "file":
        if input_path is None:
            raise ValueError("input_path is required for the 'file' source")
        return load_products_file(input_path)
    if source == "remote":
        return RemoteCatalogSource(
            catalog_config or CatalogSourceConfig.from_env()
        ).list_products()
    if source == "static":
        return StaticCatalogSource().list_products()
    raise ValueError(f"Unknown source {source!r}; expected one of {SOURCES}")


def run_pipeline(
    source: str = "file",
    input_path: Path | str | None = "data/products.json",
    output_dir: Path | str = "output",
    limit: Optional[int] = None,
    dry_run: bool = False,
    skip_embeddings: bool = False,
    upsert: bool = True,
    keep_history: bool = True,
    index=None,
    catalog_config: Optional[CatalogSourceConfig] = None,
) -> Tuple[int, int, Dict[str, Path]]:
    """
    Run the complete ingestion pipeline.

    Pipeline Steps:
    1. Load raw products (file, remote catalog, or static catalog)
    2. Normalize into text + metadata records
    3. Deduplicate by product id
    4. Save normalized records
    5. Embed, save vector entries and upsert into the index

    Output Strategy:
    - Timestamped outputs (normalized_20251216_010530.json) when keep_history
    - Fixed names (normalized.json, vector_entries.json) otherwise

    Args:
        source: One of 'file', 'remote', 'static'
        input_path: JSON file for the 'file' source
        output_dir: Directory for all output files
        limit: Maximum products to process (None = all)
        dry_run: Normalize only; write nothing, embed nothing
        skip_embeddings: Stop after writing normalized records
        upsert: Upsert entries into the vector index after embedding
        keep_history: Timestamped outputs and run metadata
        index: Vector index to upsert into (configured backend if None)
        catalog_config: Remote catalog settings (environment if None)

    Returns:
        Tuple of (total_raw_products, processed_count, output_paths_dict)

    Raises:
        FileNotFoundError: If input_path doesn't exist
        json.JSONDecodeError: If input file is invalid JSON
        CatalogSourceError: If the remote catalog fails
        Exception: For embedding or index failures
    """
    output_dir = Path(output_dir)

    run_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    job_start = time.time()

    logger.debug("Starting pipeline run %s (source=%s)", run_timestamp, source)

    # ========== STEP 1: LOAD RAW PRODUCTS ==========
    t0 = time.time()
    logger.info("STEP 1/5: Loading raw products from %s source", source)

    try:
        raw_products = load_raw_products(source, input_path, catalog_config)
        total_raw = len(raw_products)
        logger.info(
            "✓ Loaded %d raw products in %.2fs",
            total_raw,
            time.time() - t0
        )
    except FileNotFoundError:
        logger.exception("Input file not found: %s", input_path)
        raise
    except json.JSONDecodeError:
        logger.exception("Invalid JSON in input file: %s", input_path)
        raise
    except Exception:
        logger.exception("Failed to load raw products from %s source", source)
        raise

    if limit is not None:
        logger.info("Applying limit: %d products", limit)
        raw_products = raw_products[:limit]

    # ========== STEP 2: NORMALIZE ==========
    t1 = time.time()
    logger.info("STEP 2/5: Normalizing %d products", len(raw_products))

    try:
        records = normalize_products(raw_products)
    except Exception:
        logger.exception("Failed during product normalization")
        raise

    logger.info("✓ Normalized %d products in %.2fs", len(records), time.time() - t1)

    # ========== STEP 3: DEDUPLICATE BY ID ==========
    logger.info("STEP 3/5: Deduplicating records by id")
    unique_records = deduplicate_records(records)
    duplicate_count = len(records) - len(unique_records)
    records = unique_records
    logger.info(
        "✓ Deduplication removed %d duplicates, kept %d unique",
        duplicate_count,
        len(records)
    )

    output_paths: Dict[str, Path] = {}

    if dry_run:
        logger.info("DRY RUN: skipping writes, embeddings and upsert")
        return total_raw, len(records), output_paths

    # ========== STEP 4: SAVE NORMALIZED RECORDS ==========
    t3 = time.time()
    logger.info("STEP 4/5: Saving normalized records")

    output_dir.mkdir(parents=True, exist_ok=True)
    suffix = f"_{run_timestamp}" if keep_history else ""
    normalized_path = output_dir / f"normalized{suffix}.json"

    try:
        with normalized_path.open("w", encoding="utf-8") as f:
            json.dump(
                [r.model_dump() for r in records], f, ensure_ascii=False, indent=2
            )
        output_paths["normalized"] = normalized_path
        logger.info(
            "✓ Wrote %d normalized records to %s (%.2fs)",
            len(records),
            normalized_path.name,
            time.time() - t3
        )
    except Exception:
        logger.exception("Failed to save normalized records")
        raise

    run_metadata: Dict[str, Any] = {
        "source": source,
        "input_file": str(input_path) if source == "file" else None,
        "total_raw": total_raw,
        "processed": len(records),
        "duplicates_removed": duplicate_count,
        "embeddings_generated": False,
        "upserted": 0,
    }

    # ========== STEP 5: EMBED, SAVE ENTRIES, UPSERT ==========
    if skip_embeddings:
        logger.info("STEP 5/5: Skipping embeddings (skip_embeddings=True)")
    else:
        t4 = time.time()
        logger.info("STEP 5/5: Generating embeddings and vector entries")

        try:
            entries = build_vector_entries(records)
            logger.info("✓ Built %d entries in %.2fs", len(entries), time.time() - t4)
        except Exception:
            logger.exception("Failed to build vector entries")
            raise

        entries_path = output_dir / f"vector_entries{suffix}.json"
        try:
            with entries_path.open("w", encoding="utf-8") as f:
                json.dump(
                    [e.model_dump() for e in entries], f, ensure_ascii=False, indent=2
                )
            output_paths["entries"] = entries_path
            logger.info("✓ Wrote %d vector entries to %s", len(entries), entries_path.name)
        except Exception:
            logger.exception("Failed to save vector entries")
            raise

        run_metadata["embeddings_generated"] = True

        if upsert and entries:
            if index is None:
                index = get_vector_index()
            try:
                ack = index.upsert(entries)
            except Exception:
                logger.exception("Failed to upsert %d entries", len(entries))
                raise
            run_metadata["upserted"] = ack.get("count", len(entries))
            logger.info("✓ Upserted %d entries into the vector index", run_metadata["upserted"])
        elif not upsert:
            logger.info("Skipping upsert (upsert=False)")

    if keep_history:
        run_metadata["outputs"] = {k: str(v) for k, v in output_paths.items()}
        run_metadata["duration_seconds"] = time.time() - job_start
        _save_metadata(output_dir, run_timestamp, run_metadata)

    logger.debug(
        "Pipeline run completed: %d raw → %d processed",
        total_raw,
        len(records)
    )

    return total_raw, len(records), output_paths


def _save_metadata(
    output_dir: Path,
    run_timestamp: str,
    metadata: Dict[str, Any]
) -> None:
    """Save pipeline run metadata."""
    meta_path = output_dir / f"run_metadata_{run_timestamp}.json"
    metadata["timestamp"] = run_timestamp

    try:
        with meta_path.open("w", encoding="utf-8") as f:
            json.dump(metadata, f, ensure_ascii=False, indent=2)
        logger.info("✓ Saved: %s", meta_path.name)
    except Exception:
        logger.warning("Failed to save metadata (non-fatal)", exc_info=True)
