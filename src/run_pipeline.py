"""Command-line entry point for wine catalog ingestion.

Reads raw products from a JSON export, the remote catalog or the bundled
static catalog, then normalizes, embeds and upserts them into the vector
index. Intermediate files land in the output directory.

Usage:
    python -m src.run_pipeline --source file --input data/products.json
    python -m src.run_pipeline --source static --skip-upsert
"""

import argparse
import logging
import time
from pathlib import Path

from src.wine_search.pipeline import SOURCES, run_pipeline

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# SDK and HTTP loggers that flood INFO during embedding and upsert calls
QUIET_LOGGERS = ("httpx", "openai", "urllib3", "pinecone")


def configure_logging(log_file: Path = Path("logs/pipeline.log")) -> None:
    """Send INFO to the console and DEBUG to `log_file`."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)

    to_file = logging.FileHandler(log_file, encoding="utf-8")
    to_file.setLevel(logging.DEBUG)
    to_file.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    # Repeated main() calls in one process must not stack handlers
    root.handlers.clear()
    root.addHandler(console)
    root.addHandler(to_file)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Normalize, embed and index wine catalog products"
    )
    parser.add_argument("--source", choices=SOURCES, default="file",
                        help="Catalog to ingest (default: file)")
    parser.add_argument("--input", type=Path, default=Path("data/products.json"),
                        help="Product export to read with --source file")
    parser.add_argument("--output-dir", type=Path, default=Path("output"),
                        help="Where normalized records and vector entries are written")
    parser.add_argument("--limit", type=int, default=None,
                        help="Ingest only the first N catalog products")
    parser.add_argument("--dry-run", action="store_true",
                        help="Load and normalize, then stop without writing or calling services")
    parser.add_argument("--skip-embeddings", action="store_true",
                        help="Stop after writing normalized records")
    parser.add_argument("--skip-upsert", action="store_true",
                        help="Write vector entries but leave the index untouched")
    parser.add_argument("--no-history", action="store_true",
                        help="Write fixed file names instead of timestamped ones")
    return parser


def main(argv=None) -> int:
    """Run one ingestion; exit code 0 on success, 1 if any stage failed."""
    configure_logging()
    logger = logging.getLogger(__name__)
    args = build_parser().parse_args(argv)

    source_label = f"file {args.input}" if args.source == "file" else args.source
    logger.info("=== Starting wine search ingestion pipeline ===")
    logger.info(
        "Catalog: %s | limit: %s | output: %s",
        source_label, args.limit or "all", args.output_dir,
    )
    logger.info(
        "Dry run: %s | embeddings: %s | upsert: %s | history: %s",
        args.dry_run,
        "skip" if args.skip_embeddings else "on",
        "skip" if args.skip_upsert else "on",
        not args.no_history,
    )

    started = time.time()
    try:
        total_raw, processed, output_paths = run_pipeline(
            source=args.source,
            input_path=args.input,
            output_dir=args.output_dir,
            limit=args.limit,
            dry_run=args.dry_run,
            skip_embeddings=args.skip_embeddings,
            upsert=not args.skip_upsert,
            keep_history=not args.no_history,
        )
    except Exception:
        logger.exception("Ingestion from %s failed", source_label)
        return 1

    logger.info(
        "Pipeline completed successfully in %.2fs: %d of %d catalog products ingested",
        time.time() - started, processed, total_raw,
    )
    for kind, path in output_paths.items():
        logger.info("  %s -> %s", kind, path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
