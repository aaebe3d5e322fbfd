#!/usr/bin/env python
"""Output Validation Script

Validates that a generated vector entries JSON file is ready for upsert:
  - Required fields present and correctly typed (id, vector, metadata)
  - Vector dimensionality matches expected size and values are finite
  - Every metadata value is a string (the index filters on strings)
  - Search fields (title, searchText, priceRange) present, as warnings

Usage:
    python -m src.wine_search.scripts.validate_output \\
        --path output/vector_entries.json \\
        --expected-dim 1536

Exits with code 0 on success, 1 on validation failure, 2 on argument error.
"""

import argparse
import json
import math
from pathlib import Path
from typing import Any, Dict, List, Tuple, Optional

EXPECTED_METADATA_KEYS = ("title", "searchText", "priceRange")


def load_entries(path: Path) -> List[Dict[str, Any]]:
    """Load vector entries from a JSON file.

    Supports:
      - a JSON array of objects
      - newline-delimited JSON (JSONL)
    """
    with path.open("r", encoding="utf-8") as f:
        content = f.read().strip()

    try:
        data = json.loads(content)
        if isinstance(data, list):
            return data
        else:
            raise ValueError("Top-level JSON is not a list of entries.")
    except json.JSONDecodeError:
        pass  # fall through to JSONL

    entries: List[Dict[str, Any]] = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Failed to parse JSON on line {line_no}: {e}"
            ) from e
        if not isinstance(obj, dict):
            raise ValueError(
                f"Line {line_no} JSON is not an object (got {type(obj)})"
            )
        entries.append(obj)

    if not entries:
        raise ValueError("No entries found in file.")

    return entries


def is_finite_number(x: Any) -> bool:
    """Check if value is a finite number (int or float), excluding bools."""
    return (
        isinstance(x, (int, float))
        and not isinstance(x, bool)
        and math.isfinite(x)
    )


def validate_entry(
    entry: Dict[str, Any],
    idx: int,
    expected_dim: Optional[int],
) -> Tuple[List[str], List[str]]:
    """Validate a single vector entry.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    # --- id ---
    entry_id = entry.get("id")
    if entry_id is None:
        errors.append(f"[idx={idx}] missing 'id'")
    elif not isinstance(entry_id, str):
        errors.append(
            f"[idx={idx}] 'id' should be str, got {type(entry_id).__name__}"
        )
    elif not entry_id.strip():
        errors.append(f"[idx={idx}] 'id' is empty")

    # --- vector ---
    vector = entry.get("vector")
    if vector is None:
        errors.append(f"[idx={idx}] missing 'vector'")
    elif not isinstance(vector, list):
        errors.append(
            f"[idx={idx}] 'vector' should be a list, got {type(vector).__name__}"
        )
    else:
        if expected_dim is not None and len(vector) != expected_dim:
            errors.append(
                f"[idx={idx}] vector length {len(vector)} != expected_dim {expected_dim}"
            )
        for j, v in enumerate(vector):
            if not is_finite_number(v):
                errors.append(
                    f"[idx={idx}] vector[{j}] is not a finite number (got {repr(v)})"
                )
                break

    # --- metadata ---
    metadata = entry.get("metadata")
    if metadata is None:
        errors.append(f"[idx={idx}] missing 'metadata'")
        return errors, warnings
    if not isinstance(metadata, dict):
        errors.append(
            f"[idx={idx}] 'metadata' should be an object, got {type(metadata).__name__}"
        )
        return errors, warnings

    for key, value in metadata.items():
        if not isinstance(value, str):
            errors.append(
                f"[idx={idx}] metadata.{key} should be a string, "
                f"got {type(value).__name__}"
            )

    for key in EXPECTED_METADATA_KEYS:
        if not metadata.get(key):
            warnings.append(
                f"[idx={idx}] metadata missing expected field '{key}'"
            )

    return errors, warnings


def main(argv: list[str] | None = None) -> None:
    """Validate a vector entries output file.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Raises:
        SystemExit: With code 0 on success, 1 on validation failure
    """
    parser = argparse.ArgumentParser(
        description="Validate vector entries JSON output."
    )
    parser.add_argument(
        "--path",
        type=str,
        required=True,
        help="Path to vector_entries.json",
    )
    parser.add_argument(
        "--expected-dim",
        type=int,
        default=None,
        help="Expected vector dimensionality (e.g. 1536). "
             "If not provided, dimensionality is not enforced.",
    )
    args = parser.parse_args(argv)

    path = Path(args.path)

    try:
        entries = load_entries(path)
    except Exception as e:
        print(f"FAILED TO LOAD FILE: {e}")
        raise SystemExit(1)

    all_errors: List[str] = []
    all_warnings: List[str] = []
    seen_ids: set = set()

    for idx, entry in enumerate(entries):
        errors, warnings = validate_entry(entry, idx, args.expected_dim)
        all_errors.extend(errors)
        all_warnings.extend(warnings)

        entry_id = entry.get("id")
        if isinstance(entry_id, str):
            if entry_id in seen_ids:
                all_errors.append(f"[idx={idx}] duplicate id {entry_id!r}")
            seen_ids.add(entry_id)

    if all_errors:
        print("VALIDATION FAILED:\n")
        for err in all_errors:
            print(err)
        print(f"\nTotal errors: {len(all_errors)}")
        if all_warnings:
            print(f"Total warnings: {len(all_warnings)}")
        raise SystemExit(1)

    print("VALIDATION PASSED")
    print(f"Total entries: {len(entries)}")
    if all_warnings:
        print("\nWarnings (non-fatal):")
        for w in all_warnings:
            print(w)
        print(f"\nTotal warnings: {len(all_warnings)}")

    raise SystemExit(0)


if __name__ == "__main__":
    main()
