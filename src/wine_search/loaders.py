"""Data Loader Module

Loads raw product records from JSON files exported from the catalog.
Supports flexible container detection (flat array, 'products' key,
'items' key).
"""

import json
from pathlib import Path
from typing import List, Dict, Any


def load_products_file(path: str | Path) -> List[Dict[str, Any]]:
    """Load raw products from a JSON file.

    Supports flexible input formats:
      - Direct list of products: [{...}, {...}, ...]
      - Wrapped in 'products' key: {"totalItems": 2, "products": [...]}
      - Wrapped in 'items' key: {"items": [...]}

    Args:
        path: File path to JSON file containing raw products

    Returns:
        List of raw product dictionaries

    Raises:
        FileNotFoundError: If file does not exist
        json.JSONDecodeError: If file is not valid JSON
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        return data
    # fall back if wrapped
    return data.get("products") or data.get("items") or []
