"""Product Normalization Module

Turns raw catalog products into NormalizedRecord objects: one dense,
natural-language text for embedding plus a flat string-valued metadata
mapping for post-filtering in the vector index.

Key responsibilities:
  - Detect which raw schema a product uses (nested remote vs flat static)
  - Synthesize text fragments in a fixed order, skipping absent fields
  - Convert prices to major currency units and bucket them into tiers
  - Coerce every metadata value to a string ("" when absent)

Everything here is pure: no I/O, deterministic for the same input.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from .models import (
    FlatProduct,
    NestedProduct,
    NormalizedRecord,
    RawProduct,
)

logger = logging.getLogger(__name__)

NESTED_SEPARATOR = ". "
FLAT_SEPARATOR = " "

# Top-level keys only the flat (static catalog) schema uses. Nested
# products keep their sku inside `variants`.
FLAT_SCHEMA_MARKERS = frozenset({"sku", "wine_name", "tasting_profile"})

# Text for a product with no describable fields; the embedding API
# rejects empty inputs
EMPTY_TEXT_TEMPLATE = "Wine product {}"

TASTE_FACETS = ("body", "sweetness", "acidity", "tannin", "fruitiness")

NESTED_METADATA_KEYS = (
    "title", "varietal", "vintage", "country", "region", "appellation",
    "type", "status", "price", "sku", *TASTE_FACETS,
    "searchText", "priceRange", "regionCountry",
)

FLAT_METADATA_KEYS = (
    "title", "sku", "type", "varietal", "vintage", "country", "region",
    "appellation", "price", *TASTE_FACETS,
    "searchText", "priceRange", "varietalType",
)


# ============================================================================
# Helpers
# ============================================================================

def _present(value: Any) -> bool:
    """True for any value that should contribute text (None and blanks don't)."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _as_str(value: Any) -> str:
    """Metadata coercion: absent values become "", everything else str()."""
    if not _present(value):
        return ""
    return str(value).strip()


def _join_present(fragments: Iterable[Optional[str]], separator: str) -> str:
    return separator.join(f for f in fragments if f)


def _fragment(template: str, value: Any) -> Optional[str]:
    if not _present(value):
        return None
    return template.format(value if not isinstance(value, str) else value.strip())


def _text_or_placeholder(text: str, product_id: Any) -> str:
    if text:
        return text
    logger.warning("Product %s has no describable fields; using placeholder text", product_id)
    return EMPTY_TEXT_TEMPLATE.format(product_id)


def _format_price(price: Optional[float]) -> str:
    return "" if price is None else f"{price:.2f}"


def get_price_range(price: float) -> str:
    """Bucket a price in major currency units into a searchable tier."""
    if price < 100:
        return "budget"
    elif price < 500:
        return "mid-range"
    elif price < 1000:
        return "premium"
    return "ultra-premium"


def cents_to_major(cents: Optional[int]) -> Optional[float]:
    if cents is None:
        return None
    return cents / 100


# ============================================================================
# Schema detection
# ============================================================================

def parse_raw_product(raw: Dict[str, Any]) -> RawProduct:
    """Validate a raw dict into the matching schema variant.

    An explicit `schema_variant` wins; otherwise a product with a
    top-level `sku` or any other flat-only key is treated as flat, and
    everything else as nested.

    Raises:
        pydantic.ValidationError: If the identifier field is missing
    """
    variant = raw.get("schema_variant")
    if variant is None:
        variant = "flat" if FLAT_SCHEMA_MARKERS.intersection(raw) else "nested"

    if variant == "flat":
        return FlatProduct.model_validate(raw)
    return NestedProduct.model_validate(raw)


# ============================================================================
# Nested (remote) schema
# ============================================================================

def normalize_nested(product: NestedProduct) -> NormalizedRecord:
    """Build the record for a nested-schema product.

    Text fragments follow a fixed order (title, varietal, vintage,
    country, region, appellation, price, type, status, then the taste
    facets) and are joined with ". ". Absent fields are skipped entirely;
    a product with nothing to describe gets "Wine product <id>".
    Variant prices are in cents and are converted before tiering.
    """
    wine = product.wine
    taste = wine.taste_profile if wine else None
    variant = product.variants[0] if product.variants else None

    price = cents_to_major(variant.price) if variant else None
    sku = variant.sku if variant else None

    varietal = wine.varietal if wine else None
    vintage = wine.vintage if wine else None
    country = wine.country_code if wine else None
    region = wine.region if wine else None
    appellation = wine.appellation if wine else None
    wine_type = wine.type if wine else None

    facets = {
        name: getattr(taste, name) if taste else None for name in TASTE_FACETS
    }

    fragments = [
        _fragment("{}", product.title),
        _fragment("Varietal: {}", varietal),
        _fragment("Vintage: {}", vintage),
        _fragment("Country: {}", country),
        _fragment("Region: {}", region),
        _fragment("Appellation: {}", appellation),
        f"Price: ${price:.2f}" if price is not None else None,
        _fragment("Type: {}", wine_type),
        _fragment("Status: {}", product.admin_status),
    ]
    fragments.extend(
        _fragment(name.capitalize() + ": {}", facets[name]) for name in TASTE_FACETS
    )
    text = _text_or_placeholder(_join_present(fragments, NESTED_SEPARATOR), product.id)

    metadata = {
        "title": _as_str(product.title),
        "varietal": _as_str(varietal),
        "vintage": _as_str(vintage),
        "country": _as_str(country),
        "region": _as_str(region),
        "appellation": _as_str(appellation),
        "type": _as_str(wine_type),
        "status": _as_str(product.admin_status),
        "price": _format_price(price),
        "sku": _as_str(sku),
        **{name: _as_str(value) for name, value in facets.items()},
        "searchText": text.lower(),
        "priceRange": get_price_range(price) if price is not None else "",
        "regionCountry": _join_present(
            [_as_str(region), _as_str(country)], ", "
        ),
    }

    return NormalizedRecord(id=str(product.id), text=text, metadata=metadata)


# ============================================================================
# Flat (static) schema
# ============================================================================

def normalize_flat(product: FlatProduct) -> NormalizedRecord:
    """Build the record for a flat-schema product.

    Uses the same presence-checked policy as the nested schema: a missing
    field contributes nothing rather than a literal "None". Fragments are
    joined with a single space. Prices are already in major units.
    """
    taste = product.tasting_profile
    facets = {
        "body": taste.body if taste else None,
        "sweetness": taste.sweetness if taste else None,
        "acidity": taste.acidity if taste else None,
        "tannin": taste.tannin if taste else None,
        "fruitiness": taste.fruitness if taste else None,
    }

    fragments = [
        _fragment("{}", product.wine_name),
        _fragment("{} wine", product.type),
        _fragment("{}", product.varietal),
        _fragment("{} vintage", product.vintage),
        _fragment("from {}", product.country),
        _fragment("{} region", product.region),
        _fragment("{} appellation", product.appellation),
        f"priced at ${product.price:.2f}" if product.price is not None else None,
    ]
    fragments.extend(
        _fragment("{} " + name, facets[name]) for name in TASTE_FACETS
    )
    text = _text_or_placeholder(_join_present(fragments, FLAT_SEPARATOR), product.sku)

    varietal_type = _join_present(
        [_as_str(product.varietal), _as_str(product.type)], " "
    )

    metadata = {
        "title": _as_str(product.wine_name),
        "sku": _as_str(product.sku),
        "type": _as_str(product.type),
        "varietal": _as_str(product.varietal),
        "vintage": _as_str(product.vintage),
        "country": _as_str(product.country),
        "region": _as_str(product.region),
        "appellation": _as_str(product.appellation),
        "price": _format_price(product.price),
        **{name: _as_str(value) for name, value in facets.items()},
        "searchText": text.lower(),
        "priceRange": (
            get_price_range(product.price) if product.price is not None else ""
        ),
        "varietalType": f"{varietal_type} wine" if varietal_type else "",
    }

    return NormalizedRecord(id=str(product.sku), text=text, metadata=metadata)


# ============================================================================
# Dispatch
# ============================================================================

def normalize_product(raw: Union[RawProduct, Dict[str, Any]]) -> NormalizedRecord:
    """Normalize one raw product of either schema into a NormalizedRecord."""
    product = parse_raw_product(raw) if isinstance(raw, dict) else raw

    if product.schema_variant == "nested":
        return normalize_nested(product)
    if product.schema_variant == "flat":
        return normalize_flat(product)
    raise TypeError(f"Unsupported product schema: {product.schema_variant!r}")


def normalize_products(
    raws: Iterable[Union[RawProduct, Dict[str, Any]]],
) -> List[NormalizedRecord]:
    """Normalize products one-to-one, preserving input order."""
    records = [normalize_product(raw) for raw in raws]
    logger.debug("Normalized %d products", len(records))
    return records
