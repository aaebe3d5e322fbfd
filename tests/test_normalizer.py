import copy

import pytest
from pydantic import ValidationError

from src.wine_search.models import FlatProduct, NestedProduct
from src.wine_search.normalizer import (
    FLAT_METADATA_KEYS,
    NESTED_METADATA_KEYS,
    get_price_range,
    normalize_flat,
    normalize_nested,
    normalize_product,
    normalize_products,
    parse_raw_product,
)


# --- helpers -----------------------------------------------------------------


NESTED_PRODUCT = {
    "id": "prod-1",
    "title": "Opus One 2018",
    "wine": {
        "varietal": "Cabernet Sauvignon",
        "vintage": 2018,
        "countryCode": "US",
        "region": "Napa Valley",
        "appellation": "Oakville",
        "type": "red",
        "tasteProfile": {
            "body": "full",
            "sweetness": "dry",
            "acidity": "medium",
            "tannin": "high",
            "fruitiness": "dark fruit",
        },
    },
    "variants": [{"price": 45000, "sku": "OPUS-18"}, {"price": 1, "sku": "IGNORED"}],
    "adminStatus": "ACTIVE",
}

FLAT_PRODUCT = {
    "sku": "WN-1002",
    "wine_name": "Cloudy Bay Sauvignon Blanc",
    "type": "white",
    "varietal": "Sauvignon Blanc",
    "vintage": 2022,
    "country": "New Zealand",
    "region": "Marlborough",
    "appellation": "Marlborough",
    "price": 32.5,
    "tasting_profile": {
        "body": "light",
        "sweetness": "dry",
        "acidity": "high",
        "tannin": "low",
        "fruitness": "citrus",
    },
}


def nested(**overrides):
    raw = copy.deepcopy(NESTED_PRODUCT)
    raw.update(overrides)
    return raw


# --- price tiers -------------------------------------------------------------


@pytest.mark.parametrize(
    "price, expected",
    [
        (0, "budget"),
        (99.99, "budget"),
        (100, "mid-range"),
        (499.99, "mid-range"),
        (500, "premium"),
        (999.99, "premium"),
        (1000, "ultra-premium"),
        (25000, "ultra-premium"),
    ],
)
def test_price_range_boundaries(price, expected):
    assert get_price_range(price) == expected


# --- schema detection --------------------------------------------------------


def test_parse_raw_product_detects_flat_schema():
    product = parse_raw_product(FLAT_PRODUCT)
    assert isinstance(product, FlatProduct)
    assert product.schema_variant == "flat"


def test_parse_raw_product_defaults_to_nested_schema():
    product = parse_raw_product(NESTED_PRODUCT)
    assert isinstance(product, NestedProduct)
    assert product.wine.country_code == "US"


def test_parse_raw_product_honours_explicit_tag():
    # Only flat-schema fields that are not markers; the tag decides
    product = parse_raw_product({"schema_variant": "flat", "sku": "X-1", "price": 10})
    assert isinstance(product, FlatProduct)


def test_parse_raw_product_detects_flat_schema_by_top_level_sku():
    raw = {"sku": "WN-9", "type": "red", "varietal": "Merlot", "price": 20}

    product = parse_raw_product(raw)
    record = normalize_product(raw)

    assert isinstance(product, FlatProduct)
    assert record.id == "WN-9"
    assert record.text == "red wine Merlot priced at $20.00"
    assert record.metadata["priceRange"] == "budget"


def test_nested_variant_sku_may_be_numeric():
    record = normalize_product(
        {"id": "p1", "title": "X", "variants": [{"price": 1000, "sku": 12345}]}
    )

    assert record.metadata["sku"] == "12345"
    assert record.metadata["price"] == "10.00"


def test_product_with_only_an_identifier_gets_placeholder_text():
    nested_record = normalize_product({"id": "p1"})
    flat_record = normalize_product({"sku": "WN-9"})

    assert nested_record.text == "Wine product p1"
    assert nested_record.metadata["searchText"] == "wine product p1"
    assert flat_record.text == "Wine product WN-9"


def test_nested_product_without_id_is_rejected():
    raw = nested()
    raw.pop("id")
    with pytest.raises(ValidationError):
        parse_raw_product(raw)


# --- nested schema text ------------------------------------------------------


def test_nested_text_contains_all_fragments_in_order():
    record = normalize_product(NESTED_PRODUCT)

    assert record.id == "prod-1"
    assert record.text == (
        "Opus One 2018. Varietal: Cabernet Sauvignon. Vintage: 2018. "
        "Country: US. Region: Napa Valley. Appellation: Oakville. "
        "Price: $450.00. Type: red. Status: ACTIVE. Body: full. "
        "Sweetness: dry. Acidity: medium. Tannin: high. Fruitiness: dark fruit"
    )


def test_nested_missing_vintage_leaves_no_stray_separator():
    raw = nested()
    raw["wine"]["vintage"] = None

    text = normalize_product(raw).text

    assert "Vintage" not in text
    assert "Varietal: Cabernet Sauvignon. Country: US" in text
    assert ". . " not in text
    assert not text.endswith(". ")


def test_nested_without_wine_or_variants_keeps_title_and_status():
    record = normalize_product({"id": 7, "title": "Mystery Bottle", "adminStatus": "DRAFT"})

    assert record.id == "7"
    assert record.text == "Mystery Bottle. Status: DRAFT"
    assert record.metadata["price"] == ""
    assert record.metadata["priceRange"] == ""
    assert record.metadata["regionCountry"] == ""


def test_nested_blank_strings_are_treated_as_absent():
    raw = nested(title="   ")
    raw["wine"]["region"] = ""

    record = normalize_product(raw)

    assert record.text.startswith("Varietal: Cabernet Sauvignon")
    assert "Region" not in record.text
    assert record.metadata["title"] == ""
    assert record.metadata["regionCountry"] == "US"


# --- nested schema metadata --------------------------------------------------


def test_nested_metadata_converts_cents_and_coerces_strings():
    record = normalize_product(NESTED_PRODUCT)
    meta = record.metadata

    assert set(meta) == set(NESTED_METADATA_KEYS)
    assert all(isinstance(v, str) for v in meta.values())
    assert meta["price"] == "450.00"
    assert meta["priceRange"] == "mid-range"
    assert meta["vintage"] == "2018"
    assert meta["sku"] == "OPUS-18"
    assert meta["country"] == "US"
    assert meta["regionCountry"] == "Napa Valley, US"
    assert meta["searchText"] == record.text.lower()


def test_nested_price_tier_uses_major_units():
    raw = nested(variants=[{"price": 9999, "sku": "A"}])
    assert normalize_product(raw).metadata["priceRange"] == "budget"

    raw = nested(variants=[{"price": 10000, "sku": "A"}])
    assert normalize_product(raw).metadata["priceRange"] == "mid-range"


def test_nested_null_facet_yields_empty_string():
    raw = nested()
    raw["wine"]["tasteProfile"]["tannin"] = None

    record = normalize_product(raw)

    assert "tannin" in record.metadata
    assert record.metadata["tannin"] == ""
    assert "Tannin" not in record.text
    assert record.text.endswith("Acidity: medium. Fruitiness: dark fruit")


def test_nested_numeric_facets_become_strings():
    raw = nested()
    raw["wine"]["tasteProfile"] = {"body": 4, "sweetness": 1.5}

    record = normalize_product(raw)

    assert record.metadata["body"] == "4"
    assert record.metadata["sweetness"] == "1.5"
    assert record.metadata["fruitiness"] == ""
    assert "Body: 4. Sweetness: 1.5" in record.text


# --- flat schema -------------------------------------------------------------


def test_flat_text_and_metadata():
    record = normalize_product(FLAT_PRODUCT)

    assert record.id == "WN-1002"
    assert record.text == (
        "Cloudy Bay Sauvignon Blanc white wine Sauvignon Blanc 2022 vintage "
        "from New Zealand Marlborough region Marlborough appellation "
        "priced at $32.50 light body dry sweetness high acidity low tannin "
        "citrus fruitiness"
    )

    meta = record.metadata
    assert set(meta) == set(FLAT_METADATA_KEYS)
    assert all(isinstance(v, str) for v in meta.values())
    assert meta["price"] == "32.50"
    assert meta["priceRange"] == "budget"
    assert meta["fruitiness"] == "citrus"
    assert meta["varietalType"] == "Sauvignon Blanc white wine"


def test_flat_missing_fields_are_skipped_not_rendered():
    raw = copy.deepcopy(FLAT_PRODUCT)
    raw.pop("vintage")
    raw.pop("region")
    raw["tasting_profile"].pop("tannin")

    record = normalize_product(raw)

    assert "None" not in record.text
    assert "null" not in record.text
    assert "vintage" not in record.text
    assert "  " not in record.text
    assert record.metadata["vintage"] == ""
    assert record.metadata["tannin"] == ""


def test_flat_price_is_not_divided():
    raw = dict(FLAT_PRODUCT, price=1050.0)
    record = normalize_product(raw)

    assert record.metadata["price"] == "1050.00"
    assert record.metadata["priceRange"] == "ultra-premium"


def test_normalize_accepts_models_directly():
    assert normalize_flat(FlatProduct.model_validate(FLAT_PRODUCT)).id == "WN-1002"
    assert normalize_nested(NestedProduct.model_validate(NESTED_PRODUCT)).id == "prod-1"


# --- batch -------------------------------------------------------------------


def test_normalize_products_is_one_to_one_and_ordered():
    raws = [nested(id="a"), FLAT_PRODUCT, nested(id="c")]

    records = normalize_products(raws)

    assert [r.id for r in records] == ["a", "WN-1002", "c"]


def test_normalize_is_deterministic_and_does_not_mutate_input():
    raw = nested()
    snapshot = copy.deepcopy(raw)

    first = normalize_product(raw)
    second = normalize_product(raw)

    assert first == second
    assert raw == snapshot
