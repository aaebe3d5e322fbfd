"""Data Models Module

Defines Pydantic models for products at different stages of the
pipeline: the two raw catalog schemas, the normalized record used for
embedding, and the vector-index entry written on upsert.

The two raw schemas form a tagged union (RawProduct). Each model carries
a literal `schema_variant` so the normalizer can dispatch on the tag
instead of probing for optional fields.
"""

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Taste facets arrive as labels ("full") or scores (4) depending on the feed
Facet = Optional[Union[str, int, float]]


class TasteProfile(BaseModel):
    """Nested-schema taste profile. Every facet is independently nullable."""
    model_config = ConfigDict(extra="ignore")

    body: Facet = None
    sweetness: Facet = None
    acidity: Facet = None
    tannin: Facet = None
    fruitiness: Facet = None


class WineDetails(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    varietal: Optional[str] = None
    vintage: Optional[int] = None
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    region: Optional[str] = None
    appellation: Optional[str] = None
    type: Optional[str] = None
    taste_profile: Optional[TasteProfile] = Field(default=None, alias="tasteProfile")


class ProductVariant(BaseModel):
    """A purchasable variant. Price is in minor currency units (cents)."""
    model_config = ConfigDict(extra="ignore")

    price: Optional[int] = None
    sku: Optional[Union[str, int]] = None


class NestedProduct(BaseModel):
    """Product as returned by the remote catalog tool call."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    schema_variant: Literal["nested"] = "nested"
    id: Union[str, int]
    title: Optional[str] = None
    wine: Optional[WineDetails] = None
    variants: Optional[List[ProductVariant]] = None
    admin_status: Optional[str] = Field(default=None, alias="adminStatus")


class TastingProfile(BaseModel):
    """Flat-schema tasting profile. Note the `fruitness` spelling."""
    model_config = ConfigDict(extra="ignore")

    body: Facet = None
    sweetness: Facet = None
    acidity: Facet = None
    tannin: Facet = None
    fruitness: Facet = None


class FlatProduct(BaseModel):
    """Product from the static catalog. Price is in major currency units."""
    model_config = ConfigDict(extra="ignore")

    schema_variant: Literal["flat"] = "flat"
    sku: Union[str, int]
    wine_name: Optional[str] = None
    type: Optional[str] = None
    varietal: Optional[str] = None
    vintage: Optional[int] = None
    country: Optional[str] = None
    region: Optional[str] = None
    appellation: Optional[str] = None
    price: Optional[float] = None
    tasting_profile: Optional[TastingProfile] = None


RawProduct = Union[NestedProduct, FlatProduct]


class NormalizedRecord(BaseModel):
    """Canonical intermediate form: one searchable text plus flat metadata.

    Every metadata value is a string so the index can filter on it.
    """
    id: str
    text: str
    metadata: Dict[str, str]


class VectorEntry(BaseModel):
    """Vector-index ready entry, keyed by the record id."""
    id: str
    vector: List[float]
    metadata: Dict[str, str]
