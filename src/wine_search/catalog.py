"""Catalog Sources

Suppliers of raw product records for the pipeline:

  - RemoteCatalogSource: JSON-RPC 2.0 `tools/call` against the product
    catalog server (`list-filtered-products`), nested product schema
  - StaticCatalogSource: the bundled flat-schema catalog

Both expose `fetch()` (the raw payload as the source returns it) and
`list_products()` (just the list of raw product dicts).

Remote failures are never turned into empty results: HTTP errors,
error envelopes and malformed payloads all raise CatalogSourceError.
"""

import copy
import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .config import CatalogSourceConfig
from .static_catalog import STATIC_PRODUCTS

logger = logging.getLogger(__name__)

LIST_PRODUCTS_TOOL = "list-filtered-products"


class CatalogSourceError(RuntimeError):
    """The remote catalog could not be reached or returned an unusable reply."""


def _last_event_data(stream: str) -> Optional[str]:
    last: Optional[str] = None
    current: List[str] = []
    # A blank line ends an event; the stream may also end without one
    for line in stream.splitlines() + [""]:
        if not line:
            if current:
                last = "\n".join(current)
                current = []
        elif line.startswith("data:"):
            value = line[len("data:"):]
            current.append(value[1:] if value.startswith(" ") else value)
    return last


def _decode_envelope(response: requests.Response) -> Dict[str, Any]:
    """Decode a JSON-RPC reply sent as plain JSON or as server-sent events.

    For an event stream the envelope is the last event carrying data; its
    `data:` lines are joined with newlines.
    """
    content_type = response.headers.get("Content-Type", "")
    if content_type.startswith("text/event-stream"):
        body = _last_event_data(response.text)
        if body is None:
            raise CatalogSourceError("Event stream response contained no data")
    else:
        body = response.text

    try:
        envelope = json.loads(body)
    except json.JSONDecodeError as e:
        raise CatalogSourceError(f"Invalid JSON-RPC response: {e}") from e

    if not isinstance(envelope, dict):
        raise CatalogSourceError("JSON-RPC response is not an object")
    return envelope


def _extract_products(envelope: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Pull the product list out of `result.content[0].text`."""
    try:
        text = envelope["result"]["content"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise CatalogSourceError(
            "Response is missing result.content[0].text"
        ) from e

    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise CatalogSourceError(f"Product list is not valid JSON: {e}") from e

    products = payload.get("products") if isinstance(payload, dict) else None
    if not isinstance(products, list):
        raise CatalogSourceError("Product list payload has no 'products' array")
    return products


class RemoteCatalogSource:
    """Fetch products from the JSON-RPC catalog server.

    Args:
        config: Server URL, tenant and paging settings
        session: Optional requests.Session (a new one is created otherwise)
    """

    def __init__(
        self,
        config: CatalogSourceConfig,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.session = session or requests.Session()

    def _build_payload(self, page: int) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "method": "tools/call",
            "params": {
                "name": LIST_PRODUCTS_TOOL,
                "arguments": {
                    "tenantId": self.config.tenant_id,
                    "page": str(page),
                    "limit": str(self.config.limit),
                },
            },
            "id": int(time.time() * 1000),
        }

    def fetch_page(self, page: int) -> List[Dict[str, Any]]:
        """Fetch one page of raw products.

        Raises:
            CatalogSourceError: On non-2xx status, an `error` envelope,
                or a malformed result
        """
        logger.debug(
            "Calling %s on %s (tenant=%s, page=%d, limit=%d)",
            LIST_PRODUCTS_TOOL,
            self.config.server_url,
            self.config.tenant_id,
            page,
            self.config.limit,
        )
        try:
            response = self.session.post(
                self.config.server_url,
                json=self._build_payload(page),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json, text/event-stream",
                },
                timeout=self.config.timeout,
            )

            if not response.ok:
                raise CatalogSourceError(
                    f"HTTP {response.status_code}: {response.reason}"
                )

            envelope = _decode_envelope(response)

            error = envelope.get("error")
            if error:
                message = (
                    error.get("message", "unknown error")
                    if isinstance(error, dict) else str(error)
                )
                raise CatalogSourceError(f"MCP Error: {message}")

            products = _extract_products(envelope)
        except requests.RequestException as e:
            logger.exception("Failed to reach product catalog")
            raise CatalogSourceError(f"Catalog request failed: {e}") from e
        except CatalogSourceError:
            logger.exception("Failed to fetch products from catalog")
            raise

        logger.info("Fetched %d products (page %d)", len(products), page)
        return products

    def fetch(self) -> Dict[str, Any]:
        """Fetch the configured page as `{"totalItems", "products"}`."""
        products = self.fetch_page(self.config.page)
        return {"totalItems": len(products), "products": products}

    def fetch_all(self, max_pages: Optional[int] = None) -> Dict[str, Any]:
        """Walk pages from the configured one until a short or empty page."""
        products: List[Dict[str, Any]] = []
        page = self.config.page
        pages_read = 0

        while max_pages is None or pages_read < max_pages:
            batch = self.fetch_page(page)
            products.extend(batch)
            pages_read += 1
            if len(batch) < self.config.limit:
                break
            page += 1

        logger.info("Fetched %d products across %d pages", len(products), pages_read)
        return {"totalItems": len(products), "products": products}

    def list_products(self) -> List[Dict[str, Any]]:
        return self.fetch()["products"]


class StaticCatalogSource:
    """Serve a fixed, in-process list of flat-schema products."""

    def __init__(self, products: Optional[List[Dict[str, Any]]] = None):
        self._products = STATIC_PRODUCTS if products is None else products

    def fetch(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._products)

    def list_products(self) -> List[Dict[str, Any]]:
        return self.fetch()


def get_catalog_source(source: str = "remote"):
    """Build a catalog source by name ('remote' or 'static')."""
    if source == "static":
        return StaticCatalogSource()
    if source == "remote":
        return RemoteCatalogSource(CatalogSourceConfig.from_env())
    raise ValueError(f"Unknown catalog source: {source!r}")
