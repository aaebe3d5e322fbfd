# src/wine_search/api.py

import logging
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from . import pipeline
from .catalog import get_catalog_source
from .normalizer import normalize_products
from .vector_index import get_vector_index

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "/products": "Fetch the raw product catalog",
    "/text-data": "Normalized search text and metadata for every product",
    "/insert": "Embed every product and upsert it into the vector index",
    "/query?q=<text>&topK=<n>": "Semantic search over indexed products",
}


def _product_list(payload):
    """Products from a catalog payload ({totalItems, products} or a raw list)."""
    if isinstance(payload, dict):
        return payload.get("products", [])
    return payload


# ---------------------- Factory ----------------------
def create_app(source=None, index=None) -> FastAPI:
    """
    Factory to create the FastAPI app.
    Allows injecting a catalog source and vector index for testing;
    otherwise both come from configuration on first use.
    """
    app = FastAPI(title="Wine Search API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    state = {"source": source, "index": index}

    def get_source():
        if state["source"] is None:
            state["source"] = get_catalog_source(config.CATALOG_SOURCE)
        return state["source"]

    def get_index():
        if state["index"] is None:
            state["index"] = get_vector_index()
        return state["index"]

    # ---------- Raw catalog ----------
    @app.get("/products")
    def products():
        return get_source().fetch()

    # ---------- Normalized records ----------
    @app.get("/text-data")
    def text_data():
        records = normalize_products(_product_list(get_source().fetch()))
        return [record.model_dump() for record in records]

    # ---------- Ingestion ----------
    @app.api_route("/insert", methods=["GET", "POST"])
    def insert():
        try:
            raw_products = _product_list(get_source().fetch())
            return pipeline.insert_products(raw_products, get_index())
        except Exception as e:
            logger.exception("Insert failed")
            return JSONResponse(status_code=500, content={"error": str(e)})

    # ---------- Semantic search ----------
    @app.get("/query")
    def query(
        q: Optional[str] = None,
        top_k: Optional[int] = Query(default=None, alias="topK", ge=1),
    ):
        try:
            return pipeline.query_index(get_index(), query=q, top_k=top_k)
        except Exception as e:
            logger.exception("Query failed")
            return JSONResponse(status_code=500, content={"error": str(e)})

    # ---------- Endpoint listing ----------
    @app.api_route("/{path:path}", methods=["GET", "POST"])
    def endpoints(path: str):
        return {"message": "Wine search service", "endpoints": ENDPOINTS}

    return app

# ---------------------- Uvicorn entry ----------------------
# Expose a top-level 'app' for Uvicorn
app = create_app()
