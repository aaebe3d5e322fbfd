"""Service Configuration

Environment-backed settings for the catalog source, vector index and
query defaults. Values are read once at import time from the process
environment (and a local .env file, if present).

Environment variables:
  MCP_SERVER_URL: JSON-RPC endpoint of the remote product catalog
  MCP_TENANT_ID: Tenant passed to the catalog tool call (default: development)
  MCP_PAGE / MCP_LIMIT: Page number and page size (default: 1 / 50)
  MCP_TIMEOUT: Catalog HTTP timeout in seconds (default: 30)
  CATALOG_SOURCE: 'remote' or 'static' (default: remote)
  VECTOR_BACKEND: 'pinecone' or 'memory' (default: pinecone)
  PINECONE_API_KEY / PINECONE_INDEX_NAME / PINECONE_NAMESPACE
  DEFAULT_QUERY / DEFAULT_TOP_K: Query fallbacks (default: 'red wine' / 5)
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

MCP_SERVER_URL = os.getenv("MCP_SERVER_URL", "http://localhost:3000/mcp")
MCP_TENANT_ID = os.getenv("MCP_TENANT_ID", "development")
MCP_PAGE = int(os.getenv("MCP_PAGE", "1"))
MCP_LIMIT = int(os.getenv("MCP_LIMIT", "50"))
MCP_TIMEOUT = float(os.getenv("MCP_TIMEOUT", "30"))

CATALOG_SOURCE = os.getenv("CATALOG_SOURCE", "remote").lower()

VECTOR_BACKEND = os.getenv("VECTOR_BACKEND", "pinecone").lower()
PINECONE_API_KEY = os.getenv("PINECONE_API_KEY")
PINECONE_INDEX_NAME = os.getenv("PINECONE_INDEX_NAME", "wine-products")
PINECONE_NAMESPACE = os.getenv("PINECONE_NAMESPACE", "default")

DEFAULT_QUERY = os.getenv("DEFAULT_QUERY", "red wine")
DEFAULT_TOP_K = int(os.getenv("DEFAULT_TOP_K", "5"))


class CatalogSourceConfig(BaseModel):
    """Connection settings for the remote product catalog.

    Passed explicitly into RemoteCatalogSource; nothing reads these
    values from module state after construction.
    """
    server_url: str
    tenant_id: str = "development"
    page: int = 1
    limit: int = 50
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "CatalogSourceConfig":
        return cls(
            server_url=MCP_SERVER_URL,
            tenant_id=MCP_TENANT_ID,
            page=MCP_PAGE,
            limit=MCP_LIMIT,
            timeout=MCP_TIMEOUT,
        )
