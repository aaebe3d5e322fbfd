"""Embeddings Generation Module

Generates vector embeddings for product text using OpenAI's embedding API.
The whole batch goes out in a single request and the response vectors
come back in input order; any API failure fails the batch.

Key features:
  - One API round trip per batch, empty batches never reach the API
  - Text truncation to fit the embedding model context window
  - Dimension validation across the returned vectors
  - Fake embeddings mode for local runs without API calls

Environment variables:
  OPENAI_API_KEY: API key for OpenAI (read by the client on first use)
  EMBEDDING_MODEL: Embedding model name (default: text-embedding-3-small)
  USE_FAKE_EMBEDDINGS: Set to '1' to use fake vectors for testing
  FAKE_EMBEDDING_DIM: Dimension of fake vectors (default: 8)
  MAX_EMBEDDING_CHARS: Maximum characters per text (default: 8000)
"""

from typing import List, Optional
import os
import logging

from openai import OpenAI

logger = logging.getLogger(__name__)

# Created lazily so importing this module never needs credentials
client: Optional[OpenAI] = None

USE_FAKE_EMBEDDINGS = os.getenv("USE_FAKE_EMBEDDINGS", "0") == "1"
FAKE_EMBEDDING_DIM = int(os.getenv("FAKE_EMBEDDING_DIM", "8"))

EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")

# ~4 chars/token keeps 8000 chars well under the 8191 token limit
MAX_EMBEDDING_CHARS = int(os.getenv("MAX_EMBEDDING_CHARS", "8000"))


def get_client() -> OpenAI:
    global client
    if client is None:
        client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
    return client


def _truncate_for_embedding(text: str, max_chars: int = MAX_EMBEDDING_CHARS) -> str:
    """
    Truncate text to fit embedding model's context window.

    Cuts at max_chars, then backtracks to the last space if that space
    falls in the final 20% of the kept text, so words are not split.

    Args:
        text: Input text to truncate
        max_chars: Maximum characters to keep

    Returns:
        Truncated text, guaranteed to be <= max_chars characters
    """
    if not text:
        return ""

    if len(text) <= max_chars:
        return text

    original_len = len(text)
    truncated = text[:max_chars]

    last_space = truncated.rfind(" ")
    if last_space > int(max_chars * 0.8):
        truncated = truncated[:last_space]

    logger.info(
        "Truncated text for embedding: %d -> %d chars (%.1f%% reduction)",
        original_len,
        len(truncated),
        100 * (original_len - len(truncated)) / original_len,
    )

    return truncated


def embed_texts(
    texts: List[str],
    model: str = EMBEDDING_MODEL,
    max_chars: int = MAX_EMBEDDING_CHARS,
) -> List[List[float]]:
    """
    Generate embeddings for texts using OpenAI's API.

    The whole list is sent in one request. Output vector i belongs to
    input text i.

    Args:
        texts: List of text strings to embed
        model: OpenAI embedding model (default: text-embedding-3-small)
        max_chars: Character limit per text (default: 8000)

    Returns:
        List of embedding vectors (each a list of floats), same length
        and order as `texts`

    Raises:
        ValueError: If the response size or embedding dimensions are inconsistent
        openai.OpenAIError: On OpenAI API errors
    """
    if not texts:
        logger.debug("embed_texts called with empty list; returning []")
        return []

    if USE_FAKE_EMBEDDINGS:
        logger.warning(
            "USE_FAKE_EMBEDDINGS=1 set; returning fake zero vectors instead of "
            "calling OpenAI. Query results will not be meaningful."
        )
        return [[0.0] * FAKE_EMBEDDING_DIM for _ in texts]

    processed_texts = [
        _truncate_for_embedding(text, max_chars) for text in texts
    ]

    try:
        logger.debug(
            "Calling OpenAI embeddings API: model=%s, size=%d",
            model, len(processed_texts)
        )

        response = get_client().embeddings.create(
            model=model,
            input=processed_texts,
        )

        vectors = [list(item.embedding) for item in response.data]

        if len(vectors) != len(texts):
            raise ValueError(
                f"Embedding API returned {len(vectors)} vectors "
                f"for {len(texts)} texts"
            )

        expected_dim = len(vectors[0])
        for idx, vec in enumerate(vectors):
            if len(vec) != expected_dim:
                raise ValueError(
                    f"Inconsistent embedding dimension at index {idx}: "
                    f"expected {expected_dim}, got {len(vec)}"
                )

        logger.info(
            "Successfully generated %d embeddings (dim=%d)",
            len(vectors), expected_dim
        )

        return vectors

    except Exception:
        logger.exception(
            "Failed to generate embeddings for %d texts", len(texts)
        )
        raise
