"""
Embedding provider for vector-based product search.

Wraps the Google GenAI embedding API for batch and single-query embedding
with configurable model, dimensions, batch size, and request timeout.
"""

from __future__ import annotations

import os
from typing import Any

import httpx
from google.genai import Client as GenAIClient
from google.genai import errors as genai_errors
from google.genai.types import HttpOptions

from .errors import InvalidInput, ProviderError, ProviderUnavailable


_DEFAULT_MODEL = "gemini-embedding-001"
_DEFAULT_DIM = 1536
_DEFAULT_BATCH_SIZE = 50
_DEFAULT_TIMEOUT_SECONDS = 30.0


class EmbeddingProvider:
    """Generate text embeddings via Google GenAI."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("PRODUCT_SEARCH_EMBEDDING_MODEL", _DEFAULT_MODEL)
        self.dim = dim or int(os.getenv("PRODUCT_SEARCH_EMBEDDING_DIM", str(_DEFAULT_DIM)))
        self.batch_size = batch_size or int(
            os.getenv("PRODUCT_SEARCH_EMBEDDING_BATCH_SIZE", str(_DEFAULT_BATCH_SIZE))
        )
        self.timeout = timeout or float(
            os.getenv("PRODUCT_SEARCH_EMBEDDING_TIMEOUT", str(_DEFAULT_TIMEOUT_SECONDS))
        )

        if client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv("GOOGLE_API_KEY")
            if resolved_key is None:
                raise ValueError(
                    "GOOGLE_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(
                api_key=resolved_key,
                http_options=HttpOptions(timeout=int(self.timeout * 1000)),
            )

    def embed(self, text: str) -> list[float]:
        """Embed a single query text for retrieval.

        Raises ``InvalidInput`` for blank text before any network call,
        ``ProviderUnavailable`` when the service cannot be reached or fails
        server-side, and ``ProviderError`` when the request is rejected or
        the response holds no usable vector.
        """
        if not text or not text.strip():
            raise InvalidInput("Text to embed must not be empty.")
        vectors = self._embed_batch([text], task_type="RETRIEVAL_QUERY")
        return vectors[0]

    def embed_texts(
        self,
        texts: list[str],
        *,
        task_type: str = "RETRIEVAL_DOCUMENT",
    ) -> list[list[float]]:
        """Embed a list of texts in batches.

        Returns a list of embedding vectors in the same order as *texts*.
        """
        for text in texts:
            if not text or not text.strip():
                raise InvalidInput("Texts to embed must not be empty.")

        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            all_embeddings.extend(self._embed_batch(batch, task_type=task_type))
        return all_embeddings

    def _embed_batch(self, batch: list[str], *, task_type: str) -> list[list[float]]:
        try:
            result = self._client.models.embed_content(
                model=self.model,
                contents=batch,
                config={
                    "task_type": task_type,
                    "output_dimensionality": self.dim,
                },
            )
        except genai_errors.ClientError as exc:
            # 4xx: bad key, unknown model or rejected request.
            raise ProviderError(f"Embedding request rejected: {exc}") from exc
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise ProviderUnavailable(f"Embedding request failed: {exc}") from exc

        embeddings = result.embeddings or []
        if len(embeddings) != len(batch):
            raise ProviderError(
                f"Expected {len(batch)} embeddings, received {len(embeddings)}."
            )

        vectors: list[list[float]] = []
        for emb in embeddings:
            values = list(emb.values or [])
            if len(values) != self.dim:
                raise ProviderError(
                    f"Embedding dimension mismatch: expected {self.dim}, got {len(values)}."
                )
            vectors.append([float(v) for v in values])
        return vectors
