"""Embedding provider implementations.

    HashEmbeddingProvider - deterministic 32-bit rolling-hash vectors.
      No model, no network; the default for every deployment.
"""

from neuraldoc.providers.embedding.hash_embedding_provider import HashEmbeddingProvider

__all__ = ["HashEmbeddingProvider"]
