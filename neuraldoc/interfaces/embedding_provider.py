"""Abstract base class for text vectorizers.

Defines the contract for turning text into fixed-dimension vectors.  The
shipped implementation is a deterministic hash vectorizer; a learned
embedding model can be dropped in behind the same interface without
touching ingestion or chat code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   HashEmbeddingProvider - deterministic 32-bit rolling hash, no model needed
# Located in: neuraldoc/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text vectorizers used by ingestion and retrieval.

    Vectors produced by one provider instance are compared by
    :func:`~neuraldoc.services.similarity.cosine_similarity`, so every
    vector must have length :meth:`get_dimension`.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate vectors for a batch of texts.

        Parameters
        ----------
        texts:
            Text strings to vectorize.  Empty strings are valid input.

        Returns
        -------
        list[list[float]]
            Vectors corresponding positionally to *texts*.

        Raises
        ------
        neuraldoc.utils.errors.VectorizationError
            If a text cannot be vectorized.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate a vector for a single text (e.g. a chunk or a query).

        Implementations must be pure: identical input always yields an
        identical vector, across calls and processes.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the vector length; constant for the provider's lifetime."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"hash-1536"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider can produce vectors right now."""
