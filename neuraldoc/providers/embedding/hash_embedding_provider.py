"""Deterministic hash-based embedding provider.

Implements :class:`IEmbeddingProvider` without any model: component ``i`` of
a vector is a 32-bit polynomial rolling hash (``h = h * 31 + code_unit``,
wrapping as a signed 32-bit integer) of the string ``text + str(i)``,
mapped into ``[0, 1)`` as ``(h mod 1000) / 1000``.

The hash runs over UTF-16 code units so vectors are stable for any text,
including characters outside the Basic Multilingual Plane.  The prefix hash
of ``text`` is computed once and extended with the digits of each index,
which yields the same values as rehashing ``text + str(i)`` from scratch.

Vectors carry no semantics: identical text gives identical vectors and
similar text does not give similar vectors.
"""

from __future__ import annotations

import structlog

from neuraldoc.interfaces.embedding_provider import IEmbeddingProvider
from neuraldoc.utils.errors import VectorizationError

logger = structlog.get_logger(logger_name=__name__)

_MASK_32 = 0xFFFFFFFF
_SIGN_BIT = 0x80000000
_BUCKETS = 1000


def _extend_hash(h: int, units: list[int]) -> int:
    for unit in units:
        h = (h * 31 + unit) & _MASK_32
    return h


def _utf16_units(text: str) -> list[int]:
    data = text.encode("utf-16-le", errors="surrogatepass")
    return [int.from_bytes(data[k : k + 2], "little") for k in range(0, len(data), 2)]


def _to_signed(h: int) -> int:
    return h - (1 << 32) if h & _SIGN_BIT else h


class HashEmbeddingProvider(IEmbeddingProvider):
    """Deterministic placeholder vectorizer with configurable dimension."""

    def __init__(self, dimension: int = 1536) -> None:
        if dimension < 1:
            raise ValueError("dimension must be >= 1")
        self._dimension = dimension

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Vectorize each text in order."""
        return [self.vectorize(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        """Vectorize a single text string."""
        return self.vectorize(text)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"hash-{self._dimension}"

    def is_available(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Hashing
    # ------------------------------------------------------------------

    def vectorize(self, text: str) -> list[float]:
        """Synchronous core of :meth:`embed_single`.

        Raises
        ------
        VectorizationError
            If *text* is not a string.
        """
        if not isinstance(text, str):
            raise VectorizationError(
                message=f"Cannot vectorize {type(text).__name__}; expected str",
                provider_name=self.get_provider_name(),
            )

        prefix = _extend_hash(0, _utf16_units(text))
        vector: list[float] = []
        for index in range(self._dimension):
            h = _extend_hash(prefix, [ord(digit) for digit in str(index)])
            # Python's % floors, keeping the result in [0, 1000).
            vector.append((_to_signed(h) % _BUCKETS) / _BUCKETS)
        return vector
