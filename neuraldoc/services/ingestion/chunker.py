"""Sentence-aware text chunking.

Splits extracted document text into chunks of at most ``max_size``
characters without ever cutting a sentence in half:

1. **Sentence splitting** -- boundaries are runs of ``.``, ``!`` or ``?``
   followed by whitespace or end of text.  Periods after common
   abbreviations ("Dr.", "etc.") are masked so they do not end a sentence.
   Each sentence keeps its own terminator.

2. **Greedy packing** -- sentences are joined with single spaces into a
   running buffer.  When the next sentence would push the buffer past
   ``max_size`` and the buffer is non-empty, the buffer is emitted and a
   new one starts with that sentence.  A sentence longer than ``max_size``
   on its own becomes one oversized chunk rather than being cut.

Degenerate input (empty or whitespace-only) still produces exactly one
chunk, ``text[:max_size]``, so every processed document has at least one.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

# Common abbreviations that should NOT trigger a sentence split.
_ABBREVIATIONS = frozenset(
    {
        "Dr",
        "Mr",
        "Mrs",
        "Ms",
        "Prof",
        "Jr",
        "Sr",
        "St",
        "Ave",
        "Blvd",
        "Vol",
        "No",
        "vs",
        "etc",
        "approx",
        "dept",
        "est",
        "govt",
        "inc",
        "ltd",
        "co",
        "ft",
        "e.g",
        "i.e",
    }
)

_ABBREVIATION_RE = re.compile(
    r"\b(" + "|".join(re.escape(a) for a in sorted(_ABBREVIATIONS, key=len, reverse=True)) + r")\.",
)
_SENTENCE_END_RE = re.compile(r"[.!?]+(?:\s|$)")

DEFAULT_MAX_SIZE = 6000


class TextChunker:
    """Splits text into sentence-aligned chunks.

    Parameters
    ----------
    max_size:
        Maximum chunk length in characters (default 6000).  Exceeded only by
        a chunk holding one oversized sentence.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._max_size = max_size

    @property
    def max_size(self) -> int:
        return self._max_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[str]:
        """Split *text* into an ordered list of chunks.

        Returns
        -------
        list[str]
            At least one chunk.  Empty input yields ``[""]``.
        """
        sentences = self.split_sentences(text)
        if not sentences:
            return [text[: self._max_size]]

        chunks: list[str] = []
        buffer = ""
        for sentence in sentences:
            candidate = f"{buffer} {sentence}" if buffer else sentence
            if len(candidate) > self._max_size and buffer:
                chunks.append(buffer)
                buffer = sentence
            else:
                buffer = candidate

        if buffer:
            chunks.append(buffer)

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            num_sentences=len(sentences),
            max_chunk_chars=max(len(c) for c in chunks),
        )
        return chunks

    # ------------------------------------------------------------------
    # Sentence splitting
    # ------------------------------------------------------------------

    @staticmethod
    def split_sentences(text: str) -> list[str]:
        """Split *text* at sentence boundaries while respecting abbreviations.

        Periods after known abbreviations are replaced with ``\\x00`` in a
        masked copy (same length, so match offsets still index the original
        text).  Blank sentences are dropped.
        """
        masked = _ABBREVIATION_RE.sub(lambda m: m.group(1).replace(".", "\x00") + "\x00", text)

        sentences: list[str] = []
        last = 0
        for match in _SENTENCE_END_RE.finditer(masked):
            end = match.end()
            sentence = text[last:end].strip()
            if sentence:
                sentences.append(sentence)
            last = end

        remainder = text[last:].strip()
        if remainder:
            sentences.append(remainder)

        return sentences
