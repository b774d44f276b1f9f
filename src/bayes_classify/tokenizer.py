"""Text tokenization feeding :class:`~bayes_classify.counter.WordCounter`.

The tokenizer must match whatever produced the model being applied:
a model trained with stopwords removed should be applied to documents
tokenized the same way.
"""

from __future__ import annotations

import re

from .counter import WordCounter

_WORD_RE = re.compile(r"\b[a-zA-Z][a-zA-Z'-]*[a-zA-Z]\b|\b[a-zA-Z]\b")

STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "shall", "can", "must",
    "not", "no", "nor", "so", "if", "then", "than", "that", "this",
    "these", "those", "it", "its", "he", "she", "they", "them", "their",
    "his", "her", "our", "your", "we", "you", "who", "whom", "which",
    "what", "where", "when", "how", "all", "each", "every", "both",
    "few", "more", "most", "other", "some", "such", "any", "only",
    "own", "same", "too", "very", "just", "about", "above", "after",
    "again", "also", "because", "before", "between", "during", "into",
    "through", "under", "until", "up", "out", "over", "here", "there",
    "i", "me", "my", "us", "him",
})


def tokenize(text: str, remove_stopwords: bool = True) -> list[str]:
    """Extract lowercase word tokens from text, in document order.

    Args:
        text: Raw document text.
        remove_stopwords: Drop common English function words.

    Returns:
        List of tokens.
    """
    tokens = [m.group().lower() for m in _WORD_RE.finditer(text)]
    if remove_stopwords:
        tokens = [t for t in tokens if t not in STOP_WORDS]
    return tokens


def count_words(text: str, remove_stopwords: bool = True) -> WordCounter:
    """Tokenize text and count the resulting words."""
    return WordCounter(tokenize(text, remove_stopwords=remove_stopwords))
