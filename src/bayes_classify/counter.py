"""Per-document word occurrence counts."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, Mapping


class WordCounter:
    """Immutable multiset of the words in one document.

    Every word present has a positive count; any other word counts as 0.

    Example::

        counter = WordCounter("the cat sat on the mat".split())
        counter.count("the")   # 2
        counter.count("dog")   # 0
    """

    __slots__ = ("_counts", "_words")

    def __init__(self, tokens: Iterable[str] = ()) -> None:
        if isinstance(tokens, str):
            raise TypeError("WordCounter expects a sequence of tokens, not a string")
        counts = Counter(tokens)
        self._counts: dict[str, int] = dict(counts)
        self._words = frozenset(self._counts)

    @classmethod
    def from_counts(cls, counts: Mapping[str, int]) -> "WordCounter":
        """Build a counter from an existing ``{word: count}`` mapping.

        Zero counts are dropped.

        Raises:
            ValueError: If a count is negative or not an integer.
        """
        cleaned: dict[str, int] = {}
        for word, count in counts.items():
            if isinstance(count, bool) or not isinstance(count, int):
                raise ValueError(f"Count for {word!r} must be an integer, got {count!r}")
            if count < 0:
                raise ValueError(f"Count for {word!r} must be non-negative, got {count}")
            if count:
                cleaned[word] = count

        counter = cls()
        counter._counts = cleaned
        counter._words = frozenset(cleaned)
        return counter

    def count(self, word: str) -> int:
        """Occurrences of ``word`` in the document (0 if never seen)."""
        return self._counts.get(word, 0)

    def words(self) -> frozenset[str]:
        """Distinct words present in the document."""
        return self._words

    def items(self) -> Iterator[tuple[str, int]]:
        return iter(self._counts.items())

    def total(self) -> int:
        """Total number of word occurrences."""
        return sum(self._counts.values())

    def __len__(self) -> int:
        return len(self._counts)

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)

    def __contains__(self, word: object) -> bool:
        return word in self._counts

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WordCounter):
            return NotImplemented
        return self._counts == other._counts

    def __hash__(self) -> int:
        return hash(frozenset(self._counts.items()))

    def __repr__(self) -> str:
        return f"WordCounter({self._counts!r})"
