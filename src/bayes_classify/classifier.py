"""Log-space multinomial Naive Bayes scoring.

For every category ``c`` in the prior table::

    score(c) = ln(prior[c]) + sum(count(w) * ln(cond_prob[w][c]) for w in doc)

Words missing from the conditional-probability table contribute nothing
to any category, so a document made only of unseen words falls back to
the prior-only decision.

When several categories reach exactly the same maximal score, the
lexicographically smallest category identifier wins.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from .counter import WordCounter
from .errors import EmptyDocumentError, ModelInconsistencyError
from .model import CondProbTable, Model, PriorTable
from .tokenizer import count_words


def _log(prob: float, what: str) -> float:
    if not prob > 0 or not math.isfinite(prob):
        raise ModelInconsistencyError(f"{what} must be positive, got {prob!r}")
    return math.log(prob)


def score(
    counter: WordCounter,
    priors: PriorTable,
    cond_prob: CondProbTable,
) -> dict[str, float]:
    """Compute the unnormalized log-posterior score of every category.

    Args:
        counter: Word counts of one document.
        priors: Category -> prior probability.
        cond_prob: Word -> (category -> P(word | category)).

    Returns:
        Dict of ``{category: score}``.

    Raises:
        ModelInconsistencyError: If ``priors`` is empty, a probability
            used in scoring is not strictly positive, or a word in the
            document lacks an entry for some category.
    """
    if not priors:
        raise ModelInconsistencyError("Prior table is empty; no categories to choose among")

    # Sorted so the floating-point summation order is the same on every call.
    evidence = [
        (word, counter.count(word), cond_prob[word])
        for word in sorted(counter.words())
        if word in cond_prob
    ]

    scores: dict[str, float] = {}
    for category in sorted(priors):
        total = _log(priors[category], f"Prior for category {category!r}")
        for word, count, per_cat in evidence:
            try:
                prob = per_cat[category]
            except KeyError:
                raise ModelInconsistencyError(
                    f"Word {word!r} has no conditional probability for category {category!r}"
                ) from None
            total += count * _log(prob, f"P({word!r} | {category!r})")
        scores[category] = total
    return scores


def best_category(scores: dict[str, float]) -> str:
    """Pick the arg-max category, breaking exact ties by smallest identifier."""
    best: str | None = None
    best_score = -math.inf
    for category in sorted(scores):
        value = scores[category]
        if best is None or value > best_score:
            best = category
            best_score = value
    if best is None:
        raise ModelInconsistencyError("No categories to choose among")
    return best


def classify(
    counter: WordCounter,
    priors: PriorTable,
    cond_prob: CondProbTable,
    require_words: bool = False,
) -> str:
    """Assign the single highest-scoring category to a document.

    Args:
        counter: Word counts of one document.
        priors: Category -> prior probability.
        cond_prob: Word -> (category -> P(word | category)).
        require_words: Reject documents with no words instead of falling
            back to the prior-only decision.

    Returns:
        The winning category identifier.

    Raises:
        ModelInconsistencyError: See :func:`score`.
        EmptyDocumentError: If ``require_words`` is set and the document
            is empty.
    """
    if require_words and not counter.words():
        raise EmptyDocumentError("Document contains no words")
    return best_category(score(counter, priors, cond_prob))


class NaiveBayesClassifier:
    """Classifier bound to one shared, read-only :class:`Model`.

    Safe to call from several threads at once: it holds no mutable state.

    Example::

        model = load_model("Model_Dir")
        classifier = NaiveBayesClassifier(model)
        classifier.classify(WordCounter(["budget", "tax", "tax"]))

    Args:
        model: Loaded model.
        require_words: Passed through to :func:`classify`.
    """

    def __init__(self, model: Model, require_words: bool = False) -> None:
        self._model = model
        self._require_words = require_words

    @property
    def model(self) -> Model:
        return self._model

    @property
    def categories(self) -> tuple[str, ...]:
        return self._model.categories

    def scores(self, counter: WordCounter) -> dict[str, float]:
        """Per-category log scores for a document."""
        return score(counter, self._model.priors, self._model.cond_prob)

    def classify(self, counter: WordCounter) -> str:
        return classify(
            counter,
            self._model.priors,
            self._model.cond_prob,
            require_words=self._require_words,
        )

    def classify_tokens(self, tokens: Iterable[str]) -> str:
        """Classify an already-tokenized document."""
        return self.classify(WordCounter(tokens))

    def classify_text(self, text: str, remove_stopwords: bool = True) -> str:
        """Tokenize raw text and classify it."""
        return self.classify(count_words(text, remove_stopwords=remove_stopwords))
