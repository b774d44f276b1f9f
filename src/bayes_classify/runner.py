"""Batch classification over a document source.

Each document is tokenized into its own :class:`WordCounter` and scored
against the shared model. With ``workers > 1`` documents are fanned out
over a thread pool; results always come back in input order.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional

from .classifier import NaiveBayesClassifier
from .errors import ClassifierError
from .sources import Document
from .tokenizer import count_words

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    """The category assigned to one document."""

    doc_id: str
    category: str
    reference: Optional[str] = None
    key: Any = None

    @property
    def agrees(self) -> Optional[bool]:
        """Whether the prediction matches the reference code, if there is one."""
        if self.reference is None:
            return None
        return self.category == self.reference

    def to_dict(self) -> dict:
        data = {"id": self.doc_id, "category": self.category}
        if self.reference is not None:
            data["reference"] = self.reference
        return data


@dataclass(frozen=True)
class DocumentFailure:
    """A document that could not be classified."""

    doc_id: str
    error: str


@dataclass
class BatchResult:
    """Outcome of classifying a batch of documents.

    Attributes:
        predictions: Successful classifications, in input order.
        failures: Documents skipped because classification failed.
    """

    predictions: list[Prediction] = field(default_factory=list)
    failures: list[DocumentFailure] = field(default_factory=list)

    def pairs(self) -> list[tuple[str, str]]:
        """``(document id, category)`` pairs for a result sink."""
        return [(p.doc_id, p.category) for p in self.predictions]

    def keyed_pairs(self) -> list[tuple[Any, str]]:
        """Pairs keyed by the raw source key, for writing back to a database."""
        return [
            (p.key if p.key is not None else p.doc_id, p.category)
            for p in self.predictions
        ]

    def category_counts(self) -> dict[str, int]:
        return dict(Counter(p.category for p in self.predictions))

    def agreement(self) -> Optional[float]:
        """Fraction of referenced predictions matching their reference.

        Returns None when no document carried a reference code.
        """
        judged = [p.agrees for p in self.predictions if p.agrees is not None]
        if not judged:
            return None
        return sum(judged) / len(judged)

    def to_dict(self) -> dict:
        agreement = self.agreement()
        return {
            "predictions": [p.to_dict() for p in self.predictions],
            "failures": [{"id": f.doc_id, "error": f.error} for f in self.failures],
            "category_counts": self.category_counts(),
            "agreement": round(agreement, 4) if agreement is not None else None,
        }


class BatchRunner:
    """Classify every document from a source.

    Args:
        classifier: Classifier bound to the loaded model.
        workers: Number of worker threads; 1 runs sequentially.
        remove_stopwords: Tokenizer setting; must match training.
        skip_errors: Record per-document failures and carry on instead of
            aborting the batch on the first one.
    """

    def __init__(
        self,
        classifier: NaiveBayesClassifier,
        workers: int = 1,
        remove_stopwords: bool = True,
        skip_errors: bool = False,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.classifier = classifier
        self.workers = workers
        self.remove_stopwords = remove_stopwords
        self.skip_errors = skip_errors

    def classify_document(self, document: Document) -> Prediction:
        """Classify a single document.

        Raises:
            ClassifierError: If the document cannot be classified.
        """
        counter = count_words(document.text, remove_stopwords=self.remove_stopwords)
        category = self.classifier.classify(counter)
        return Prediction(
            doc_id=document.id,
            category=category,
            reference=document.reference,
            key=document.key,
        )

    def _attempt(self, document: Document) -> Prediction | DocumentFailure:
        try:
            return self.classify_document(document)
        except ClassifierError as exc:
            if not self.skip_errors:
                raise
            logger.warning("Skipping document %s: %s", document.id, exc)
            return DocumentFailure(doc_id=document.id, error=str(exc))

    def run(self, documents: Iterable[Document]) -> BatchResult:
        """Classify a batch of documents.

        Returns:
            BatchResult with predictions in input order.

        Raises:
            ClassifierError: On the first failing document, unless
                ``skip_errors`` is set.
        """
        documents = list(documents)
        logger.info("Classifying %d documents with %d worker(s)", len(documents), self.workers)

        if self.workers == 1 or len(documents) < 2:
            outcomes = [self._attempt(doc) for doc in documents]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                outcomes = list(pool.map(self._attempt, documents))

        result = BatchResult()
        for outcome in outcomes:
            if isinstance(outcome, Prediction):
                result.predictions.append(outcome)
            else:
                result.failures.append(outcome)

        logger.info(
            "Classified %d documents, %d failed",
            len(result.predictions), len(result.failures),
        )
        return result
