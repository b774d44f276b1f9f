"""Exception hierarchy for Naive Bayes document classification."""

from __future__ import annotations


class ClassifierError(Exception):
    """Base class for every error raised by this package."""


class ModelLoadError(ClassifierError):
    """A model artifact is missing, unreadable, or malformed."""


class ModelInconsistencyError(ClassifierError):
    """The model cannot rank categories.

    Raised for an empty prior table, a non-positive probability, or a
    conditional-probability entry missing for a known category.
    """


class EmptyDocumentError(ClassifierError):
    """A document has no words and the caller asked for at least one."""


class DocumentSourceError(ClassifierError):
    """Documents could not be read from their source."""


class ResultSinkError(ClassifierError):
    """Classification results could not be persisted."""
