"""bayes-classify -- Naive Bayes text classification with a trained model."""

__version__ = "1.0.0"

from .classifier import NaiveBayesClassifier, best_category, classify, score
from .config import Settings
from .counter import WordCounter
from .errors import (
    ClassifierError,
    DocumentSourceError,
    EmptyDocumentError,
    ModelInconsistencyError,
    ModelLoadError,
    ResultSinkError,
)
from .model import Model, load_model, save_model
from .runner import BatchResult, BatchRunner, DocumentFailure, Prediction
from .sources import (
    Document,
    DocumentSource,
    JsonLinesSink,
    JsonLinesSource,
    ResultSink,
    SQLiteDocumentSource,
    SQLiteResultSink,
    TextDirectorySource,
)
from .tokenizer import count_words, tokenize

__all__ = [
    # Core
    "WordCounter",
    "Model",
    "load_model",
    "save_model",
    "NaiveBayesClassifier",
    "classify",
    "score",
    "best_category",
    # Tokenization
    "tokenize",
    "count_words",
    # Batch processing
    "BatchRunner",
    "BatchResult",
    "Prediction",
    "DocumentFailure",
    # Sources and sinks
    "Document",
    "DocumentSource",
    "SQLiteDocumentSource",
    "TextDirectorySource",
    "JsonLinesSource",
    "ResultSink",
    "SQLiteResultSink",
    "JsonLinesSink",
    # Configuration
    "Settings",
    # Errors
    "ClassifierError",
    "ModelLoadError",
    "ModelInconsistencyError",
    "EmptyDocumentError",
    "DocumentSourceError",
    "ResultSinkError",
]
