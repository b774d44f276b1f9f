"""Document sources and result sinks around the classifier.

Sources yield :class:`Document` records (identifier, raw text, and an
optional reference code already assigned to the document). Sinks persist
``(document id, category)`` pairs. Both read or write everything inside a
single ``with`` block, so a failure never leaves a half-open connection
or a partially loaded batch behind.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .errors import DocumentSourceError, ResultSinkError

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _quote_identifier(name: str, error: type[Exception]) -> str:
    """Quote a table or column name after checking it is a plain identifier."""
    if not _IDENTIFIER_RE.match(name):
        raise error(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def _table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    """Lowercased column names of a table; empty if the table does not exist."""
    return {row[1].lower() for row in conn.execute(f"PRAGMA table_info({table})")}


@dataclass(frozen=True)
class Document:
    """A single document awaiting classification.

    Attributes:
        id: Identifier as text, for display and file output.
        text: Raw document text.
        reference: Category already assigned to the document, if any.
        key: The identifier exactly as stored in the source database,
            used to write results back to the same row.
    """

    id: str
    text: str
    reference: Optional[str] = None
    key: Any = None


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

class DocumentSource(ABC):
    """Abstract base class for document sources.

    Subclasses implement :meth:`load`, which reads the whole batch and
    returns it as a list.
    """

    @abstractmethod
    def load(self) -> list[Document]:
        """Read every document from the source.

        Raises:
            DocumentSourceError: If the source cannot be opened or read.
        """
        ...

    def __iter__(self) -> Iterator[Document]:
        return iter(self.load())


class SQLiteDocumentSource(DocumentSource):
    """Read documents from a table in a SQLite database.

    Args:
        database: Path to the database file.
        table: Table holding the documents.
        id_column: Column with the document identifier.
        text_column: Column with the document text.
        code_column: Optional column with a reference category, used to
            report agreement between predictions and existing codes.
    """

    def __init__(
        self,
        database: str | Path,
        table: str,
        id_column: str,
        text_column: str,
        code_column: Optional[str] = None,
    ) -> None:
        self.database = Path(database)
        self.table = table
        self.id_column = id_column
        self.text_column = text_column
        self.code_column = code_column

    @property
    def columns(self) -> list[str]:
        columns = [self.id_column, self.text_column]
        if self.code_column:
            columns.append(self.code_column)
        return columns

    def _query(self) -> str:
        columns = [_quote_identifier(c, DocumentSourceError) for c in self.columns]
        table = _quote_identifier(self.table, DocumentSourceError)
        return f"SELECT {', '.join(columns)} FROM {table}"

    def load(self) -> list[Document]:
        if not self.database.is_file():
            raise DocumentSourceError(f"Database not found: {self.database}")

        query = self._query()
        try:
            with closing(sqlite3.connect(str(self.database))) as conn:
                existing = _table_columns(conn, _quote_identifier(self.table, DocumentSourceError))
                if not existing:
                    raise DocumentSourceError(f"Table not found: {self.table}")
                missing = [c for c in self.columns if c.lower() not in existing]
                if missing:
                    raise DocumentSourceError(
                        f"Table {self.table} has no column(s): {', '.join(missing)}"
                    )
                rows = conn.execute(query).fetchall()
        except sqlite3.Error as exc:
            raise DocumentSourceError(
                f"Cannot read documents from {self.database}:{self.table}: {exc}"
            ) from exc

        documents = []
        for row in rows:
            reference = None
            if self.code_column and row[2] is not None:
                reference = str(row[2])
            text = row[1]
            if text is None:
                logger.warning("Document %s has NULL %s; treating it as empty", row[0], self.text_column)
                text = ""
            elif not isinstance(text, str):
                raise DocumentSourceError(
                    f"Document {row[0]}: column {self.text_column!r} must hold text, "
                    f"got {type(text).__name__}"
                )
            documents.append(Document(
                id=str(row[0]),
                text=text,
                reference=reference,
                key=row[0],
            ))

        logger.info("Loaded %d documents from %s:%s", len(documents), self.database, self.table)
        return documents


class TextDirectorySource(DocumentSource):
    """One document per text file; the identifier is the file stem.

    Args:
        directory: Directory to scan.
        pattern: Glob pattern selecting files (non-recursive).
    """

    def __init__(self, directory: str | Path, pattern: str = "*.txt") -> None:
        self.directory = Path(directory)
        self.pattern = pattern

    def load(self) -> list[Document]:
        if not self.directory.is_dir():
            raise DocumentSourceError(f"Directory not found: {self.directory}")

        documents = []
        for path in sorted(self.directory.glob(self.pattern)):
            if not path.is_file():
                continue
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                raise DocumentSourceError(f"Cannot read {path}: {exc}") from exc
            documents.append(Document(id=path.stem, text=text))

        logger.info("Loaded %d documents from %s", len(documents), self.directory)
        return documents


class JsonLinesSource(DocumentSource):
    """Read documents from a JSON-lines file, one object per line.

    Args:
        path: The ``.jsonl`` file.
        id_field: Key holding the document identifier.
        text_field: Key holding the document text.
        code_field: Optional key holding a reference category.
    """

    def __init__(
        self,
        path: str | Path,
        id_field: str = "id",
        text_field: str = "text",
        code_field: Optional[str] = None,
    ) -> None:
        self.path = Path(path)
        self.id_field = id_field
        self.text_field = text_field
        self.code_field = code_field

    def load(self) -> list[Document]:
        if not self.path.is_file():
            raise DocumentSourceError(f"File not found: {self.path}")

        documents = []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                for lineno, line in enumerate(f, 1):
                    if not line.strip():
                        continue
                    documents.append(self._parse_line(line, lineno))
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentSourceError(f"Cannot read {self.path}: {exc}") from exc

        logger.info("Loaded %d documents from %s", len(documents), self.path)
        return documents

    def _parse_line(self, line: str, lineno: int) -> Document:
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise DocumentSourceError(f"{self.path}:{lineno}: invalid JSON: {exc}") from exc
        if not isinstance(record, dict):
            raise DocumentSourceError(f"{self.path}:{lineno}: expected a JSON object")

        for key in (self.id_field, self.text_field):
            if key not in record:
                raise DocumentSourceError(f"{self.path}:{lineno}: missing field {key!r}")

        reference = None
        if self.code_field and record.get(self.code_field) is not None:
            reference = str(record[self.code_field])

        doc_id = record[self.id_field]
        if isinstance(doc_id, bool) or not isinstance(doc_id, (str, int)):
            raise DocumentSourceError(
                f"{self.path}:{lineno}: field {self.id_field!r} must be a string or integer"
            )
        text = record[self.text_field]
        if not isinstance(text, str):
            raise DocumentSourceError(
                f"{self.path}:{lineno}: field {self.text_field!r} must be a string"
            )
        return Document(
            id=str(doc_id),
            text=text,
            reference=reference,
        )


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------

class ResultSink(ABC):
    """Abstract base class for classification result sinks."""

    @abstractmethod
    def write(self, results: Iterable[tuple[Any, str]]) -> int:
        """Persist ``(document id, category)`` pairs.

        For database sinks the id should be the raw key the source read,
        so that it matches the stored row whatever the column type.

        Returns:
            Number of results persisted.

        Raises:
            ResultSinkError: If the results cannot be written. Writes are
                not retried.
        """
        ...


class SQLiteResultSink(ResultSink):
    """Write categories back into a SQLite table, keyed by document id.

    The code column is added to the table if it does not exist yet. All
    updates run in one transaction: on failure nothing is written.
    """

    def __init__(
        self,
        database: str | Path,
        table: str,
        id_column: str,
        code_column: str,
    ) -> None:
        self.database = Path(database)
        self.table = table
        self.id_column = id_column
        self.code_column = code_column

    def write(self, results: Iterable[tuple[Any, str]]) -> int:
        if not self.database.is_file():
            raise ResultSinkError(f"Database not found: {self.database}")

        table = _quote_identifier(self.table, ResultSinkError)
        id_col = _quote_identifier(self.id_column, ResultSinkError)
        code_col = _quote_identifier(self.code_column, ResultSinkError)
        results = list(results)

        updated = 0
        try:
            with closing(sqlite3.connect(str(self.database))) as conn:
                with conn:
                    existing = _table_columns(conn, table)
                    if not existing:
                        raise ResultSinkError(f"Table not found: {self.table}")
                    if self.id_column.lower() not in existing:
                        raise ResultSinkError(
                            f"Table {self.table} has no column: {self.id_column}"
                        )
                    if self.code_column.lower() not in existing:
                        logger.info("Adding column %s to table %s", self.code_column, self.table)
                        conn.execute(f"ALTER TABLE {table} ADD COLUMN {code_col}")

                    sql = f"UPDATE {table} SET {code_col} = ? WHERE {id_col} = ?"
                    for doc_id, category in results:
                        cursor = conn.execute(sql, (category, doc_id))
                        if cursor.rowcount == 0:
                            logger.warning("No row with %s = %s", self.id_column, doc_id)
                        updated += cursor.rowcount
        except sqlite3.Error as exc:
            raise ResultSinkError(
                f"Cannot write results to {self.database}:{self.table}: {exc}"
            ) from exc

        logger.info("Updated %d rows in %s:%s", updated, self.database, self.table)
        return updated


class JsonLinesSink(ResultSink):
    """Write ``{"id": ..., "category": ...}`` objects, one per line."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, results: Iterable[tuple[Any, str]]) -> int:
        count = 0
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                for doc_id, category in results:
                    f.write(json.dumps({"id": doc_id, "category": category}) + "\n")
                    count += 1
        except OSError as exc:
            raise ResultSinkError(f"Cannot write results to {self.path}: {exc}") from exc

        logger.info("Wrote %d results to %s", count, self.path)
        return count
