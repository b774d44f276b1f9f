"""Tests for document sources and result sinks."""

from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from pathlib import Path

import pytest

from bayes_classify.errors import DocumentSourceError, ResultSinkError
from bayes_classify.sources import (
    Document,
    JsonLinesSink,
    JsonLinesSource,
    SQLiteDocumentSource,
    SQLiteResultSink,
    TextDirectorySource,
)


def _fetch_codes(db: Path, column: str = "Code") -> dict[int, object]:
    with closing(sqlite3.connect(str(db))) as conn:
        return dict(conn.execute(f'SELECT ID, "{column}" FROM Bills').fetchall())


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

class TestSQLiteDocumentSource:
    def test_loads_documents(self, bills_db: Path) -> None:
        docs = SQLiteDocumentSource(bills_db, "Bills", "ID", "Abstract").load()
        assert len(docs) == 4
        assert docs[0].id == "1"
        assert docs[0].text.startswith("A bill to reduce")
        assert all(d.reference is None for d in docs)

    def test_loads_reference_codes(self, bills_db: Path) -> None:
        docs = SQLiteDocumentSource(bills_db, "Bills", "ID", "Abstract", "Code").load()
        assert [d.reference for d in docs] == ["budget", "defense", "health", "budget"]

    def test_iterable(self, bills_db: Path) -> None:
        source = SQLiteDocumentSource(bills_db, "Bills", "ID", "Abstract")
        assert [d.id for d in source] == ["1", "2", "3", "4"]

    def test_null_text_becomes_empty(self, bills_db: Path) -> None:
        with closing(sqlite3.connect(str(bills_db))) as conn:
            with conn:
                conn.execute("INSERT INTO Bills VALUES (5, NULL, NULL)")
        docs = SQLiteDocumentSource(bills_db, "Bills", "ID", "Abstract", "Code").load()
        assert docs[-1] == Document(id="5", text="", reference=None, key=5)

    def test_keeps_raw_key(self, bills_db: Path) -> None:
        docs = SQLiteDocumentSource(bills_db, "Bills", "ID", "Abstract").load()
        assert docs[0].id == "1"
        assert docs[0].key == 1

    def test_non_text_value_rejected(self, bills_db: Path) -> None:
        with closing(sqlite3.connect(str(bills_db))) as conn:
            with conn:
                conn.execute("INSERT INTO Bills VALUES (6, X'FF00', NULL)")
        with pytest.raises(DocumentSourceError, match="must hold text"):
            SQLiteDocumentSource(bills_db, "Bills", "ID", "Abstract").load()

    def test_missing_database(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentSourceError, match="not found"):
            SQLiteDocumentSource(tmp_path / "none.db", "Bills", "ID", "Abstract").load()
        assert not (tmp_path / "none.db").exists()

    def test_missing_table(self, bills_db: Path) -> None:
        with pytest.raises(DocumentSourceError, match="Nope"):
            SQLiteDocumentSource(bills_db, "Nope", "ID", "Abstract").load()

    def test_missing_column(self, bills_db: Path) -> None:
        with pytest.raises(DocumentSourceError, match="Summary"):
            SQLiteDocumentSource(bills_db, "Bills", "ID", "Summary").load()

    def test_rejects_unsafe_identifier(self, bills_db: Path) -> None:
        with pytest.raises(DocumentSourceError, match="Invalid SQL identifier"):
            SQLiteDocumentSource(bills_db, "Bills; DROP TABLE Bills", "ID", "Abstract").load()


class TestSQLiteResultSink:
    def test_updates_existing_column(self, bills_db: Path) -> None:
        sink = SQLiteResultSink(bills_db, "Bills", "ID", "Code")
        written = sink.write([("1", "health"), ("2", "budget")])
        assert written == 2
        codes = _fetch_codes(bills_db)
        assert codes[1] == "health"
        assert codes[2] == "budget"
        assert codes[3] == "health"

    def test_adds_missing_column(self, bills_db: Path) -> None:
        sink = SQLiteResultSink(bills_db, "Bills", "ID", "Predicted")
        assert sink.write([("3", "health")]) == 1
        codes = _fetch_codes(bills_db, "Predicted")
        assert codes[3] == "health"
        assert codes[1] is None

    def test_unknown_id_not_counted(self, bills_db: Path) -> None:
        sink = SQLiteResultSink(bills_db, "Bills", "ID", "Code")
        assert sink.write([("99", "budget")]) == 0

    def test_missing_table(self, bills_db: Path) -> None:
        sink = SQLiteResultSink(bills_db, "Missing", "ID", "Code")
        with pytest.raises(ResultSinkError, match="Table not found"):
            sink.write([("1", "budget")])

    def test_missing_database(self, tmp_path: Path) -> None:
        sink = SQLiteResultSink(tmp_path / "none.db", "Bills", "ID", "Code")
        with pytest.raises(ResultSinkError, match="not found"):
            sink.write([("1", "budget")])

    def test_untyped_id_column_round_trip(self, tmp_path: Path) -> None:
        db = tmp_path / "untyped.db"
        with closing(sqlite3.connect(str(db))) as conn:
            with conn:
                conn.execute("CREATE TABLE Bills (ID, Abstract)")
                conn.execute("INSERT INTO Bills VALUES (1, 'army military')")
        docs = SQLiteDocumentSource(db, "Bills", "ID", "Abstract").load()
        sink = SQLiteResultSink(db, "Bills", "ID", "Predicted")
        assert sink.write([(doc.key, "defense") for doc in docs]) == 1
        assert _fetch_codes(db, "Predicted") == {1: "defense"}

    def test_missing_id_column(self, bills_db: Path) -> None:
        sink = SQLiteResultSink(bills_db, "Bills", "NoSuchId", "Code")
        with pytest.raises(ResultSinkError, match="NoSuchId"):
            sink.write([("1", "other")])
        assert _fetch_codes(bills_db)[1] == "budget"


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

class TestTextDirectorySource:
    def test_one_document_per_file(self, tmp_path: Path) -> None:
        (tmp_path / "b.txt").write_text("second", encoding="utf-8")
        (tmp_path / "a.txt").write_text("first", encoding="utf-8")
        (tmp_path / "notes.md").write_text("ignored", encoding="utf-8")
        docs = TextDirectorySource(tmp_path).load()
        assert docs == [Document("a", "first"), Document("b", "second")]

    def test_custom_pattern(self, tmp_path: Path) -> None:
        (tmp_path / "notes.md").write_text("markdown", encoding="utf-8")
        docs = TextDirectorySource(tmp_path, pattern="*.md").load()
        assert [d.id for d in docs] == ["notes"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentSourceError):
            TextDirectorySource(tmp_path / "missing").load()


class TestJsonLinesSource:
    def test_loads_records(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.jsonl"
        path.write_text(
            '{"id": 1, "text": "tax relief", "code": "budget"}\n'
            "\n"
            '{"id": "x2", "text": "army"}\n',
            encoding="utf-8",
        )
        docs = JsonLinesSource(path, code_field="code").load()
        assert docs == [
            Document("1", "tax relief", "budget"),
            Document("x2", "army", None),
        ]

    def test_custom_fields(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.jsonl"
        path.write_text('{"doc": "d1", "body": "hello"}\n', encoding="utf-8")
        docs = JsonLinesSource(path, id_field="doc", text_field="body").load()
        assert docs == [Document("d1", "hello")]

    def test_missing_field_reports_line(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.jsonl"
        path.write_text('{"id": 1, "text": "ok"}\n{"id": 2}\n', encoding="utf-8")
        with pytest.raises(DocumentSourceError, match=r":2: missing field 'text'"):
            JsonLinesSource(path).load()

    @pytest.mark.parametrize("text", ["null", "42", "[\"tax\"]"])
    def test_non_string_text_rejected(self, tmp_path: Path, text: str) -> None:
        path = tmp_path / "docs.jsonl"
        path.write_text(f'{{"id": "a", "text": {text}}}\n', encoding="utf-8")
        with pytest.raises(DocumentSourceError, match=r":1: field 'text' must be a string"):
            JsonLinesSource(path).load()

    def test_null_id_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.jsonl"
        path.write_text('{"id": null, "text": "tax"}\n', encoding="utf-8")
        with pytest.raises(DocumentSourceError, match="field 'id'"):
            JsonLinesSource(path).load()

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.jsonl"
        path.write_text("not json\n", encoding="utf-8")
        with pytest.raises(DocumentSourceError, match="invalid JSON"):
            JsonLinesSource(path).load()

    def test_non_object_line(self, tmp_path: Path) -> None:
        path = tmp_path / "docs.jsonl"
        path.write_text("[1, 2]\n", encoding="utf-8")
        with pytest.raises(DocumentSourceError, match="expected a JSON object"):
            JsonLinesSource(path).load()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentSourceError):
            JsonLinesSource(tmp_path / "none.jsonl").load()


class TestJsonLinesSink:
    def test_writes_one_object_per_line(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "results.jsonl"
        written = JsonLinesSink(path).write([("1", "budget"), ("2", "defense")])
        assert written == 2
        lines = path.read_text(encoding="utf-8").splitlines()
        assert [json.loads(line) for line in lines] == [
            {"id": "1", "category": "budget"},
            {"id": "2", "category": "defense"},
        ]

    def test_unwritable_path(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(ResultSinkError):
            JsonLinesSink(blocker / "results.jsonl").write([("1", "budget")])
