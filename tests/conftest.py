"""Shared test fixtures for bayes-classify tests."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

import pytest

from bayes_classify.model import Model, save_model


@pytest.fixture
def cat_model() -> Model:
    """Two equally likely categories and a single informative word."""
    return Model(
        priors={"A": 0.5, "B": 0.5},
        cond_prob={"cat": {"A": 0.8, "B": 0.2}},
    )


@pytest.fixture
def policy_model() -> Model:
    """A small three-category model over policy vocabulary."""
    return Model(
        priors={"budget": 0.5, "defense": 0.3, "health": 0.2},
        cond_prob={
            "tax": {"budget": 0.30, "defense": 0.02, "health": 0.05},
            "appropriations": {"budget": 0.25, "defense": 0.10, "health": 0.05},
            "military": {"budget": 0.02, "defense": 0.40, "health": 0.01},
            "army": {"budget": 0.01, "defense": 0.30, "health": 0.01},
            "hospital": {"budget": 0.02, "defense": 0.02, "health": 0.35},
            "medicare": {"budget": 0.05, "defense": 0.01, "health": 0.40},
        },
    )


@pytest.fixture
def model_dir(tmp_path: Path, policy_model: Model) -> Path:
    """A model directory holding the policy model's artifacts."""
    directory = tmp_path / "Model_Dir"
    save_model(policy_model, directory)
    return directory


@pytest.fixture
def bills_db(tmp_path: Path) -> Path:
    """SQLite database with a Bills table of short abstracts and reference codes."""
    path = tmp_path / "bills.db"
    rows = [
        (1, "A bill to reduce the tax burden and fund appropriations.", "budget"),
        (2, "Funding for military readiness and the army.", "defense"),
        (3, "Expands medicare coverage at every rural hospital.", "health"),
        (4, "Tax credits for hospital construction.", "budget"),
    ]
    with closing(sqlite3.connect(str(path))) as conn:
        with conn:
            conn.execute("CREATE TABLE Bills (ID INTEGER PRIMARY KEY, Abstract TEXT, Code TEXT)")
            conn.executemany("INSERT INTO Bills VALUES (?, ?, ?)", rows)
    return path
