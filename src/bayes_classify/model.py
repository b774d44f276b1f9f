"""Trained Naive Bayes model: prior and conditional-probability tables.

A model directory holds two JSON artifacts produced by training:

- ``prior.json``: ``{category: P(category)}``
- ``cond_prob.json``: ``{word: {category: P(word | category)}}``

:func:`load_model` turns them into a frozen :class:`Model` that is shared
read-only by every classification call. Loading is all-or-nothing: either
both tables parse and validate, or an exception is raised and no model
exists.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .errors import ModelInconsistencyError, ModelLoadError

logger = logging.getLogger(__name__)

PRIOR_FILENAME = "prior.json"
COND_PROB_FILENAME = "cond_prob.json"

PriorTable = Mapping[str, float]
CondProbTable = Mapping[str, Mapping[str, float]]


@dataclass(frozen=True)
class Model:
    """Immutable snapshot of a trained model.

    Attributes:
        priors: Category -> prior probability.
        cond_prob: Word -> (category -> P(word | category)).
    """

    priors: PriorTable
    cond_prob: CondProbTable

    def __post_init__(self) -> None:
        # Copy into read-only views so callers cannot mutate a shared model.
        object.__setattr__(self, "priors", MappingProxyType(dict(self.priors)))
        object.__setattr__(
            self,
            "cond_prob",
            MappingProxyType({
                word: MappingProxyType(dict(per_cat))
                for word, per_cat in self.cond_prob.items()
            }),
        )

    @property
    def categories(self) -> tuple[str, ...]:
        """Known categories, sorted."""
        return tuple(sorted(self.priors))

    @property
    def vocabulary_size(self) -> int:
        return len(self.cond_prob)

    def validate(self) -> None:
        """Check the invariants the classifier relies on.

        Raises:
            ModelInconsistencyError: If the prior table is empty, a
                probability is not strictly positive, or a word lacks an
                entry for one of the known categories.
        """
        if not self.priors:
            raise ModelInconsistencyError("Prior table is empty; no categories to choose among")

        for category, prob in self.priors.items():
            if not prob > 0 or not math.isfinite(prob):
                raise ModelInconsistencyError(
                    f"Prior for category {category!r} must be positive, got {prob!r}"
                )

        categories = set(self.priors)
        for word, per_cat in self.cond_prob.items():
            missing = categories - set(per_cat)
            if missing:
                raise ModelInconsistencyError(
                    f"Word {word!r} has no conditional probability for "
                    f"categories: {', '.join(sorted(missing))}"
                )
            for category in categories:
                prob = per_cat[category]
                if not prob > 0 or not math.isfinite(prob):
                    raise ModelInconsistencyError(
                        f"P({word!r} | {category!r}) must be positive, got {prob!r}"
                    )

    def to_dict(self) -> dict:
        return {
            "prior": dict(self.priors),
            "cond_prob": {word: dict(per_cat) for word, per_cat in self.cond_prob.items()},
        }


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _read_artifact(path: Path) -> Any:
    """Read and decode one JSON artifact, mapping every failure to ModelLoadError."""
    if not path.is_file():
        raise ModelLoadError(f"Model artifact not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise ModelLoadError(f"Model artifact {path} is not valid JSON: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ModelLoadError(f"Cannot read model artifact {path}: {exc}") from exc


def _as_probability(value: Any, where: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ModelLoadError(f"{where}: expected a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ModelLoadError(f"{where}: expected a finite number, got {value!r}")
    return value


def _parse_priors(data: Any, source: Path) -> dict[str, float]:
    if not isinstance(data, dict):
        raise ModelLoadError(
            f"{source}: expected an object mapping category to probability, "
            f"got {type(data).__name__}"
        )
    return {
        str(category): _as_probability(prob, f"{source} [{category!r}]")
        for category, prob in data.items()
    }


def _parse_cond_prob(data: Any, source: Path) -> dict[str, dict[str, float]]:
    if not isinstance(data, dict):
        raise ModelLoadError(
            f"{source}: expected an object mapping word to category probabilities, "
            f"got {type(data).__name__}"
        )
    table: dict[str, dict[str, float]] = {}
    for word, per_cat in data.items():
        if not isinstance(per_cat, dict):
            raise ModelLoadError(
                f"{source} [{word!r}]: expected an object mapping category to "
                f"probability, got {type(per_cat).__name__}"
            )
        table[word] = {
            str(category): _as_probability(prob, f"{source} [{word!r}][{category!r}]")
            for category, prob in per_cat.items()
        }
    return table


def load_model(model_dir: str | Path, validate: bool = True) -> Model:
    """Load a model from a model directory.

    Args:
        model_dir: Directory containing ``prior.json`` and ``cond_prob.json``.
        validate: Also check the classifier's invariants (see
            :meth:`Model.validate`).

    Returns:
        A frozen Model.

    Raises:
        ModelLoadError: If either artifact is missing, unreadable, or
            malformed.
        ModelInconsistencyError: If ``validate`` is set and the tables
            violate the model invariants.
    """
    model_dir = Path(model_dir)
    if not model_dir.is_dir():
        raise ModelLoadError(f"Model directory not found: {model_dir}")

    prior_path = model_dir / PRIOR_FILENAME
    cond_path = model_dir / COND_PROB_FILENAME

    priors = _parse_priors(_read_artifact(prior_path), prior_path)
    cond_prob = _parse_cond_prob(_read_artifact(cond_path), cond_path)

    model = Model(priors=priors, cond_prob=cond_prob)
    if validate:
        model.validate()

    logger.info(
        "Loaded model from %s: %d categories, %d words",
        model_dir, len(model.priors), model.vocabulary_size,
    )
    return model


def save_model(model: Model, model_dir: str | Path) -> None:
    """Write a model's two artifacts into ``model_dir`` (created if needed)."""
    model_dir = Path(model_dir)
    model_dir.mkdir(parents=True, exist_ok=True)

    data = model.to_dict()
    with open(model_dir / PRIOR_FILENAME, "w", encoding="utf-8") as f:
        json.dump(data["prior"], f, indent=2, sort_keys=True)
    with open(model_dir / COND_PROB_FILENAME, "w", encoding="utf-8") as f:
        json.dump(data["cond_prob"], f, sort_keys=True)

    logger.debug("Saved model to %s", model_dir)
