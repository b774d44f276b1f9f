"""Runtime settings read from the environment.

Values come from ``BAYES_CLASSIFY_*`` environment variables, with a
``.env`` file in the working directory loaded first via python-dotenv.
Command-line options override them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_MODEL_DIR = "Model_Dir"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {value!r}")


def _parse_workers(name: str, value: str) -> int:
    try:
        workers = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if workers < 1:
        raise ValueError(f"{name} must be at least 1, got {workers}")
    return workers


def _parse_level(name: str, value: str) -> str:
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{name} must be a logging level name, got {value!r}")
    return level


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for a classification run."""

    model_dir: str = DEFAULT_MODEL_DIR
    workers: int = 1
    remove_stopwords: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            dotenv: Load a ``.env`` file into ``os.environ`` first.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        env = os.environ if environ is None else environ

        kwargs: dict = {}
        if env.get("BAYES_CLASSIFY_MODEL_DIR"):
            kwargs["model_dir"] = env["BAYES_CLASSIFY_MODEL_DIR"]
        if env.get("BAYES_CLASSIFY_WORKERS"):
            kwargs["workers"] = _parse_workers(
                "BAYES_CLASSIFY_WORKERS", env["BAYES_CLASSIFY_WORKERS"]
            )
        if env.get("BAYES_CLASSIFY_REMOVE_STOPWORDS"):
            kwargs["remove_stopwords"] = _parse_bool(
                "BAYES_CLASSIFY_REMOVE_STOPWORDS", env["BAYES_CLASSIFY_REMOVE_STOPWORDS"]
            )
        if env.get("BAYES_CLASSIFY_LOG_LEVEL"):
            kwargs["log_level"] = _parse_level(
                "BAYES_CLASSIFY_LOG_LEVEL", env["BAYES_CLASSIFY_LOG_LEVEL"]
            )
        return cls(**kwargs)
