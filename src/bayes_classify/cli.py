"""Command-line interface for bayes-classify.

Provides ``classify``, ``text`` and ``inspect`` commands with rich
terminal output using the ``click`` and ``rich`` libraries.

Usage::

    bayes-classify classify --datasource bills.db --table-name Bills \\
        --id-column ID --text-column Abstract --output-code-col Code
    bayes-classify classify --text-dir docs/ --model Model_Dir --save results.jsonl
    bayes-classify text "Appropriations for the fiscal year" --scores
    bayes-classify inspect --model Model_Dir
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .classifier import NaiveBayesClassifier
from .config import Settings
from .errors import ClassifierError, ResultSinkError
from .model import load_model
from .runner import BatchResult, BatchRunner
from .sources import (
    DocumentSource,
    JsonLinesSink,
    JsonLinesSource,
    SQLiteDocumentSource,
    SQLiteResultSink,
    TextDirectorySource,
)
from .tokenizer import count_words

console = Console()


def _configure_logging(level: str) -> None:
    root = logging.getLogger()
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    root.setLevel(level)


def _fail(message: object) -> None:
    console.print(f"[bold red]Error:[/] {message}")
    sys.exit(1)


@click.group()
@click.version_option(package_name="bayes-classify")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """Classify text documents with a trained Naive Bayes model."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        _fail(e)
    _configure_logging("DEBUG" if debug else settings.log_level)
    ctx.obj = settings


def _build_source(
    datasource: Path | None,
    table_name: str | None,
    id_column: str | None,
    text_column: str | None,
    code_column: str | None,
    text_dir: Path | None,
    jsonl: Path | None,
) -> DocumentSource:
    chosen = [opt for opt in (datasource, text_dir, jsonl) if opt is not None]
    if len(chosen) != 1:
        raise click.UsageError("Give exactly one of --datasource, --text-dir or --jsonl.")

    if datasource is not None:
        missing = [
            name for name, value in (
                ("--table-name", table_name),
                ("--id-column", id_column),
                ("--text-column", text_column),
            ) if not value
        ]
        if missing:
            raise click.UsageError(f"--datasource requires {', '.join(missing)}.")
        return SQLiteDocumentSource(datasource, table_name, id_column, text_column, code_column)

    if text_dir is not None:
        return TextDirectorySource(text_dir)

    return JsonLinesSource(jsonl, code_field=code_column)


@main.command()
@click.option("--datasource", type=click.Path(path_type=Path), default=None,
              help="SQLite database holding the documents.")
@click.option("--table-name", default=None, help="Table holding the documents.")
@click.option("--id-column", default=None, help="Column with the document id.")
@click.option("--text-column", default=None, help="Column with the document text.")
@click.option("--code-column", default=None,
              help="Column (or JSON field) with reference codes to compare against.")
@click.option("--text-dir", type=click.Path(path_type=Path), default=None,
              help="Directory of .txt files, one document each.")
@click.option("--jsonl", type=click.Path(path_type=Path), default=None,
              help="JSON-lines file with 'id' and 'text' fields.")
@click.option("--model", "model_dir", type=click.Path(path_type=Path), default=None,
              help="Model directory (default: BAYES_CLASSIFY_MODEL_DIR or Model_Dir).")
@click.option("--remove-stopwords/--keep-stopwords", default=None,
              help="Stopword filtering; must match how the model was trained.")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None,
              help="Worker threads for classification.")
@click.option("--output-table-name", default=None,
              help="Table where results are written (default: the input table).")
@click.option("--output-code-col", default=None,
              help="Column where the result is set; enables writing back to the database.")
@click.option("--save", "-s", type=click.Path(path_type=Path), default=None,
              help="Save results to a JSON-lines file.")
@click.option("--skip-errors", is_flag=True,
              help="Skip documents that fail to classify instead of aborting.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def classify(
    settings: Settings,
    datasource: Path | None,
    table_name: str | None,
    id_column: str | None,
    text_column: str | None,
    code_column: str | None,
    text_dir: Path | None,
    jsonl: Path | None,
    model_dir: Path | None,
    remove_stopwords: bool | None,
    workers: int | None,
    output_table_name: str | None,
    output_code_col: str | None,
    save: Path | None,
    skip_errors: bool,
    output: str,
) -> None:
    """Classify a batch of documents and optionally write the results back.

    Example: bayes-classify classify --text-dir docs/ --model Model_Dir
    """
    source = _build_source(
        datasource, table_name, id_column, text_column, code_column, text_dir, jsonl
    )
    if output_code_col and datasource is None:
        raise click.UsageError("--output-code-col requires --datasource.")

    try:
        model = load_model(model_dir or settings.model_dir)
        documents = source.load()
        runner = BatchRunner(
            NaiveBayesClassifier(model),
            workers=workers or settings.workers,
            remove_stopwords=(
                settings.remove_stopwords if remove_stopwords is None else remove_stopwords
            ),
            skip_errors=skip_errors,
        )
        with console.status("[bold blue]Classifying documents...", spinner="dots"):
            result = runner.run(documents)

        if output_code_col:
            if output == "rich":
                console.print("[dim]Inserting result into database[/]")
            output_table = output_table_name or table_name
            sink = SQLiteResultSink(datasource, output_table, id_column, output_code_col)
            written = sink.write(result.keyed_pairs())
            expected = len(result.predictions)
            if written < expected:
                raise ResultSinkError(
                    f"Only {written} of {expected} results were written to "
                    f"{datasource}:{output_table}; check that {id_column} matches the input rows"
                )
            if output == "rich":
                console.print(f"[dim]Updated {written} rows in {output_table}[/]")

        if save:
            JsonLinesSink(save).write(result.pairs())
    except ClassifierError as e:
        _fail(e)

    if output == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _render_batch(result)
        if save:
            console.print(f"[dim]Results saved to {save}[/]")


@main.command()
@click.argument("text")
@click.option("--model", "model_dir", type=click.Path(path_type=Path), default=None,
              help="Model directory (default: BAYES_CLASSIFY_MODEL_DIR or Model_Dir).")
@click.option("--remove-stopwords/--keep-stopwords", default=None,
              help="Stopword filtering; must match how the model was trained.")
@click.option("--scores", is_flag=True, help="Show the log score of every category.")
@click.pass_obj
def text(
    settings: Settings,
    text: str,
    model_dir: Path | None,
    remove_stopwords: bool | None,
    scores: bool,
) -> None:
    """Classify a single piece of text given on the command line.

    Example: bayes-classify text "tax relief for small business"
    """
    if remove_stopwords is None:
        remove_stopwords = settings.remove_stopwords

    try:
        classifier = NaiveBayesClassifier(load_model(model_dir or settings.model_dir))
        counter = count_words(text, remove_stopwords=remove_stopwords)
        category = classifier.classify(counter)
        category_scores = classifier.scores(counter) if scores else {}
    except ClassifierError as e:
        _fail(e)

    click.echo(category)
    if scores:
        table = Table(title="Category scores")
        table.add_column("Category", style="cyan")
        table.add_column("Log score", justify="right")
        for cat, value in sorted(category_scores.items(), key=lambda x: x[1], reverse=True):
            style = "bold green" if cat == category else None
            table.add_row(cat, f"{value:.4f}", style=style)
        console.print(table)


@main.command()
@click.option("--model", "model_dir", type=click.Path(path_type=Path), default=None,
              help="Model directory (default: BAYES_CLASSIFY_MODEL_DIR or Model_Dir).")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def inspect(settings: Settings, model_dir: Path | None, output: str) -> None:
    """Show the categories, priors and vocabulary size of a model."""
    path = model_dir or Path(settings.model_dir)
    try:
        model = load_model(path)
    except ClassifierError as e:
        _fail(e)

    if output == "json":
        click.echo(json.dumps({
            "model_dir": str(path),
            "categories": list(model.categories),
            "prior": dict(model.priors),
            "vocabulary_size": model.vocabulary_size,
        }, indent=2))
        return

    table = Table(title=f"Model — {path}")
    table.add_column("Category", style="cyan")
    table.add_column("Prior", justify="right")
    for category in model.categories:
        table.add_row(category, f"{model.priors[category]:.4f}")
    console.print(table)
    console.print(f"Vocabulary: [bold]{model.vocabulary_size}[/] words")


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_batch(result: BatchResult) -> None:
    """Render a BatchResult with rich formatting."""
    agreement = result.agreement()
    header = (
        f"Classified: {len(result.predictions)} | "
        f"Failed: {len(result.failures)}"
    )
    if agreement is not None:
        header += f" | Agreement with reference: {agreement:.1%}"

    console.print()
    console.print(Panel(header, title="Naive Bayes Classification", border_style="blue"))

    counts = result.category_counts()
    if counts:
        table = Table(title="Documents per category")
        table.add_column("Category", style="cyan")
        table.add_column("Documents", justify="right")
        for category, count in sorted(counts.items(), key=lambda x: (-x[1], x[0])):
            table.add_row(category, str(count))
        console.print(table)

    if result.predictions:
        table = Table(title="Predictions")
        table.add_column("ID", style="white")
        table.add_column("Category", style="cyan")
        table.add_column("Reference", justify="center")

        for prediction in result.predictions[:30]:  # Cap display at 30
            if prediction.reference is None:
                ref = "-"
            elif prediction.agrees:
                ref = f"[green]{prediction.reference}[/]"
            else:
                ref = f"[red]{prediction.reference}[/]"
            table.add_row(prediction.doc_id, prediction.category, ref)

        if len(result.predictions) > 30:
            table.add_row("...", f"({len(result.predictions) - 30} more)", "")
        console.print(table)

    for failure in result.failures:
        console.print(f"  [bold yellow]Skipped[/] {failure.doc_id}: {failure.error}")
    console.print()


if __name__ == "__main__":
    main()
