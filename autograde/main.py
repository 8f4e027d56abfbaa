"""
Autograde CLI Application.

Operator tooling around the grading engine: grade a batch of responses from
JSON files, check an answer for plagiarism, validate question records and
check provider connectivity. The engine itself is a library and does not
depend on this module.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from autograde.config import get_settings
from autograde.grading import BatchOrchestrator, LLMClient, LLMError, summarize_scores
from autograde.models import (
    AssessmentGradingConfig,
    GradingResult,
    NegativeMarkingConfig,
    Question,
    ReferenceSource,
    ScoreSummary,
    StudentResponse,
)
from autograde.plagiarism import PlagiarismDetector
from autograde.questions import QuestionValidationError, QuestionValidator

# Create Typer app
app = typer.Typer(
    name="autograde",
    help="Automated grading of assessment responses",
    add_completion=False,
)

console = Console()

_questions_adapter = TypeAdapter(list[Question])
_responses_adapter = TypeAdapter(list[StudentResponse])
_sources_adapter = TypeAdapter(list[ReferenceSource])


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level (defaults to LOG_LEVEL setting)"),
    ] = None,
) -> None:
    """Configure logging for every command."""
    level = (log_level or get_settings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def grade(
    questions_file: Annotated[Path, typer.Argument(help="JSON file with a list of questions")],
    responses_file: Annotated[Path, typer.Argument(help="JSON file with a list of responses")],
    negative_marking: Annotated[
        bool,
        typer.Option("--negative-marking", help="Deduct marks for wrong objective answers"),
    ] = False,
    negative_percentage: Annotated[
        float,
        typer.Option("--negative-percentage", min=0, max=100, help="Deduction as % of max marks"),
    ] = 25.0,
    partial_marking: Annotated[
        bool,
        typer.Option("--partial-marking", help="Award proportional marks for fill in the blanks"),
    ] = False,
    total_marks: Annotated[
        Optional[float],
        typer.Option("--total-marks", help="Assessment total (defaults to sum of max marks)"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write results as JSON to this file"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed output"),
    ] = False,
) -> None:
    """
    Grade a batch of responses against their questions.

    Questions are validated first. Responses whose question is missing are
    skipped and listed after grading.
    """
    try:
        questions = _load(questions_file, _questions_adapter)
        responses = _load(responses_file, _responses_adapter)
        QuestionValidator().validate_or_raise(questions)
    except QuestionValidationError as e:
        console.print(f"[red]Question Validation Error:[/red] {e}")
        raise typer.Exit(1)

    config = AssessmentGradingConfig(
        negative_marking=NegativeMarkingConfig(
            enabled=negative_marking, percentage=negative_percentage
        ),
        partial_marking=partial_marking,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task(f"Grading {len(responses)} responses...", total=None)
        report = BatchOrchestrator().run(responses, questions, config)

    total = total_marks if total_marks is not None else sum(r.max_marks for r in responses)
    summary = summarize_scores(report.results, total)

    _display_results(report.results, summary, verbose)

    if report.skipped_question_ids:
        console.print(
            f"[yellow]⚠ Skipped {len(report.skipped_question_ids)} response(s) with no matching "
            f"question:[/yellow] {', '.join(report.skipped_question_ids)}"
        )

    if output:
        payload = {
            "results": [r.model_dump(mode="json") for r in report.results],
            "summary": summary.model_dump(mode="json"),
            "skipped_question_ids": report.skipped_question_ids,
        }
        output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        console.print(f"\n[green]Results saved to:[/green] {output}")


@app.command()
def plagiarism(
    answer_file: Annotated[Path, typer.Argument(help="Text file with the answer to check")],
    corpus_file: Annotated[
        Path, typer.Argument(help="JSON file with a list of {source, text} references")
    ],
    threshold: Annotated[
        Optional[float],
        typer.Option("--threshold", "-t", min=0, max=1, help="Similarity threshold"),
    ] = None,
) -> None:
    """Check an answer against a reference corpus."""
    if not answer_file.exists():
        console.print(f"[red]Error:[/red] Answer file not found: {answer_file}")
        raise typer.Exit(1)

    sources = _load(corpus_file, _sources_adapter)
    detector = PlagiarismDetector(
        threshold if threshold is not None else get_settings().plagiarism_threshold
    )
    report = detector.detect(answer_file.read_text(encoding="utf-8"), sources)

    if not report.is_plagiarized:
        console.print("[green]✓ No reference source exceeded the threshold[/green]")
        return

    table = Table(title="Matches")
    table.add_column("Source", style="cyan")
    table.add_column("Similarity", justify="right")
    table.add_column("Matched phrases")
    for match in report.matches:
        table.add_row(match.source, f"{match.similarity:.0%}", "; ".join(match.matched_text))

    console.print(table)
    console.print(f"\n[red]Plagiarism score:[/red] {report.plagiarism_score:.0%}")
    raise typer.Exit(2)


@app.command()
def validate_questions(
    questions_file: Annotated[Path, typer.Argument(help="JSON file with a list of questions")],
) -> None:
    """
    Validate question records without grading anything.

    Checks every question can be routed to a grader and has a usable
    reference answer.
    """
    questions = _load(questions_file, _questions_adapter)
    is_valid, issues = QuestionValidator().validate_all(questions)

    console.print(f"[bold]Questions:[/bold] {len(questions)}")
    if is_valid:
        console.print("\n[green]✓ All questions are valid[/green]")
        return

    console.print("\n[yellow]⚠ Validation issues found:[/yellow]")
    for issue in issues:
        console.print(f"  • {issue}")
    raise typer.Exit(1)


@app.command()
def health() -> None:
    """
    Check if the grading system is operational.

    Prints configuration and verifies provider connectivity.
    """
    settings = get_settings()
    console.print("[bold]Autograde Health Check[/bold]\n")

    console.print("[dim]Checking configuration...[/dim]")
    console.print(f"  API Base URL: {settings.ai_base_url}")
    console.print(f"  Model: {settings.ai_model}")
    console.print(f"  Timeout: {settings.ai_timeout_seconds}s")
    console.print(f"  Batch Workers: {settings.batch_max_workers}")
    console.print(f"  Concurrent AI Calls: {settings.ai_max_concurrent_calls}")

    if not settings.ai_enabled:
        console.print(
            "\n[yellow]⚠ No AI key configured: short answers will use the "
            "similarity fallback[/yellow]"
        )
        return

    console.print("\n[dim]Checking API connectivity...[/dim]")
    try:
        reachable = LLMClient(settings).health_check()
    except LLMError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not reachable:
        console.print("[red]✗ API is not reachable[/red]")
        raise typer.Exit(1)

    console.print("[green]✓ API is reachable[/green]")
    console.print("\n[green]All systems operational[/green]")


def _load(path: Path, adapter: TypeAdapter) -> list:
    """Load and validate a JSON list of records, exiting on failure."""
    if not path.exists():
        console.print(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)
    try:
        return adapter.validate_json(path.read_bytes())
    except ValidationError as e:
        console.print(f"[red]Invalid records in {path}:[/red]\n{e}")
        raise typer.Exit(1)


def _display_results(
    results: list[GradingResult], summary: ScoreSummary, verbose: bool = False
) -> None:
    """Display grading results in a formatted table."""
    score_color = (
        "green" if summary.percentage >= 70 else "yellow" if summary.percentage >= 50 else "red"
    )
    console.print(
        Panel(
            f"[{score_color}][bold]{summary.marks_obtained:g} / {summary.total_marks:g}[/bold] "
            f"({summary.percentage}%) Grade: {summary.grade or '-'}[/{score_color}]",
            title="Final Score",
        )
    )

    if summary.negative_marks:
        console.print(f"[dim]Negative marks deducted: {summary.negative_marks:g}[/dim]")

    if summary.pending_manual_count:
        console.print(
            f"[yellow]⚠ {summary.pending_manual_count} response(s) need manual grading[/yellow]"
        )

    if verbose:
        table = Table(title="Responses")
        table.add_column("Question", style="cyan")
        table.add_column("Marks", justify="right")
        table.add_column("Confidence", justify="right")
        table.add_column("Method")
        table.add_column("Status")
        table.add_column("Explanation")

        for result in results:
            if result.needs_manual_grading:
                status = "👀"
            elif result.is_correct:
                status = "✅"
            else:
                status = "❌"
            table.add_row(
                result.question_id or "-",
                f"{result.marks_awarded:g}/{result.max_marks:g}",
                f"{result.confidence:.2f}",
                result.grading_method.value,
                status,
                result.explanation,
            )

        console.print(table)


if __name__ == "__main__":
    app()
