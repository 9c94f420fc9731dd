"""
Learner Engine CLI.

Operator commands for inspecting and exercising the engine without the
request-serving layer.

Commands:
- learner-engine predict     - Probability of a correct answer
- learner-engine record      - Apply one answer to a profile
- learner-engine mastery     - Sessions needed to reach a target rating
- learner-engine next-items  - Adaptive selection from a JSON question pool
- learner-engine due         - Due review cards and deck metrics
- learner-engine gaps        - Knowledge gaps in a profile's history
- learner-engine simulate    - Simulated learner converging on a rating
- learner-engine init-db     - Create the learner store tables
"""
from __future__ import annotations

import json
import math
import random
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import get_settings
from .core.errors import EngineValidationError
from .core.models import AttemptRecord, QuestionCandidate, parse_timestamp
from .core.sanitizer import sanitize_profile
from .engine import PersonalizationEngine
from .learning.gaps import find_knowledge_gaps
from .learning.prediction import estimate_sessions_to_mastery, predict as predict_outcome
from .schemas import AttemptPayload, parse_candidates, parse_cards
from .study.scheduler import card_metrics

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="learner-engine",
    help="Learner Engine: ability estimation, spaced repetition and adaptive selection",
    no_args_is_help=True,
)
console = Console()

STATUS_STYLES = {
    "new": "cyan",
    "learning": "yellow",
    "mature": "green",
}


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Could not read {escape(str(path))}: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]Invalid input:[/red] {escape(str(error))}")
    raise typer.Exit(1)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def predict(
    ability: float = typer.Argument(..., help="Learner rating"),
    difficulty: float = typer.Argument(..., help="Item difficulty rating"),
) -> None:
    """Predict the chance of a correct answer."""
    prediction = predict_outcome(ability, difficulty)
    console.print(f"Probability: [bold]{prediction.probability:.3f}[/bold]")
    console.print(f"Confidence:  [bold]{prediction.confidence:.2f}[/bold]")


@app.command()
def mastery(
    current: float = typer.Argument(..., help="Current rating"),
    target: float = typer.Argument(..., help="Target rating"),
    samples: Optional[list[float]] = typer.Option(
        None,
        "--sample", "-s",
        help="Rating gained in a recent session (repeatable)",
    ),
) -> None:
    """Estimate sessions needed to reach a target rating."""
    estimate = estimate_sessions_to_mastery(current, target, samples or ())
    console.print(f"Sessions:   [bold]{estimate.sessions}[/bold]")
    console.print(f"Confidence: [bold]{estimate.confidence:.2f}[/bold]")


@app.command()
def record(
    profile_file: Path = typer.Argument(..., help="Learner profile JSON"),
    attempt_file: Path = typer.Argument(..., help="Answer JSON ({item_id, correct, item_difficulty, ...})"),
    card_file: Optional[Path] = typer.Option(None, "--card", "-c", help="Review card JSON for the answered item"),
    review: bool = typer.Option(False, "--review", "-r", help="Put the item under spaced review"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the updated profile here"),
) -> None:
    """Apply one answer to a learner profile."""
    raw_profile = _load_json(profile_file)
    try:
        settings = get_settings()
        attempt = AttemptPayload.model_validate(_load_json(attempt_file)).to_domain()
        card = parse_cards([_load_json(card_file)])[0] if card_file else None
        profile, card = PersonalizationEngine(settings).record_answer(raw_profile, attempt, card, review=review)
    except (ValidationError, EngineValidationError) as e:
        _fail(e)

    before = sanitize_profile(raw_profile).overall_ability
    console.print(f"Overall ability: {before} -> [bold]{profile.overall_ability}[/bold]")
    if attempt.topic:
        console.print(f"Topic {escape(attempt.topic)}: [bold]{profile.topic_abilities[attempt.topic]}[/bold]")
    if card is not None:
        console.print(
            f"Next review of {escape(card.item_id)} in {card.interval}d "
            f"({card.next_review_at.strftime('%Y-%m-%d %H:%M')})"
        )

    if output:
        output.write_text(json.dumps(profile.to_dict(), indent=2), encoding="utf-8")
        logger.info(f"Updated profile written to {output}")


@app.command("next-items")
def next_items(
    profile_file: Path = typer.Argument(..., help="Learner profile JSON"),
    pool_file: Path = typer.Argument(..., help="Question pool JSON (list of {id, topic, difficulty})"),
    count: int = typer.Option(5, "--count", "-n", help="Questions wanted"),
    topic: Optional[list[str]] = typer.Option(None, "--topic", "-t", help="Restrict to topic (repeatable)"),
    goal: Optional[list[str]] = typer.Option(None, "--goal", "-g", help="Learning goal topic (repeatable)"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible selection"),
) -> None:
    """Select the next questions for a learner."""
    raw_profile = _load_json(profile_file)
    try:
        pool = parse_candidates(_load_json(pool_file))
        engine = PersonalizationEngine(rng=random.Random(seed) if seed is not None else None)
        result = engine.get_next_items(raw_profile, pool, count, topic_filter=topic, learning_goals=goal)
    except (ValidationError, EngineValidationError) as e:
        _fail(e)

    if result.is_empty:
        console.print(f"[yellow]{result.fallback_recommendation or 'No questions selected'}[/yellow]")
        if result.suggested_action:
            console.print(f"Suggested action: {result.suggested_action}")
        return

    console.print(f"\n[bold cyan]Next {len(result.questions)} questions[/bold cyan] (ability {result.ability_used})")
    table = Table()
    table.add_column("ID")
    table.add_column("Topic")
    table.add_column("Difficulty", justify="right")
    table.add_column("Match", justify="right")
    for question in result.questions:
        table.add_row(escape(question.id), escape(question.topic), f"{question.difficulty:.0f}", f"{question.match_score:.1f}")
    console.print(table)

    if result.topic_priorities:
        console.print("\n[bold]Topic priorities[/bold]")
        for name, priority in result.topic_priorities.items():
            console.print(f"  {escape(name)}: {priority:.2f}")


@app.command()
def due(
    cards_file: Path = typer.Argument(..., help="Review cards JSON"),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO-8601, default: now)"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum cards to list"),
) -> None:
    """List due review cards and deck metrics."""
    moment = parse_timestamp(now) if now else datetime.now(UTC)
    if moment is None:
        _fail(ValueError(f"Unparseable --now value: {now!r}"))
    try:
        cards = parse_cards(_load_json(cards_file))
        due_list = PersonalizationEngine().get_due_items(cards, moment, limit)
    except (ValidationError, EngineValidationError) as e:
        _fail(e)

    metrics = card_metrics(cards, moment)
    summary = Table(show_header=False, box=None)
    summary.add_column("Metric", style="dim")
    summary.add_column("Value", style="bold")
    summary.add_row("Total cards", str(metrics.total_cards))
    summary.add_row("Due", str(metrics.due_cards))
    summary.add_row("New / learning / mature", f"{metrics.new_cards} / {metrics.learning_cards} / {metrics.mature_cards}")
    summary.add_row("Avg easiness", f"{metrics.avg_easiness:.2f}")
    summary.add_row("Avg interval", f"{metrics.avg_interval:.1f}d")
    console.print(summary)

    if not due_list:
        console.print("\n[green]Nothing due for review![/green]")
        return

    table = Table()
    table.add_column("Item")
    table.add_column("Status")
    table.add_column("Due since")
    table.add_column("Interval", justify="right")
    for card in due_list:
        style = STATUS_STYLES[card.status.value]
        table.add_row(
            escape(card.item_id),
            f"[{style}]{card.status.value}[/{style}]",
            card.next_review_at.strftime("%Y-%m-%d %H:%M"),
            f"{card.interval}d",
        )
    console.print(table)


@app.command()
def gaps(
    profile_file: Path = typer.Argument(..., help="Learner profile JSON"),
) -> None:
    """Show topics the learner keeps missing."""
    profile = sanitize_profile(_load_json(profile_file))
    found = find_knowledge_gaps(profile.item_history)
    if not found:
        console.print("[green]No knowledge gaps found.[/green]")
        return

    table = Table()
    table.add_column("Topic")
    table.add_column("Misses", justify="right")
    table.add_column("Low confidence", justify="right")
    table.add_column("Severity")
    for gap in found:
        table.add_row(escape(gap.topic), str(gap.misses), f"{gap.low_confidence_rate * 100:.0f}%", gap.severity.value)
    console.print(table)


@app.command()
def simulate(
    answers: int = typer.Option(50, "--answers", "-a", help="Answers to simulate"),
    true_ability: float = typer.Option(1800, "--true-ability", help="Learner's actual rating"),
    seed: int = typer.Option(0, "--seed", help="Random seed"),
) -> None:
    """
    Simulate a learner answering adaptively selected questions.

    Each answer is drawn from the logistic model at the learner's true
    rating, so the estimate should drift toward it.
    """
    rng = random.Random(seed)
    engine = PersonalizationEngine(rng=random.Random(seed))
    pool = [QuestionCandidate(id=f"q{i:03d}", topic="general", difficulty=800 + i * 16) for i in range(101)]
    profile = sanitize_profile({"user_id": "simulated"})
    start = datetime.now(UTC)

    for step in range(answers):
        picked = engine.get_next_items(profile, pool, 1).questions
        if not picked:
            break
        question = picked[0]
        p_correct = 1.0 / (1.0 + math.exp(-(true_ability - question.difficulty) / 400))
        attempt = AttemptRecord(
            item_id=question.id,
            correct=rng.random() < p_correct,
            item_difficulty=question.difficulty,
            topic=question.topic,
        )
        profile, _ = engine.record_answer(profile, attempt, now=start + timedelta(minutes=step))

    console.print(f"True ability:      [bold]{true_ability:.0f}[/bold]")
    console.print(f"Estimated ability: [bold]{profile.overall_ability}[/bold] after {len(profile.item_history)} answers")


@app.command("init-db")
def init_db_command() -> None:
    """Create the learner store tables."""
    from .db.database import init_db

    init_db()
    console.print("[green]Learner store tables ready[/green]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="10 MB", retention=5)

    app()


if __name__ == "__main__":
    main()
