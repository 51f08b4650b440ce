# ABOUTME: Provides a CLI that scores captured strokes against reference guides.
# ABOUTME: Replays point tables through a drawing session to show throttling and feedback.

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.common.config import load_engine_config
from src.common.guides import GuideLibrary
from src.common.schemas import LessonCategory, ShapeType, Stroke, UserLevel
from src.common.stroke_io import load_stroke_points, outcomes_frame
from src.stroke_engine.classifier import GeometricShapeClassifier
from src.stroke_engine.dtw import guide_diagonal
from src.stroke_engine.pipeline import analyze_stroke
from src.stroke_engine.scheduler import DrawingSession

console = Console()
app = typer.Typer(help="Score freehand strokes against lesson guides and preview the feedback.")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parse_enum(enum_cls, value: str, label: str):
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        console.print(f"[red]Unknown {label} '{value}'. Expected one of: {choices}[/red]")
        raise typer.Exit(code=1)


def _load_points(points_path: Path):
    try:
        return load_stroke_points(points_path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


def _guide_library(category: LessonCategory, size: float, pacing_ms: Optional[float]) -> GuideLibrary:
    pacing = {shape: pacing_ms for shape in ShapeType} if pacing_ms else None
    return GuideLibrary.for_lesson(list(ShapeType), category=category, pacing_ms=pacing, size=size)


@app.command()
def analyze(
    points_path: Path = typer.Option(..., "--points", help="CSV or Parquet table with x, y[, timestamp] columns."),
    shape: str = typer.Option("circle", "--shape", help="Guide shape the stroke was traced against."),
    level: str = typer.Option("beginner", "--level", help="User level: beginner, intermediate, advanced."),
    category: str = typer.Option("basic_shapes", "--category", help="Lesson category controlling feedback vocabulary."),
    size: float = typer.Option(200.0, "--size", help="Guide box size in canvas units, centered at (500, 500)."),
    pacing_ms: Optional[float] = typer.Option(None, "--pacing-ms", help="Expected stroke duration for pacing signals."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine YAML config (defaults when omitted)."),
    use_classifier: bool = typer.Option(True, "--classifier/--no-classifier", help="Blend in the geometric classifier."),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs from the engine."),
) -> None:
    """
    Scores one captured stroke and prints the fused score and feedback.
    """
    _configure_logging(verbose)
    target = _parse_enum(ShapeType, shape, "shape")
    user_level = _parse_enum(UserLevel, level, "level")
    lesson = _parse_enum(LessonCategory, category, "category")
    config = load_engine_config(config_path)

    points = _load_points(points_path)
    guide = _guide_library(lesson, size, pacing_ms).lookup(target)
    classifier = GeometricShapeClassifier() if use_classifier else None
    outcome = analyze_stroke(Stroke.from_points(points, target), guide, user_level, classifier=classifier, config=config)

    console.rule(f"[bold blue]Stroke vs {target.value} guide[/bold blue]")
    if not outcome.analyzed:
        console.print(f"[yellow]{outcome.status.value}: {outcome.message}[/yellow]")
        raise typer.Exit(code=1)

    fused = outcome.fused
    score_table = Table(show_header=True, header_style="bold magenta")
    score_table.add_column("Signal")
    score_table.add_column("Value", justify="right")
    score_table.add_row("Accuracy", f"{fused.accuracy:.3f}")
    score_table.add_row("Alignment", f"{fused.alignment_accuracy:.3f}")
    score_table.add_row("DTW cost", f"{outcome.alignment.normalized_cost:.2f}")
    if outcome.classifier is not None:
        score_table.add_row(
            "Classifier", f"{outcome.classifier.predicted_label.value} ({outcome.classifier.confidence:.2f})"
        )
    else:
        score_table.add_row("Classifier", "unavailable")
    if fused.pacing_available:
        score_table.add_row("Temporal", f"{fused.temporal_accuracy:.3f}")
        score_table.add_row("Velocity", f"{fused.velocity_consistency:.3f}")
    score_table.add_row("Correct", "yes" if fused.is_correct else "no")
    console.print(score_table)

    feedback = outcome.feedback
    color = "green" if fused.is_correct else "red"
    console.print()
    console.print(f"[bold {color}]{feedback.encouragement}[/bold {color}]")
    for suggestion in feedback.suggestions:
        console.print(f"  → {suggestion}")
    if feedback.show_visual_correction:
        console.print("[italic]Visual correction overlay would be shown.[/italic]")


@app.command()
def replay(
    points_path: Path = typer.Option(..., "--points", help="CSV or Parquet table with x, y, timestamp columns."),
    shape: str = typer.Option("circle", "--shape", help="Guide shape the stroke was traced against."),
    level: str = typer.Option("beginner", "--level", help="User level: beginner, intermediate, advanced."),
    every: int = typer.Option(5, "--every", help="Emit an update event every N captured points."),
    memory_pressure: int = typer.Option(0, "--memory-pressure", help="Simulated memory pressure level (0-3)."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine YAML config (defaults when omitted)."),
    output: Optional[Path] = typer.Option(None, "--output", help="Optional CSV/Parquet path for the event log."),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs from the engine."),
) -> None:
    """
    Feeds growing prefixes of a stroke through a drawing session, using point timestamps as event times.
    """
    _configure_logging(verbose)
    if every < 1:
        console.print("[red]--every must be >= 1[/red]")
        raise typer.Exit(code=1)
    target = _parse_enum(ShapeType, shape, "shape")
    user_level = _parse_enum(UserLevel, level, "level")
    config = load_engine_config(config_path)
    points = _load_points(points_path)
    guide = _guide_library(LessonCategory.BASIC_SHAPES, 200.0, None).lookup(target)

    cutoffs = list(range(every, len(points) + 1, every))
    if not cutoffs or cutoffs[-1] != len(points):
        cutoffs.append(len(points))

    outcomes = []
    with DrawingSession(classifier=GeometricShapeClassifier(), config=config) as session:
        for cutoff in cutoffs:
            prefix = points[:cutoff]
            now_ms = prefix[-1].timestamp if prefix else 0.0
            outcomes.append(
                session.analyze(
                    Stroke.from_points(prefix, target),
                    guide,
                    user_level,
                    memory_pressure_level=memory_pressure,
                    now_ms=now_ms,
                )
            )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Points", justify="right")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Top suggestion")
    for cutoff, outcome in zip(cutoffs, outcomes):
        score = f"{outcome.feedback.overall_score:.3f}" if outcome.feedback else "-"
        tip = outcome.feedback.suggestions[0] if outcome.feedback else outcome.message
        table.add_row(str(cutoff), outcome.status.value, score, tip)
    console.print(table)

    if output is not None:
        frame = outcomes_frame(outcomes)
        output.parent.mkdir(parents=True, exist_ok=True)
        if output.suffix.lower() == ".csv":
            frame.to_csv(output, index=False)
        else:
            frame.to_parquet(output, index=False)
        console.print(f"[bold]Saved {len(frame)} events to {output}[/bold]")


@app.command()
def guides(
    category: str = typer.Option("basic_shapes", "--category", help="Lesson category for the guide set."),
    size: float = typer.Option(200.0, "--size", help="Guide box size in canvas units."),
) -> None:
    """
    Lists the reference guides available for a lesson.
    """
    lesson = _parse_enum(LessonCategory, category, "category")
    library = _guide_library(lesson, size, None)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Shape")
    table.add_column("Points", justify="right")
    table.add_column("Diagonal", justify="right")
    for shape in library.shapes():
        guide = library.lookup(shape)
        table.add_row(shape.value, str(len(guide.reference_path)), f"{guide_diagonal(guide):.1f}")
    console.print(table)


if __name__ == "__main__":
    app()
