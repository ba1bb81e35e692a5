# ABOUTME: CLI that runs the memory, temporal and time-series analytics over exported learner data.
# ABOUTME: Reads JSON, CSV or Parquet tables with pandas and renders results as Rich tables.

from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from src.common.config import DEFAULT_CONFIG, AnalyticsConfig, load_config
from src.common.records import events_from_frame, metrics_from_frame, sessions_from_frame
from src.common.timeutils import ensure_utc, resolve_now
from src.memory.category import category_analytics, category_metrics, category_weak_points
from src.memory.insights import get_insights
from src.memory.review_queue import build_review_queue, critical_items, plan_daily_reviews
from src.memory.scheduling import generate_schedule
from src.temporal.insights import format_optimal_hours
from src.temporal.momentum import analyze_momentum
from src.temporal.patterns import detect_patterns
from src.temporal.rhythm import analyze_rhythm
from src.timeseries.aggregation import aggregate as aggregate_metric
from src.timeseries.correlation import correlate_metrics

console = Console()
app = typer.Typer(help="Forgetting-curve, temporal and time-series reports for a learner's history.")

TABLE_READERS = {
    ".json": lambda path: pd.read_json(path, orient="records"),
    ".csv": pd.read_csv,
    ".parquet": pd.read_parquet,
}


def read_table(path: Path) -> pd.DataFrame:
    if not path.exists():
        console.print(f"[red]Missing input file at {path}[/red]")
        raise typer.Exit(code=1)
    reader = TABLE_READERS.get(path.suffix.lower())
    if reader is None:
        raise typer.BadParameter(
            f"Unsupported input format '{path.suffix}'. Expected one of: {', '.join(TABLE_READERS)}."
        )
    return reader(path)


def _config(config_path: Optional[Path]) -> AnalyticsConfig:
    if config_path is None:
        return DEFAULT_CONFIG
    if not config_path.exists():
        console.print(f"[red]Missing config file at {config_path}[/red]")
        raise typer.Exit(code=1)
    try:
        return load_config(config_path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _now(now: Optional[str]) -> datetime:
    try:
        return resolve_now(None if now is None else ensure_utc(now))
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid --now timestamp '{now}'.") from exc


def _load_events(path: Path):
    try:
        return events_from_frame(read_table(path))
    except (KeyError, ValueError) as exc:
        raise typer.BadParameter(f"Could not read events from {path}: {exc}") from exc


def _load_metrics(path: Path):
    try:
        return metrics_from_frame(read_table(path))
    except (KeyError, ValueError) as exc:
        raise typer.BadParameter(f"Could not read item metrics from {path}: {exc}") from exc


def _load_sessions(path: Optional[Path]):
    if path is None:
        return []
    try:
        return sessions_from_frame(read_table(path))
    except (KeyError, ValueError) as exc:
        raise typer.BadParameter(f"Could not read sessions from {path}: {exc}") from exc


@app.command("review-queue")
def review_queue(
    metrics_path: Path = typer.Option(..., "--metrics", help="Item metrics table."),
    events_path: Path = typer.Option(..., "--events", help="Metric event log table."),
    max_items: int = typer.Option(50, "--max-items", help="Maximum queue length."),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO8601, UTC); defaults to now."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    Show the items due for review, most urgent first, plus today's plan.
    """
    cfg = _config(config_path)
    reference = _now(now)
    metrics = _load_metrics(metrics_path)
    events = _load_events(events_path)
    typer.echo(f"[memory] Scoring {len(metrics)} items against {len(events)} events")

    queue = build_review_queue(metrics, events, now=reference, max_items=max_items, config=cfg.memory)
    plan = plan_daily_reviews(metrics, events, now=reference, config=cfg.memory)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Item ID")
    table.add_column("Category")
    table.add_column("Priority")
    table.add_column("Success")
    table.add_column("Days Overdue")
    table.add_column("Difficulty")
    for item in queue:
        table.add_row(
            item.item_id,
            item.category,
            item.priority,
            f"{item.success_probability:.2f}",
            str(item.days_overdue),
            item.predicted_difficulty,
        )
    console.print(table)
    console.print(
        f"[bold]Plan:[/] {plan.total_reviews} reviews "
        f"({plan.urgent_reviews} urgent, {plan.due_reviews} due, {plan.optional_reviews} optional), "
        f"~{plan.estimated_duration} min"
    )
    for tip in plan.optimization_tips:
        console.print(f"  - {tip}")


@app.command()
def schedule(
    metrics_path: Path = typer.Option(..., "--metrics", help="Item metrics table."),
    item_id: str = typer.Option(..., "--item-id", help="Item that was just reviewed."),
    quality: int = typer.Option(..., "--quality", help="Recall quality grade, 0-5."),
    reviewed_at: Optional[str] = typer.Option(None, "--reviewed-at", help="Review time (ISO8601, UTC)."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    Compute the next SM-2 review for one item.
    """
    cfg = _config(config_path)
    metrics = {m.item_id: m for m in _load_metrics(metrics_path)}
    if item_id not in metrics:
        console.print(f"[yellow]No metrics for item {item_id}[/yellow]")
        raise typer.Exit(code=1)

    try:
        result = generate_schedule(metrics[item_id], _now(reviewed_at), quality, config=cfg.memory)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Item ID", "Next Review", "Interval (days)", "Ease", "Repetition"):
        table.add_column(column)
    table.add_row(
        result.item_id,
        result.next_review_date.strftime("%Y-%m-%d"),
        str(result.interval_days),
        f"{result.ease_factor:.2f}",
        str(result.repetition_number),
    )
    console.print(table)


@app.command()
def insights(
    metrics_path: Path = typer.Option(..., "--metrics", help="Item metrics table."),
    events_path: Path = typer.Option(..., "--events", help="Metric event log table."),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO8601, UTC); defaults to now."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    Summarize retention across every tracked item.
    """
    cfg = _config(config_path)
    summary = get_insights(
        _load_metrics(metrics_path), _load_events(events_path), now=_now(now), config=cfg.memory
    )

    console.rule("[bold blue]Forgetting Curve Insights[/bold blue]")
    console.print(f"[bold]Items:[/] {summary.total_items}")
    console.print(f"[bold]Due / Overdue:[/] {summary.items_due} / {summary.items_overdue}")
    console.print(f"[bold]Average retention:[/] {summary.average_retention:.2f}%")
    console.print(f"[bold]Stability trend:[/] {summary.memory_stability_trend}")

    table = Table(show_header=True, header_style="bold magenta", title="Most forgettable")
    table.add_column("Item ID")
    table.add_column("Forgetting Rate")
    table.add_column("Strength")
    table.add_column("Reviews")
    for profile in summary.most_forgettable_items:
        table.add_row(
            profile.item_id,
            f"{profile.forgetting_rate:.3f}",
            f"{profile.memory_strength:.2f}",
            str(profile.total_reviews),
        )
    console.print(table)

    critical = critical_items(summary)
    if critical:
        console.print(f"[red]Critical items:[/red] {', '.join(critical)}")


@app.command()
def category(
    name: str = typer.Option(..., "--category", help="Category to summarize."),
    metrics_path: Path = typer.Option(..., "--metrics", help="Item metrics table."),
    sessions_path: Optional[Path] = typer.Option(None, "--sessions", help="Study session table."),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO8601, UTC); defaults to now."),
) -> None:
    """
    Summarize one category and list its weakest items.
    """
    metrics = _load_metrics(metrics_path)
    summary = category_analytics(name, metrics, _load_sessions(sessions_path), now=_now(now))
    typer.echo(f"[memory] {summary.total_items} items in category {name}")

    console.print(f"[bold]Accuracy:[/] {summary.average_accuracy:.2f}%")
    console.print(f"[bold]Time spent:[/] {summary.time_spent_minutes:g} min, mostly {summary.preferred_mode}")

    table = Table(show_header=True, header_style="bold magenta", title="Weak points")
    for column in ("Item ID", "Accuracy", "Confidence", "Encounters", "Issue"):
        table.add_column(column)
    for point in category_weak_points(category_metrics(metrics, name)):
        table.add_row(
            point.item_id,
            f"{point.accuracy_rate:.2f}%",
            f"{point.confidence_score:.2f}%",
            str(point.encounters),
            point.issue_type,
        )
    console.print(table)


@app.command()
def patterns(
    events_path: Path = typer.Option(..., "--events", help="Metric event log table."),
    sessions_path: Optional[Path] = typer.Option(None, "--sessions", help="Study session table."),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO8601, UTC); defaults to now."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    Detect daily, weekly, session-shape, wave and consistency patterns.
    """
    cfg = _config(config_path)
    events = _load_events(events_path)
    sessions = _load_sessions(sessions_path)
    typer.echo(f"[temporal] Scanning {len(events)} events and {len(sessions)} sessions")

    found = detect_patterns(events, sessions, config=cfg.temporal, now=_now(now))
    if not found:
        console.print("[yellow]No significant temporal patterns detected[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Pattern")
    table.add_column("Confidence")
    table.add_column("Frequency")
    table.add_column("Description")
    for pattern in found:
        table.add_row(
            pattern.pattern_kind, f"{pattern.confidence:.2f}", f"{pattern.frequency:.2f}", pattern.description
        )
    console.print(table)


@app.command()
def rhythm(
    events_path: Path = typer.Option(..., "--events", help="Metric event log table."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    Report the learner's best hours and peak window.
    """
    cfg = _config(config_path)
    result = analyze_rhythm(_load_events(events_path), config=cfg.temporal)
    window = result.peak_performance_window

    console.rule("[bold blue]Learning Rhythm[/bold blue]")
    console.print(f"[bold]Optimal hours (UTC):[/] {format_optimal_hours(result.optimal_hours)}")
    console.print(
        f"[bold]Peak window:[/] {window.start_hour}:00-{window.end_hour}:00 x{window.performance_multiplier:.2f}"
    )
    console.print(f"[bold]Rhythm strength:[/] {result.rhythm_strength:.2f}")
    console.print(f"[bold]Consistency:[/] {result.consistency_score:.2f}")


@app.command()
def momentum(
    events_path: Path = typer.Option(..., "--events", help="Metric event log table."),
    sessions_path: Optional[Path] = typer.Option(None, "--sessions", help="Study session table."),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO8601, UTC); defaults to now."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    Report streak strength, momentum direction and plateau risk.
    """
    cfg = _config(config_path)
    result = analyze_momentum(
        _load_events(events_path), _load_sessions(sessions_path), now=_now(now), config=cfg.temporal
    )

    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Streak", "Direction", "Continuation (days)", "Breakthrough", "Plateau Risk"):
        table.add_column(column)
    table.add_row(
        f"{result.current_streak_strength:.2f}",
        result.momentum_direction,
        str(result.predicted_continuation),
        f"{result.breakthrough_probability:.2f}",
        f"{result.plateau_risk:.2f}",
    )
    console.print(table)


@app.command()
def aggregate(
    events_path: Path = typer.Option(..., "--events", help="Metric event log table."),
    metric_kind: str = typer.Option("accuracy_rate", "--metric", help="Metric kind to aggregate."),
    period: str = typer.Option("day", "--period", help="hour, day, week or month."),
) -> None:
    """
    Bucket one metric by period and print summary statistics.
    """
    events = _load_events(events_path)
    try:
        buckets = aggregate_metric(events, metric_kind, period)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"[timeseries] {len(buckets)} {period} buckets for {metric_kind}")

    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Period", "Count", "Mean", "Min", "Max", "Std Dev"):
        table.add_column(column)
    for bucket in buckets:
        table.add_row(
            bucket.period,
            str(bucket.count),
            f"{bucket.mean:.4f}",
            f"{bucket.min:g}",
            f"{bucket.max:g}",
            f"{bucket.std_deviation:.4f}",
        )
    console.print(table)


@app.command()
def correlations(
    events_path: Path = typer.Option(..., "--events", help="Metric event log table."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    Correlate every pair of metric kinds over shared hours.
    """
    cfg = _config(config_path)
    found = correlate_metrics(_load_events(events_path), config=cfg.timeseries)
    if not found:
        console.print("[yellow]Not enough overlapping data to correlate metrics[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Metric A", "Metric B", "Correlation", "Significance", "Hours"):
        table.add_column(column)
    for corr in found:
        table.add_row(
            corr.metric_a, corr.metric_b, f"{corr.correlation:.4f}", f"{corr.significance:.2f}", str(corr.sample_size)
        )
    console.print(table)


if __name__ == "__main__":
    app()
