"""Command line tool for exploring how the scheduler treats a card."""
import argparse
import sys
from datetime import datetime, timedelta

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from vocab_srs.log import configure_logging
from vocab_srs.models import Grade, ProgressState
from vocab_srs.preview import format_next_review_time, preview_all
from vocab_srs.scheduler import InvalidState, parse_grade, review, utcnow
from vocab_srs.settings import Settings, format_learning_steps, validate

console = Console()

GRADE_COLORS = {
    Grade.AGAIN: "red",
    Grade.HARD: "dark_orange",
    Grade.GOOD: "green",
    Grade.EASY: "cyan",
}


def parse_settings_overrides(pairs: list[str] | None) -> Settings:
    raw = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {pair!r}")
        raw[key.strip()] = value.strip()
    return validate(raw)


def format_days(interval: float) -> str:
    if interval < 1:
        return f"{interval * 24 * 60:.0f} min"
    return f"{interval:g} d"


def cmd_simulate(grades: list[str], settings: Settings, start: datetime | None = None) -> ProgressState | None:
    """Grade a brand-new card through ``grades``, jumping the clock to each due date."""
    parsed = [parse_grade(g) for g in grades]
    now = start or utcnow()
    progress = None
    table = Table(title=f"Simulation ({format_learning_steps(settings.steps)})")
    table.add_column("#", justify="right")
    table.add_column("Grade")
    table.add_column("Phase")
    table.add_column("Step", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Ease", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Next")
    for i, grade in enumerate(parsed, 1):
        progress = review(progress, grade, settings, now)
        color = GRADE_COLORS[grade]
        table.add_row(
            str(i),
            f"[{color}]{grade.value}[/{color}]",
            progress.phase.value,
            str(progress.learning_step),
            format_days(progress.interval),
            f"{progress.ease_factor:.2f}",
            str(progress.repetitions),
            format_next_review_time(progress.due_date, now),
        )
        now = progress.due_date
    console.print(table)
    return progress


def build_progress(args: argparse.Namespace, settings: Settings, now: datetime) -> ProgressState | None:
    described = any(
        v is not None for v in (args.interval, args.ease, args.repetitions, args.step)
    ) or args.reviewed
    if not described:
        return None
    return ProgressState(
        interval=args.interval if args.interval is not None else 0,
        ease_factor=args.ease if args.ease is not None else settings.starting_ease_factor,
        repetitions=args.repetitions if args.repetitions is not None else 0,
        due_date=now,
        last_review=now - timedelta(days=1) if args.reviewed else None,
        learning_step=args.step,
    )


def cmd_preview(progress: ProgressState | None, settings: Settings, now: datetime | None = None) -> dict:
    now = now or utcnow()
    previews = preview_all(progress, settings, now)
    state = "new card" if progress is None else (
        f"interval {format_days(progress.interval)}, ease {progress.ease_factor:.2f}, "
        f"step {progress.learning_step}, reps {progress.repetitions}"
    )
    console.print(Panel(state, title="Card", border_style="blue"))
    table = Table(title="Button preview")
    table.add_column("Grade")
    table.add_column("Interval", justify="right")
    table.add_column("Next review")
    for grade, result in previews.items():
        color = GRADE_COLORS[grade]
        table.add_row(
            f"[{color}]{grade.value}[/{color}]",
            format_days(result.interval),
            format_next_review_time(result.due_date, now),
        )
    console.print(table)
    return previews


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vocab-srs", description=__doc__)
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING (default: $VOCAB_SRS_LOG_LEVEL or WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Grade a new card through a sequence of grades")
    sim.add_argument("grades", nargs="+", help="again, hard, good or easy")
    sim.add_argument("--settings", nargs="*", metavar="KEY=VALUE")

    prev = sub.add_parser("preview", help="Show what each grade would schedule")
    prev.add_argument("--interval", type=float)
    prev.add_argument("--ease", type=float)
    prev.add_argument("--repetitions", type=int)
    prev.add_argument("--step", type=int, help="learning step, -1 when graduated")
    prev.add_argument("--reviewed", action="store_true", help="card has been graded before")
    prev.add_argument("--settings", nargs="*", metavar="KEY=VALUE")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        settings = parse_settings_overrides(args.settings)
        if args.command == "simulate":
            cmd_simulate(args.grades, settings)
        else:
            now = utcnow()
            cmd_preview(build_progress(args, settings, now), settings, now)
    except (argparse.ArgumentTypeError, InvalidState) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
