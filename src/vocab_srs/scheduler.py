"""Spaced repetition scheduler: learning steps followed by SM-2 style review."""
import math
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Mapping

from vocab_srs.log import get_logger
from vocab_srs.models import GRADUATED, Grade, ProgressState
from vocab_srs.settings import Settings, validate

logger = get_logger(__name__)

MIN_EASE = 1.3
MAX_EASE = 3.0
EASE_STEP = 0.15


class InvalidState(ValueError):
    """A progress record or grade the scheduler cannot reconcile."""


class InvalidGrade(InvalidState):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_grade(value) -> Grade:
    if isinstance(value, Grade):
        return value
    if isinstance(value, str):
        try:
            return Grade(value.strip().lower())
        except ValueError:
            pass
    raise InvalidGrade(f"Unknown grade {value!r}; expected one of: {', '.join(g.value for g in Grade)}")


def _resolve_settings(settings) -> Settings:
    if isinstance(settings, Settings):
        return settings
    return validate(settings)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def infer_learning_step(interval: float, steps) -> int:
    """Guess the learning step of a record saved without one.

    Sub-day intervals map to the numerically closest step; anything else is
    treated as graduated.
    """
    if interval >= 1:
        return GRADUATED
    closest = 0
    for index, step in enumerate(steps):
        if abs(interval - step) < abs(interval - steps[closest]):
            closest = index
    return closest


def migrate_legacy_progress(progress: ProgressState, settings: Settings | Mapping | None = None) -> ProgressState:
    """Return ``progress`` with ``learning_step`` filled in if it was missing.

    The caller is expected to persist the result so inference runs once.
    """
    if progress.learning_step is not None:
        return progress
    settings = _resolve_settings(settings)
    step = infer_learning_step(progress.interval, settings.steps)
    logger.info("Inferred learning_step=%d for legacy record with interval=%s", step, progress.interval)
    return replace(progress, learning_step=step)


def check_progress(progress: ProgressState, settings: Settings) -> None:
    """Raise ``InvalidState`` for records that indicate upstream corruption."""
    interval = progress.interval
    if interval is None or not math.isfinite(interval) or interval < 0:
        raise InvalidState(f"interval must be a finite non-negative number, got {interval!r}")
    if progress.repetitions is None or progress.repetitions < 0:
        raise InvalidState(f"repetitions must be non-negative, got {progress.repetitions!r}")
    ease = progress.ease_factor
    if ease is None or not math.isfinite(ease) or ease <= 0:
        raise InvalidState(f"ease_factor must be a positive number, got {ease!r}")
    last = len(settings.steps) - 1
    if progress.learning_step is None or not GRADUATED <= progress.learning_step <= last:
        raise InvalidState(
            f"learning_step {progress.learning_step!r} outside [{GRADUATED}, {last}] "
            f"for learning steps {settings.learning_steps!r}"
        )


def _learning(progress: ProgressState, grade: Grade, settings: Settings, steps) -> ProgressState:
    last = len(steps) - 1
    step = progress.learning_step
    first_pass = progress.last_review is None
    repetitions = progress.repetitions

    if grade == Grade.EASY:
        return replace(
            progress,
            learning_step=GRADUATED,
            repetitions=1,
            interval=steps[last] * settings.easy_bonus,
        )

    if grade == Grade.HARD:
        if first_pass:
            step = min(1, last)
            repetitions = 1
    elif first_pass:
        step = min(2, last)
        repetitions = 1
    elif step < last - 1:
        step = last - 1
    elif step == last - 1:
        step = last
    else:
        return replace(progress, learning_step=GRADUATED, repetitions=1, interval=steps[last])

    return replace(progress, learning_step=step, repetitions=repetitions, interval=steps[step])


def _review(progress: ProgressState, grade: Grade, settings: Settings) -> ProgressState:
    ease = progress.ease_factor
    interval = progress.interval
    if grade == Grade.HARD:
        ease = max(MIN_EASE, ease - EASE_STEP)
        interval *= settings.hard_interval_factor
    elif grade == Grade.GOOD:
        interval *= ease
    else:
        ease = min(MAX_EASE, ease + EASE_STEP)
        interval *= ease * settings.easy_bonus
    interval *= settings.interval_modifier
    interval = min(round_half_up(interval), settings.max_interval)
    return replace(progress, ease_factor=ease, interval=interval, repetitions=progress.repetitions + 1)


def review(
    progress: ProgressState | None,
    grade,
    settings: Settings | Mapping | None = None,
    now: datetime | None = None,
) -> ProgressState:
    """Apply one grading event and return the card's next progress record.

    The input record is left untouched. ``settings`` may be a ``Settings`` or a
    flat mapping, which goes through ``validate``. ``now`` defaults to the
    current UTC time; pass it explicitly to get reproducible results.

    Raises:
        InvalidGrade: ``grade`` is not again/hard/good/easy.
        InvalidState: ``progress`` is garbled beyond repair.
    """
    grade = parse_grade(grade)
    settings = _resolve_settings(settings)
    now = now or utcnow()
    steps = settings.steps

    if progress is None:
        progress = ProgressState.new(settings, now)
    else:
        progress = migrate_legacy_progress(progress, settings)
    check_progress(progress, settings)

    if grade == Grade.AGAIN:
        updated = replace(
            progress,
            learning_step=0,
            repetitions=0,
            interval=steps[0],
            ease_factor=max(MIN_EASE, progress.ease_factor - EASE_STEP),
        )
    elif progress.graduated:
        updated = _review(progress, grade, settings)
    else:
        updated = _learning(progress, grade, settings, steps)

    # Learning steps are user supplied and may exceed max_interval.
    interval = min(updated.interval, settings.max_interval)
    return replace(
        updated,
        interval=interval,
        ease_factor=max(MIN_EASE, min(MAX_EASE, updated.ease_factor)),
        due_date=now + timedelta(days=interval),
        last_review=now,
    )
