"""Non-committing previews of what each grade would schedule."""
from datetime import datetime
from typing import Mapping

from vocab_srs.models import Grade, Preview, ProgressState
from vocab_srs.scheduler import review, utcnow
from vocab_srs.settings import Settings, validate


def preview(
    progress: ProgressState | None,
    grade,
    settings: Settings | Mapping | None = None,
    now: datetime | None = None,
) -> Preview:
    """Return the due date and interval ``review`` would produce.

    Runs the real transition on the caller's record; ``review`` never mutates
    its input, so nothing is written back.
    """
    result = review(progress, grade, settings, now)
    return Preview(due_date=result.due_date, interval=result.interval)


def preview_all(
    progress: ProgressState | None,
    settings: Settings | Mapping | None = None,
    now: datetime | None = None,
) -> dict[Grade, Preview]:
    settings = settings if isinstance(settings, Settings) else validate(settings)
    now = now or utcnow()
    return {grade: preview(progress, grade, settings, now) for grade in Grade}


def format_next_review_time(due_date: datetime, now: datetime | None = None) -> str:
    """Short label for a button, e.g. ``10m``, ``1d``, ``2w``, ``3mo``."""
    now = now or utcnow()
    seconds = int((due_date - now).total_seconds())
    if seconds <= 0:
        return "Now"
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days == 0 and hours == 0:
        return f"{minutes}m" if minutes > 0 else "<1m"
    if days == 0:
        return f"{hours}h"
    if days < 7:
        return f"{days}d"
    if days < 30:
        return f"{days // 7}w"
    return f"{days // 30}mo"
