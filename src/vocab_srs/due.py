"""Due-card selection and deck bucketing."""
from datetime import datetime
from typing import Iterable, Mapping

from vocab_srs.log import get_logger
from vocab_srs.models import Bucket, Card, DeckStats, Phase, ProgressState
from vocab_srs.scheduler import utcnow
from vocab_srs.settings import Settings

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 50

PRIORITY = {Bucket.DUE: 0, Bucket.LEARNING: 1, Bucket.NEW: 2}


def classify(progress: ProgressState | None, now: datetime | None = None) -> Bucket:
    """Place one card in exactly one bucket.

    A zeroed row that has never been graded counts as new, same as no row.
    """
    now = now or utcnow()
    if progress is None or progress.phase is Phase.NEW:
        return Bucket.NEW
    if progress.due_date <= now:
        return Bucket.DUE
    if progress.interval < 1:
        return Bucket.LEARNING
    return Bucket.MATURE


def _sort_key(card: Card, bucket: Bucket, progress: ProgressState | None):
    due_date = progress.due_date if progress is not None else None
    # Missing due dates sort first.
    return (PRIORITY[bucket], due_date is not None, due_date or 0, card.id)


def select_due(
    cards: Iterable[Card],
    progress_by_card_id: Mapping[int, ProgressState],
    now: datetime | None = None,
    limit: int = DEFAULT_BATCH_SIZE,
    new_limit: int | None = None,
) -> list[Card]:
    """Return the reviewable cards in the order they should be shown.

    Due cards come first, then learning cards, then new cards. Mature cards
    are left out. ``new_limit`` caps how many new cards are introduced.
    """
    now = now or utcnow()
    if limit <= 0:
        return []
    ranked = []
    for card in cards:
        progress = progress_by_card_id.get(card.id)
        bucket = classify(progress, now)
        if bucket == Bucket.MATURE:
            continue
        ranked.append((_sort_key(card, bucket, progress), bucket, card))
    ranked.sort(key=lambda item: item[0])

    queue = []
    new_taken = 0
    for _, bucket, card in ranked:
        if bucket == Bucket.NEW and new_limit is not None:
            if new_taken >= new_limit:
                continue
            new_taken += 1
        queue.append(card)
        if len(queue) >= limit:
            break
    logger.debug("Selected %d of %d candidate cards", len(queue), len(ranked))
    return queue


def bucket_counts(
    cards: Iterable[Card],
    progress_by_card_id: Mapping[int, ProgressState],
    now: datetime | None = None,
) -> DeckStats:
    now = now or utcnow()
    stats = DeckStats()
    for card in cards:
        bucket = classify(progress_by_card_id.get(card.id), now)
        setattr(stats, bucket.value, getattr(stats, bucket.value) + 1)
        stats.total += 1
    return stats


def new_cards_remaining(settings: Settings, introduced_today: int) -> int:
    """How many more new cards the daily quota allows."""
    return max(0, settings.new_cards_per_day - max(0, introduced_today))
