# tests/test_preview.py
import random
from datetime import timedelta

import pytest

from vocab_srs.models import GRADUATED, Grade, ProgressState
from vocab_srs.preview import format_next_review_time, preview, preview_all
from vocab_srs.scheduler import review
from vocab_srs.settings import parse_learning_steps, validate

STEP_CHOICES = ["1m,6m,10m,12d", "10m,1d", "1d", "1m,5m,1h,3h,2d,7d", "30m,2h,1d,4d"]


def random_settings(rng):
    return validate({
        "max_interval": rng.choice([30, 365, 36500, 100000]),
        "starting_ease_factor": rng.uniform(1.1, 3.0),
        "easy_bonus": rng.uniform(1.0, 2.0),
        "interval_modifier": rng.uniform(0.5, 2.0),
        "hard_interval_factor": rng.uniform(1.0, 2.0),
        "learning_steps": rng.choice(STEP_CHOICES),
    })


def random_progress(rng, settings, now):
    kind = rng.random()
    if kind < 0.15:
        return None
    steps = parse_learning_steps(settings.learning_steps)
    reviewed = rng.random() < 0.8
    if kind < 0.55:
        step = rng.randrange(len(steps))
        interval = steps[step]
    elif kind < 0.9:
        step = GRADUATED
        interval = rng.uniform(1, 500)
    else:
        step = None
        interval = rng.choice([0, steps[0], rng.uniform(0, 1), rng.uniform(1, 100)])
    return ProgressState(
        interval=interval,
        ease_factor=rng.uniform(1.3, 3.0),
        repetitions=rng.randrange(0, 20),
        due_date=now - timedelta(hours=rng.randrange(0, 1000)),
        last_review=now - timedelta(days=rng.uniform(0, 400)) if reviewed else None,
        learning_step=step,
    )


def test_preview_matches_review_randomized(now):
    """preview agrees with review on 1000 random records, grades and settings."""
    rng = random.Random(20240301)
    for _ in range(1000):
        settings = random_settings(rng)
        progress = random_progress(rng, settings, now)
        grade = rng.choice(list(Grade))
        expected = review(progress, grade, settings, now)
        result = preview(progress, grade, settings, now)
        assert result.interval == expected.interval
        assert result.due_date == expected.due_date


def test_preview_does_not_mutate(now, settings):
    """preview leaves the caller's record alone."""
    row = ProgressState(interval=10, ease_factor=2.5, repetitions=3, due_date=now,
                        last_review=now - timedelta(days=10), learning_step=GRADUATED)
    snapshot = ProgressState(**vars(row))
    preview(row, "easy", settings, now)
    assert row == snapshot


def test_preview_new_card(now, settings):
    """Previewing a new card works without a record."""
    result = preview(None, "good", settings, now)
    assert result.due_date == now + timedelta(minutes=10)


def test_preview_all_has_every_grade(now, settings):
    """preview_all returns one entry per grade."""
    previews = preview_all(None, settings, now)
    assert set(previews) == set(Grade)
    assert previews[Grade.AGAIN].due_date == now + timedelta(minutes=1)
    assert previews[Grade.HARD].due_date == now + timedelta(minutes=6)
    assert previews[Grade.GOOD].due_date == now + timedelta(minutes=10)
    assert previews[Grade.EASY].interval == pytest.approx(15.6)


def test_preview_all_graduated_card_ordering(now, settings):
    """For a graduated card, again < hard < good < easy."""
    row = ProgressState(interval=10, ease_factor=2.5, repetitions=3, due_date=now,
                        last_review=now - timedelta(days=10), learning_step=GRADUATED)
    previews = preview_all(row, settings, now)
    assert previews[Grade.AGAIN].interval < previews[Grade.HARD].interval
    assert previews[Grade.HARD].interval < previews[Grade.GOOD].interval
    assert previews[Grade.GOOD].interval < previews[Grade.EASY].interval


@pytest.mark.parametrize("delta, label", [
    (timedelta(seconds=-5), "Now"),
    (timedelta(0), "Now"),
    (timedelta(seconds=30), "<1m"),
    (timedelta(minutes=1), "1m"),
    (timedelta(minutes=10), "10m"),
    (timedelta(hours=1), "1h"),
    (timedelta(hours=5, minutes=59), "5h"),
    (timedelta(days=1), "1d"),
    (timedelta(days=6), "6d"),
    (timedelta(days=7), "1w"),
    (timedelta(days=15.6), "2w"),
    (timedelta(days=30), "1mo"),
    (timedelta(days=400), "13mo"),
])
def test_format_next_review_time(now, delta, label):
    """Button labels for a range of delays."""
    assert format_next_review_time(now + delta, now) == label


def test_preview_accepts_flat_settings_mapping(now):
    """preview and preview_all take the same plain-dict settings as review."""
    raw = {"easy_bonus": 2.0, "learning_steps": "10m,1d"}
    pv = preview(None, Grade.EASY, raw, now)
    assert pv.interval == pytest.approx(2.0)
    assert pv.due_date == now + timedelta(days=2)
    both = preview_all(None, raw, now)
    assert both[Grade.EASY] == pv
    assert both[Grade.AGAIN].interval == pytest.approx(10 / 1440)
