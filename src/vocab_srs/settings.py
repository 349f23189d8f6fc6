"""Per-user scheduling settings: validation and learning-steps parsing."""
import math
import re
from dataclasses import dataclass, fields
from functools import cached_property
from typing import Any, Mapping

from vocab_srs.log import get_logger

logger = get_logger(__name__)

MINUTES_PER_DAY = 24 * 60
HOURS_PER_DAY = 24

DEFAULT_LEARNING_STEPS_TEXT = "1m,6m,10m,12d"
DEFAULT_LEARNING_STEPS = [1 / MINUTES_PER_DAY, 6 / MINUTES_PER_DAY, 10 / MINUTES_PER_DAY, 12]

_STEP_RE = re.compile(r"^(\d+)([mhd])$", re.IGNORECASE)

# field -> (default, low, high, type)
NUMERIC_FIELDS = {
    "max_interval": (36500, 1, 100000, int),
    "starting_ease_factor": (2.5, 1.1, 3.0, float),
    "easy_bonus": (1.3, 1.0, 2.0, float),
    "interval_modifier": (1.0, 0.5, 2.0, float),
    "hard_interval_factor": (1.0, 1.0, 2.0, float),
    "new_cards_per_day": (20, 1, 200, int),
}


@dataclass(frozen=True)
class Settings:
    """Range-checked scheduling parameters. Build with ``validate()``."""
    max_interval: int = 36500
    starting_ease_factor: float = 2.5
    easy_bonus: float = 1.3
    interval_modifier: float = 1.0
    hard_interval_factor: float = 1.0
    new_cards_per_day: int = 20
    learning_steps: str = DEFAULT_LEARNING_STEPS_TEXT

    @cached_property
    def steps(self) -> tuple[float, ...]:
        return tuple(parse_learning_steps(self.learning_steps))

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def default_settings() -> Settings:
    return Settings()


def parse_learning_steps(text: str | None) -> list[float]:
    """Parse ``"1m,6m,10m,12d"`` into day fractions.

    A single bad token discards the whole string and the default queue is
    returned instead.
    """
    if not text or not isinstance(text, str):
        return list(DEFAULT_LEARNING_STEPS)
    steps = []
    for token in text.split(","):
        match = _STEP_RE.match(token.strip())
        if not match:
            logger.warning("Invalid learning step %r in %r, using default queue", token.strip(), text)
            return list(DEFAULT_LEARNING_STEPS)
        value = int(match.group(1))
        unit = match.group(2).lower()
        if unit == "m":
            steps.append(value / MINUTES_PER_DAY)
        elif unit == "h":
            steps.append(value / HOURS_PER_DAY)
        else:
            steps.append(float(value))
    return steps


def is_valid_learning_steps(text: Any) -> bool:
    if not text or not isinstance(text, str):
        return False
    return all(_STEP_RE.match(token.strip()) for token in text.split(","))


def format_learning_steps(steps) -> str:
    """Inverse of ``parse_learning_steps`` for display, e.g. ``"1m,6m,10m,12d"``."""
    parts = []
    for step in steps:
        if step < 1 / HOURS_PER_DAY:
            parts.append(f"{round(step * MINUTES_PER_DAY)}m")
        elif step < 1:
            parts.append(f"{round(step * HOURS_PER_DAY)}h")
        else:
            parts.append(f"{round(step)}d")
    return ",".join(parts)


def _coerce(name: str, raw: Any):
    default, low, high, kind = NUMERIC_FIELDS[name]
    if raw is None or isinstance(raw, bool):
        return default
    try:
        number = float(raw)
    except (TypeError, ValueError):
        logger.warning("Setting %s=%r is not a number, using %s", name, raw, default)
        return default
    if math.isnan(number) or math.isinf(number):
        logger.warning("Setting %s=%r is not finite, using %s", name, raw, default)
        return default
    if kind is int:
        number = int(number)
    clamped = max(low, min(high, number))
    if clamped != number:
        logger.warning("Setting %s=%r out of range [%s, %s], clamped to %s", name, raw, low, high, clamped)
    return kind(clamped)


def validate(raw: Mapping[str, Any] | Settings | None = None) -> Settings:
    """Build a ``Settings`` from loosely typed input, clamping every field.

    Missing or garbage values fall back to defaults; unknown keys are ignored.
    """
    if raw is None:
        return default_settings()
    if isinstance(raw, Settings):
        raw = raw.as_dict()
    values = {name: _coerce(name, raw.get(name)) for name in NUMERIC_FIELDS}
    steps = raw.get("learning_steps")
    if isinstance(steps, str):
        steps = steps.strip()
    if steps is None or steps == "":
        values["learning_steps"] = DEFAULT_LEARNING_STEPS_TEXT
    elif is_valid_learning_steps(steps):
        values["learning_steps"] = steps
    else:
        logger.warning("Setting learning_steps=%r is invalid, using %r", steps, DEFAULT_LEARNING_STEPS_TEXT)
        values["learning_steps"] = DEFAULT_LEARNING_STEPS_TEXT
    return Settings(**values)
