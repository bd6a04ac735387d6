"""SM-2 spaced repetition scheduler."""

import math
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from flashcards.models import (
    DEFAULT_EASE_FACTOR,
    ReviewResult,
    ReviewState,
    parse_timestamp,
    utcnow,
)
from flashcards.quality import Rating, clamp_rating, is_passing, map_to_confidence

MIN_EASE_FACTOR = 1.3
MAX_INTERVAL_DAYS = 365

# Fixed probes before the ease factor drives growth.
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 3


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _finite(value, default: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return value if math.isfinite(value) else default


def new_state() -> ReviewState:
    """State for a card the learner has never reviewed."""
    return ReviewState()


def sanitize_state(state: Optional[ReviewState]) -> ReviewState:
    """
    Return a copy of state with degenerate fields replaced.

    Non-finite ease falls back to 2.5; non-finite or negative interval and
    repetition counts fall back to 0, and the interval is capped at 365.
    None means a new card.
    """
    if state is None:
        return new_state()
    ease = _finite(state.ease_factor, DEFAULT_EASE_FACTOR)
    interval = _finite(state.interval_days, 0.0)
    reps = _finite(state.repetitions, 0.0)
    try:
        next_review_at = parse_timestamp(state.next_review_at)
    except ValueError:
        next_review_at = None
    return ReviewState(
        ease_factor=ease,
        interval_days=max(0, min(MAX_INTERVAL_DAYS, _round_half_up(interval))),
        repetitions=max(0, int(reps)),
        next_review_at=next_review_at,
    )


def update_ease(ease_factor: float, confidence: int) -> float:
    """
    SM-2 ease adjustment, floored at 1.3:
        EF' = EF + (0.1 - (5-q) * (0.08 + (5-q) * 0.02))
    """
    miss = 5 - confidence
    new_ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASE_FACTOR, new_ease)


def review(
    rating,
    prior_state: Optional[ReviewState] = None,
    now: Optional[datetime] = None,
) -> ReviewResult:
    """
    Score one review and compute the card's next schedule.

    Args:
        rating:       Learner rating 0-3 (Again, Hard, Good, Easy). Values
                      outside the range behave as the nearest boundary.
        prior_state:  Stored state for the card, or None if never reviewed.
        now:          Review time (default: current UTC time).

    Returns:
        ReviewResult with the new state and next_review_at.

    Never raises; malformed input is clamped.
    """
    prior = sanitize_state(prior_state)
    clamped = clamp_rating(rating)
    confidence = map_to_confidence(clamped)
    passed = is_passing(confidence)

    new_ease = update_ease(prior.ease_factor, confidence)

    if not passed:
        interval = FIRST_INTERVAL_DAYS
        reps = 0
    elif prior.repetitions == 0:
        interval = FIRST_INTERVAL_DAYS
        reps = 1
    elif prior.repetitions == 1:
        interval = SECOND_INTERVAL_DAYS
        reps = 2
    else:
        interval = _round_half_up(min(MAX_INTERVAL_DAYS, prior.interval_days * new_ease))
        reps = prior.repetitions + 1

    interval = max(FIRST_INTERVAL_DAYS, min(MAX_INTERVAL_DAYS, interval))

    try:
        reviewed_at = parse_timestamp(now) if now is not None else utcnow()
    except ValueError:
        reviewed_at = utcnow()
    try:
        next_review_at = reviewed_at + timedelta(days=interval)
    except OverflowError:
        next_review_at = datetime.max.replace(tzinfo=timezone.utc)

    state = ReviewState(
        ease_factor=new_ease,
        interval_days=interval,
        repetitions=reps,
        next_review_at=next_review_at,
    )
    return ReviewResult(
        state=state,
        next_review_at=next_review_at,
        rating=clamped,
        confidence=confidence,
        passed=passed,
    )


def preview_intervals(prior_state: Optional[ReviewState] = None) -> Dict[str, int]:
    """Interval in days each rating would produce, keyed by rating label."""
    return {
        r.label: review(r.value, prior_state).state.interval_days
        for r in Rating
    }
