"""Learner ratings and their mapping onto the SM-2 confidence scale."""

import math
from enum import Enum
from typing import Dict, List

MIN_RATING = 0
MAX_RATING = 3
MAX_CONFIDENCE = 5

# Confidence below this on the 0-5 scale is a failed review.
PASSING_CONFIDENCE = 3


class Rating(int, Enum):
    """The four answer buttons shown to a learner after flipping a card."""
    AGAIN = 0
    HARD = 1
    GOOD = 2
    EASY = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    Rating.AGAIN: 'Forgot completely',
    Rating.HARD: 'Barely recalled',
    Rating.GOOD: 'Recalled with effort',
    Rating.EASY: 'Instant recall',
}


def clamp_rating(rating) -> int:
    """
    Clamp a raw rating into [0, 3].

    Malformed input never raises: anything that is not a finite number
    behaves as AGAIN. Fractional ratings round half-up before clamping.
    """
    try:
        value = float(rating)
    except OverflowError:
        # Integers too large for a float still clamp to the nearest end.
        try:
            return MAX_RATING if rating > 0 else MIN_RATING
        except TypeError:
            return MIN_RATING
    except (TypeError, ValueError):
        return MIN_RATING
    if not math.isfinite(value):
        return MIN_RATING
    value = math.floor(value + 0.5)
    return int(max(MIN_RATING, min(MAX_RATING, value)))


def map_to_confidence(rating) -> int:
    """
    Project a 0-3 rating onto the 0-5 confidence scale.

    confidence = round(rating * 5 / 3), i.e. 0->0, 1->2, 2->3, 3->5.
    """
    clamped = clamp_rating(rating)
    return int(math.floor(clamped * MAX_CONFIDENCE / MAX_RATING + 0.5))


def is_passing(confidence: int) -> bool:
    return confidence >= PASSING_CONFIDENCE


def rating_options() -> List[Dict]:
    """Button metadata for UIs: value, label and description per rating."""
    return [
        {'value': r.value, 'label': r.label, 'description': r.description}
        for r in Rating
    ]
