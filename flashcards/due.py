"""Due-card selection: which cards should be shown now."""

from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from flashcards.models import Card, ReviewState, parse_timestamp, utcnow


def _next_review_of(state):
    if state is None:
        return None
    if isinstance(state, ReviewState):
        return state.next_review_at
    if isinstance(state, Mapping):
        if 'next_review_at' in state:
            return state['next_review_at']
        return state.get('nextReviewAt')
    if isinstance(state, (datetime, str)):
        return state
    return getattr(state, 'next_review_at', None)


def is_due(state, now: Optional[datetime] = None) -> bool:
    """
    True if the card should be reviewed now.

    A card is due when it has no state, when next_review_at is null (never
    reviewed), or when next_review_at <= now. state may be a ReviewState,
    a mapping with 'next_review_at', a datetime or an ISO-8601 string.
    Unparseable timestamps count as due; an unparseable now falls back to
    the current time.
    """
    try:
        next_review_at = parse_timestamp(_next_review_of(state))
    except ValueError:
        return True
    if next_review_at is None:
        return True
    try:
        now = parse_timestamp(now) or utcnow()
    except ValueError:
        now = utcnow()
    return next_review_at <= now


def count_due(states: Iterable, now: Optional[datetime] = None) -> int:
    """Number of due entries in states. Does not mutate or reorder."""
    if now is None:
        now = utcnow()
    return sum(1 for s in states if is_due(s, now))


def select_due(
    pairs: Sequence[Tuple[Card, Optional[ReviewState]]],
    now: Optional[datetime] = None,
) -> List[Tuple[Card, Optional[ReviewState]]]:
    """Keep the due (card, state) pairs, in their original order."""
    if now is None:
        now = utcnow()
    return [(card, state) for card, state in pairs if is_due(state, now)]
