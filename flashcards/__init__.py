"""SM-2 flashcard scheduling engine."""

from flashcards.due import count_due, is_due, select_due
from flashcards.models import Card, ReviewResult, ReviewState
from flashcards.quality import Rating, clamp_rating, map_to_confidence
from flashcards.scheduler import new_state, preview_intervals, review
from flashcards.session import ReviewStore, SessionStateError, SessionStatus, StudySession

__all__ = [
    "Card",
    "Rating",
    "ReviewResult",
    "ReviewState",
    "ReviewStore",
    "SessionStateError",
    "SessionStatus",
    "StudySession",
    "clamp_rating",
    "count_due",
    "is_due",
    "map_to_confidence",
    "new_state",
    "preview_intervals",
    "review",
    "select_due",
]
