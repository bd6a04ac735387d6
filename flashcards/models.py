"""Data models for the flashcard engine: Card, ReviewState and ReviewResult."""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Dict, Optional

DEFAULT_EASE_FACTOR = 2.5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """
    Coerce a stored timestamp into an aware UTC datetime.

    Accepts None, datetimes (naive ones are taken as UTC) and ISO-8601
    strings, including the trailing 'Z' form browsers emit.
    Raises ValueError for strings that are not ISO-8601.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return parse_timestamp(value).isoformat()


@dataclass
class ReviewState:
    """
    Scheduling state for one learner-card pair; the unit of persistence.

    A brand-new card has ease 2.5, interval 0, repetitions 0 and no
    next_review_at, meaning it is due immediately.
    """
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    repetitions: int = 0
    next_review_at: Optional[datetime] = None

    def to_dict(self) -> Dict:
        return {
            'ease_factor': self.ease_factor,
            'interval_days': self.interval_days,
            'repetitions': self.repetitions,
            'next_review_at': format_timestamp(self.next_review_at),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'ReviewState':
        return cls(
            ease_factor=float(data.get('ease_factor', DEFAULT_EASE_FACTOR)),
            interval_days=int(data.get('interval_days', 0)),
            repetitions=int(data.get('repetitions', 0)),
            next_review_at=parse_timestamp(data.get('next_review_at')),
        )


@dataclass
class ReviewResult:
    """Outcome of scoring a single review."""
    state: ReviewState
    next_review_at: datetime
    rating: int
    confidence: int
    passed: bool

    def to_dict(self) -> Dict:
        return {
            'new_state': self.state.to_dict(),
            'next_review_at': format_timestamp(self.next_review_at),
            'rating': self.rating,
            'confidence': self.confidence,
            'passed': self.passed,
        }


@dataclass
class Card:
    """Flashcard content. The engine never mutates it."""
    card_id: str
    deck_id: str
    front_text: str
    back_text: str
    hint: Optional[str] = None
    order_index: int = 0
    created_at: str = field(default_factory=lambda: utcnow().isoformat())

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Card':
        known = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in known})
