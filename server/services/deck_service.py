"""Deck and card authoring -- all return JSON-serializable dicts."""

import html
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session as DBSession

from flashcards.models import format_timestamp
from server.db.models import Flashcard, FlashcardDeck

DECK_STATUSES = ("draft", "published")

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def sanitize_text(text: str) -> str:
    """Strip HTML tags (before and after entity decoding) and collapse whitespace."""
    text = _TAG_RE.sub("", text or "")
    text = _TAG_RE.sub("", html.unescape(text))
    text = text.replace("<", "").replace(">", "")
    return _WS_RE.sub(" ", text).strip()


def _clean_required(value: str, field: str) -> str:
    cleaned = sanitize_text(value)
    if not cleaned:
        raise ValueError(f"{field} must not be empty")
    return cleaned


def _clean_optional(value: Optional[str]) -> Optional[str]:
    cleaned = sanitize_text(value) if value else ""
    return cleaned or None


def deck_to_dict(deck: FlashcardDeck) -> Dict:
    return {
        'id': deck.id,
        'course_id': deck.course_id,
        'title': deck.title,
        'description': deck.description,
        'status': deck.status,
        'card_count': deck.card_count,
        'created_by': deck.created_by,
        'created_at': format_timestamp(deck.created_at),
        'updated_at': format_timestamp(deck.updated_at),
    }


def card_to_dict(card: Flashcard) -> Dict:
    return {
        'id': card.id,
        'deck_id': card.deck_id,
        'front_text': card.front_text,
        'back_text': card.back_text,
        'hint': card.hint,
        'order_index': card.order_index,
    }


def _owned_deck(db: DBSession, user_id: str, deck_id: str) -> FlashcardDeck:
    """Deck owned by user_id. Decks owned by someone else look missing."""
    deck = db.get(FlashcardDeck, deck_id)
    if deck is None or deck.created_by != user_id:
        raise KeyError(f"Deck not found: {deck_id}")
    return deck


def _owned_card(db: DBSession, user_id: str, card_id: str) -> Flashcard:
    card = db.get(Flashcard, card_id)
    if card is None or card.deck.created_by != user_id:
        raise KeyError(f"Card not found: {card_id}")
    return card


def _recount(db: DBSession, deck: FlashcardDeck) -> None:
    db.flush()
    deck.card_count = db.query(func.count(Flashcard.id)).filter(Flashcard.deck_id == deck.id).scalar() or 0
    deck.updated_at = datetime.now(timezone.utc)


# ---- Decks ----

def list_course_decks(db: DBSession, course_id: str) -> List[Dict]:
    """All decks for a course, newest first."""
    decks = (
        db.query(FlashcardDeck)
        .filter(FlashcardDeck.course_id == course_id)
        .order_by(FlashcardDeck.created_at.desc())
        .all()
    )
    return [deck_to_dict(d) for d in decks]


def create_deck(
    db: DBSession,
    user_id: str,
    course_id: str,
    title: str,
    description: Optional[str] = None,
) -> Dict:
    """Create a draft deck owned by user_id."""
    deck = FlashcardDeck(
        course_id=course_id,
        title=_clean_required(title, "Title"),
        description=_clean_optional(description),
        status="draft",
        card_count=0,
        created_by=user_id,
    )
    db.add(deck)
    db.flush()
    return deck_to_dict(deck)


def update_deck(
    db: DBSession,
    user_id: str,
    deck_id: str,
    title: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[str] = None,
) -> Dict:
    """
    Update deck fields. Only the owner may edit.

    An empty description clears it; None leaves it untouched.

    Raises:
        KeyError if the deck does not exist or is not owned by user_id.
        ValueError for an unknown status or a blank title.
    """
    deck = _owned_deck(db, user_id, deck_id)
    if title is not None:
        deck.title = _clean_required(title, "Title")
    if description is not None:
        deck.description = _clean_optional(description)
    if status is not None:
        if status not in DECK_STATUSES:
            raise ValueError(f"Unknown deck status: {status}")
        deck.status = status
    deck.updated_at = datetime.now(timezone.utc)
    db.flush()
    return deck_to_dict(deck)


def delete_deck(db: DBSession, user_id: str, deck_id: str) -> None:
    """Delete a deck with its cards and every learner's progress on them."""
    deck = _owned_deck(db, user_id, deck_id)
    db.delete(deck)
    db.flush()


# ---- Cards ----

def list_cards(db: DBSession, deck_id: str) -> List[Dict]:
    """Cards of a deck in deck order."""
    cards = (
        db.query(Flashcard)
        .filter(Flashcard.deck_id == deck_id)
        .order_by(Flashcard.order_index.asc())
        .all()
    )
    return [card_to_dict(c) for c in cards]


def add_card(
    db: DBSession,
    user_id: str,
    deck_id: str,
    front_text: str,
    back_text: str,
    hint: Optional[str] = None,
) -> Dict:
    """Append a card after the deck's current last card."""
    deck = _owned_deck(db, user_id, deck_id)
    max_order = (
        db.query(func.max(Flashcard.order_index))
        .filter(Flashcard.deck_id == deck_id)
        .scalar()
    )
    card = Flashcard(
        deck_id=deck.id,
        front_text=_clean_required(front_text, "Front text"),
        back_text=_clean_required(back_text, "Back text"),
        hint=_clean_optional(hint),
        order_index=0 if max_order is None else max_order + 1,
    )
    db.add(card)
    _recount(db, deck)
    return card_to_dict(card)


def update_card(
    db: DBSession,
    user_id: str,
    card_id: str,
    front_text: Optional[str] = None,
    back_text: Optional[str] = None,
    hint: Optional[str] = None,
) -> Dict:
    """Edit card content. Review progress is kept."""
    card = _owned_card(db, user_id, card_id)
    if front_text is not None:
        card.front_text = _clean_required(front_text, "Front text")
    if back_text is not None:
        card.back_text = _clean_required(back_text, "Back text")
    if hint is not None:
        card.hint = _clean_optional(hint)
    db.flush()
    return card_to_dict(card)


def delete_card(db: DBSession, user_id: str, card_id: str) -> None:
    card = _owned_card(db, user_id, card_id)
    deck = card.deck
    db.delete(card)
    _recount(db, deck)
