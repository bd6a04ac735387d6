"""Study engine service wrappers -- all return JSON-serializable dicts."""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session as DBSession

from flashcards.due import count_due, is_due
from flashcards.models import Card, ReviewState, format_timestamp, parse_timestamp
from flashcards.quality import rating_options
from flashcards.scheduler import preview_intervals, review
from server.db.models import Flashcard, FlashcardDeck, FlashcardProgress
from server.services.deck_service import card_to_dict, deck_to_dict

logger = logging.getLogger("tidepool.study")


def _state_from_row(row: Optional[FlashcardProgress]) -> Optional[ReviewState]:
    if row is None:
        return None
    return ReviewState(
        ease_factor=float(row.ease_factor),
        interval_days=row.interval_days,
        repetitions=row.repetitions,
        next_review_at=parse_timestamp(row.next_review_at),
    )


def _card_from_row(row: Flashcard) -> Card:
    return Card(
        card_id=row.id,
        deck_id=row.deck_id,
        front_text=row.front_text,
        back_text=row.back_text,
        hint=row.hint,
        order_index=row.order_index,
        created_at=format_timestamp(row.created_at) or '',
    )


class SqlReviewStore:
    """ReviewStore over the flashcards / flashcard_progress tables."""

    def __init__(self, db: DBSession):
        self.db = db

    def _progress(self, card_id: str, learner_id: str) -> Optional[FlashcardProgress]:
        return (
            self.db.query(FlashcardProgress)
            .filter(FlashcardProgress.learner_id == learner_id,
                    FlashcardProgress.card_id == card_id)
            .first()
        )

    def load_rows(self, deck_id: str, learner_id: str) -> List[Tuple[Flashcard, Optional[FlashcardProgress]]]:
        cards = (
            self.db.query(Flashcard)
            .filter(Flashcard.deck_id == deck_id)
            .order_by(Flashcard.order_index.asc())
            .all()
        )
        progress = {
            p.card_id: p
            for p in self.db.query(FlashcardProgress).filter(
                FlashcardProgress.learner_id == learner_id,
                FlashcardProgress.deck_id == deck_id,
            )
        }
        return [(c, progress.get(c.id)) for c in cards]

    def load_cards_and_states(self, deck_id: str, learner_id: str) -> List[Tuple[Card, Optional[ReviewState]]]:
        return [
            (_card_from_row(c), _state_from_row(p))
            for c, p in self.load_rows(deck_id, learner_id)
        ]

    def get_state(self, card_id: str, learner_id: str) -> Optional[ReviewState]:
        return _state_from_row(self._progress(card_id, learner_id))

    def save_state(
        self,
        card_id: str,
        learner_id: str,
        state: ReviewState,
        rating: Optional[int] = None,
    ) -> bool:
        """Insert or update the learner's progress row for a card."""
        card = self.db.get(Flashcard, card_id)
        if card is None:
            raise KeyError(f"Card not found: {card_id}")
        row = self._progress(card_id, learner_id)
        if row is None:
            row = FlashcardProgress(learner_id=learner_id, card_id=card_id, deck_id=card.deck_id)
            self.db.add(row)
        row.ease_factor = state.ease_factor
        row.interval_days = state.interval_days
        row.repetitions = state.repetitions
        row.next_review_at = state.next_review_at
        row.last_rating = rating
        row.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        return True


def _study_deck(db: DBSession, learner_id: str, deck_id: str) -> FlashcardDeck:
    """Published deck, or a draft the learner owns."""
    deck = db.get(FlashcardDeck, deck_id)
    if deck is None or (deck.status != "published" and deck.created_by != learner_id):
        raise KeyError(f"Deck not found: {deck_id}")
    return deck


def _state_to_dict(state: Optional[ReviewState]) -> Optional[Dict]:
    return state.to_dict() if state is not None else None


def list_student_decks(db: DBSession, learner_id: str) -> List[Dict]:
    """
    Published decks with the learner's progress.

    studied_cards counts cards with a saved review state; due_cards counts
    every card that is due now, never-reviewed cards included.
    """
    store = SqlReviewStore(db)
    decks = (
        db.query(FlashcardDeck)
        .filter(FlashcardDeck.status == "published")
        .order_by(FlashcardDeck.updated_at.desc())
        .all()
    )
    now = datetime.now(timezone.utc)
    result = []
    for deck in decks:
        states = [_state_from_row(p) for _, p in store.load_rows(deck.id, learner_id)]
        entry = deck_to_dict(deck)
        entry['studied_cards'] = sum(1 for s in states if s is not None)
        entry['due_cards'] = count_due(states, now)
        result.append(entry)
    return result


def get_study_cards(db: DBSession, learner_id: str, deck_id: str) -> Dict:
    """Deck cards in deck order, each with the learner's progress and due flag."""
    deck = _study_deck(db, learner_id, deck_id)
    now = datetime.now(timezone.utc)
    cards = []
    for row, progress in SqlReviewStore(db).load_rows(deck.id, learner_id):
        state = _state_from_row(progress)
        entry = card_to_dict(row)
        entry['progress'] = _state_to_dict(state)
        entry['is_due'] = is_due(state, now)
        cards.append(entry)
    return {
        'deck': deck_to_dict(deck),
        'cards': cards,
        'due_count': sum(1 for c in cards if c['is_due']),
        'rating_options': rating_options(),
    }


def get_due_count(db: DBSession, learner_id: str, deck_id: str) -> Dict:
    deck = _study_deck(db, learner_id, deck_id)
    states = [s for _, s in SqlReviewStore(db).load_cards_and_states(deck.id, learner_id)]
    return {'deck_id': deck.id, 'due_count': count_due(states)}


def submit_review(
    db: DBSession,
    learner_id: str,
    card_id: str,
    rating: int,
    deck_id: Optional[str] = None,
) -> Dict:
    """
    Score a review for the learner and persist the new schedule.

    Returns:
        {card_id, new_state, next_review_at, rating, confidence, passed}

    Raises:
        KeyError if the card (or deck) is not found.
    """
    card = db.get(Flashcard, card_id)
    if card is None or (deck_id is not None and card.deck_id != deck_id):
        raise KeyError(f"Card not found: {card_id}")
    _study_deck(db, learner_id, card.deck_id)

    store = SqlReviewStore(db)
    result = review(rating, store.get_state(card_id, learner_id))
    store.save_state(card_id, learner_id, result.state, rating=result.rating)
    logger.info("Review card=%s learner=%s rating=%s interval=%sd",
                card_id, learner_id, result.rating, result.state.interval_days)

    payload = result.to_dict()
    payload['card_id'] = card_id
    return payload


def preview_card(db: DBSession, learner_id: str, card_id: str) -> Dict:
    """Interval each rating would give this card, without saving anything."""
    card = db.get(Flashcard, card_id)
    if card is None:
        raise KeyError(f"Card not found: {card_id}")
    _study_deck(db, learner_id, card.deck_id)
    state = SqlReviewStore(db).get_state(card_id, learner_id)
    return {'card_id': card_id, 'intervals': preview_intervals(state)}
