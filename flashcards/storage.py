"""JSONL-backed deck storage: cards plus per-learner review state."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from flashcards.models import Card, ReviewState

logger = logging.getLogger("tidepool.store")


class DeckStore:
    """
    JSONL-backed card storage.

    One line per card; each line carries the card's content and a
    'states' object mapping learner_id -> review state. Loads the entire
    file into memory on init and rewrites it on every mutation.
    """

    def __init__(self, db_path):
        self.db_path = Path(db_path)
        self._cards: Dict[str, Card] = {}
        self._states: Dict[str, Dict[str, ReviewState]] = {}
        self._load()

    def _load(self) -> None:
        if not self.db_path.exists():
            return
        with open(self.db_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)
                card = Card.from_dict(data)
                self._cards[card.card_id] = card
                self._states[card.card_id] = {
                    learner: ReviewState.from_dict(state)
                    for learner, state in (data.get('states') or {}).items()
                }

    def _save(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.db_path.with_suffix(self.db_path.suffix + '.tmp')
        with open(tmp, 'w', encoding='utf-8') as f:
            for card in self._cards.values():
                record = card.to_dict()
                record['states'] = {
                    learner: state.to_dict()
                    for learner, state in self._states.get(card.card_id, {}).items()
                }
                f.write(json.dumps(record, ensure_ascii=False) + '\n')
        tmp.replace(self.db_path)

    # ----------------------------
    # Cards
    # ----------------------------
    def add_card(
        self,
        deck_id: str,
        front_text: str,
        back_text: str,
        hint: Optional[str] = None,
    ) -> Card:
        """Append a card at the end of its deck."""
        if not front_text.strip() or not back_text.strip():
            raise ValueError("Card front and back must not be empty")
        existing = self.cards_for_deck(deck_id)
        next_order = existing[-1].order_index + 1 if existing else 0
        card = Card(
            card_id=uuid4().hex[:16],
            deck_id=deck_id,
            front_text=front_text.strip(),
            back_text=back_text.strip(),
            hint=hint.strip() if hint and hint.strip() else None,
            order_index=next_order,
        )
        self._cards[card.card_id] = card
        self._states.setdefault(card.card_id, {})
        self._save()
        return card

    def remove_card(self, card_id: str) -> bool:
        """Delete a card and every learner's state for it."""
        if card_id not in self._cards:
            return False
        del self._cards[card_id]
        self._states.pop(card_id, None)
        self._save()
        return True

    def get_card(self, card_id: str) -> Optional[Card]:
        return self._cards.get(card_id)

    def cards_for_deck(self, deck_id: str) -> List[Card]:
        """Cards in a deck, in stored deck order."""
        cards = [c for c in self._cards.values() if c.deck_id == deck_id]
        cards.sort(key=lambda c: c.order_index)
        return cards

    def decks(self) -> Dict[str, int]:
        """deck_id -> card count."""
        counts: Dict[str, int] = {}
        for card in self._cards.values():
            counts[card.deck_id] = counts.get(card.deck_id, 0) + 1
        return dict(sorted(counts.items()))

    def count(self) -> int:
        return len(self._cards)

    # ----------------------------
    # Review state
    # ----------------------------
    def get_state(self, card_id: str, learner_id: str) -> Optional[ReviewState]:
        return self._states.get(card_id, {}).get(learner_id)

    def load_cards_and_states(
        self, deck_id: str, learner_id: str,
    ) -> List[Tuple[Card, Optional[ReviewState]]]:
        """Deck cards in order, each paired with the learner's state (None if never reviewed)."""
        return [
            (card, self.get_state(card.card_id, learner_id))
            for card in self.cards_for_deck(deck_id)
        ]

    def save_state(self, card_id: str, learner_id: str, state: ReviewState) -> bool:
        """Store a learner's new state for a card."""
        if card_id not in self._cards:
            raise KeyError(f"Card not found: {card_id}")
        self._states.setdefault(card_id, {})[learner_id] = state
        self._save()
        logger.debug("Saved state for card %s / %s: interval=%sd",
                     card_id, learner_id, state.interval_days)
        return True
