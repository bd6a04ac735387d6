"""Study session controller and an interactive runner with injectable IO."""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from flashcards.due import select_due
from flashcards.models import Card, ReviewResult, ReviewState, format_timestamp
from flashcards.quality import Rating, rating_options
from flashcards.scheduler import preview_intervals, review

logger = logging.getLogger("tidepool.study")


class ReviewStore(Protocol):
    """Persistence collaborator the session loads from and writes back to."""

    def load_cards_and_states(
        self, deck_id: str, learner_id: str,
    ) -> Sequence[Tuple[Card, Optional[ReviewState]]]:
        ...

    def save_state(self, card_id: str, learner_id: str, state: ReviewState) -> bool:
        ...


class SessionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ACTIVE = "active"
    COMPLETE = "complete"


class SessionStateError(RuntimeError):
    """Raised when a session operation is called in the wrong state."""


class StudySession:
    """
    One study pass over a deck.

    Cards are walked in deck order, each receiving exactly one rating. The
    session is in-memory only; updated states go back to the store one card
    at a time. A failed write is logged and the pass continues: the card
    keeps its stored schedule and shows up as due again next time.
    """

    def __init__(
        self,
        store: ReviewStore,
        due_only: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.due_only = due_only
        self._clock = clock
        self.status = SessionStatus.IDLE
        self.deck_id: Optional[str] = None
        self.learner_id: Optional[str] = None
        self._queue: List[Tuple[Card, Optional[ReviewState]]] = []
        self.position = 0
        self._reset_counters()

    def _reset_counters(self) -> None:
        self.reviewed = 0
        self.passed = 0
        self.failed = 0
        self.save_failures = 0

    def _now(self) -> Optional[datetime]:
        return self._clock() if self._clock is not None else None

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def open(self, deck_id: str, learner_id: str) -> 'StudySession':
        """Load the deck and fix the review order. IDLE -> LOADING -> ACTIVE."""
        if self.status != SessionStatus.IDLE:
            raise SessionStateError(f"Cannot open a session that is {self.status.value}")
        self.status = SessionStatus.LOADING
        self.deck_id = deck_id
        self.learner_id = learner_id
        try:
            pairs = list(self.store.load_cards_and_states(deck_id, learner_id))
        except Exception:
            self.status = SessionStatus.IDLE
            raise

        if self.due_only:
            pairs = select_due(pairs, self._now())
        self._queue = pairs
        self.position = 0
        self._reset_counters()
        self.status = SessionStatus.ACTIVE if self._queue else SessionStatus.COMPLETE
        logger.debug("Opened deck %s for %s: %d card(s) queued",
                     deck_id, learner_id, len(self._queue))
        return self

    def rate(self, rating) -> ReviewResult:
        """Score the current card, write it back and advance."""
        if self.status != SessionStatus.ACTIVE:
            raise SessionStateError(f"Cannot rate a card while {self.status.value}")

        card, state = self._queue[self.position]
        result = review(rating, state, now=self._now())

        self.reviewed += 1
        if result.passed:
            self.passed += 1
        else:
            self.failed += 1

        if self._write_back(card, result.state):
            self._queue[self.position] = (card, result.state)

        self.position += 1
        if self.position >= len(self._queue):
            self.status = SessionStatus.COMPLETE
        return result

    def _write_back(self, card: Card, state: ReviewState) -> bool:
        try:
            ok = self.store.save_state(card.card_id, self.learner_id, state)
        except Exception:
            logger.exception("Failed to save review state for card %s", card.card_id)
            ok = False
        else:
            if ok is False:
                logger.warning("Store rejected review state for card %s", card.card_id)
        if ok is False:
            self.save_failures += 1
            return False
        return True

    def restart(self) -> None:
        """Walk the same cards again from the top with fresh counters."""
        if self.status not in (SessionStatus.ACTIVE, SessionStatus.COMPLETE):
            raise SessionStateError(f"Cannot restart a session that is {self.status.value}")
        self.position = 0
        self._reset_counters()
        self.status = SessionStatus.ACTIVE if self._queue else SessionStatus.COMPLETE

    # ----------------------------
    # Views
    # ----------------------------
    @property
    def is_complete(self) -> bool:
        return self.status == SessionStatus.COMPLETE

    @property
    def total(self) -> int:
        return len(self._queue)

    @property
    def cards(self) -> List[Card]:
        return [card for card, _ in self._queue]

    @property
    def current_card(self) -> Optional[Card]:
        if self.status != SessionStatus.ACTIVE:
            return None
        return self._queue[self.position][0]

    @property
    def current_state(self) -> Optional[ReviewState]:
        if self.status != SessionStatus.ACTIVE:
            return None
        return self._queue[self.position][1]

    @property
    def progress(self) -> float:
        if not self._queue:
            return 1.0
        return min(self.position, self.total) / self.total

    def summary(self) -> Dict:
        return {
            'deck_id': self.deck_id,
            'status': self.status.value,
            'total': self.total,
            'position': self.position,
            'reviewed': self.reviewed,
            'passed': self.passed,
            'failed': self.failed,
            'save_failures': self.save_failures,
        }


def run_study_session(
    session: StudySession,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> Dict:
    """
    Drive an opened StudySession from a terminal.

    Flow per card:
        1. Show the front ('h' shows the hint, if any)
        2. Reveal the back
        3. Read a rating 0-3; anything else re-prompts, 'q' quits
        4. Show the next review date

    Returns the session summary dict.
    """
    options = '  '.join(f"{o['value']}={o['label']}" for o in rating_options())

    output_fn(f"\n{'='*60}")
    output_fn(f"STUDY SESSION -- {session.total} card(s)")
    output_fn(f"{'='*60}")
    output_fn("Type 'q' to quit early.\n")

    quit_early = False
    while session.status == SessionStatus.ACTIVE:
        card = session.current_card
        preview = preview_intervals(session.current_state)
        output_fn(f"\n--- Card {session.position + 1}/{session.total} ---")
        output_fn(f"  {card.front_text}")

        try:
            reply = input_fn("\nPress Enter to reveal ('h' for hint): ")
            if reply.strip().lower() == 'h':
                output_fn(f"  Hint: {card.hint}" if card.hint else "  (no hint)")
                reply = input_fn("\nPress Enter to reveal: ")
            if reply.strip().lower() == 'q':
                quit_early = True
                break

            output_fn(f"\n  Answer: {card.back_text}")
            output_fn("  " + '  '.join(f"{label}: {days}d" for label, days in preview.items()))

            rating = None
            while rating is None:
                raw = input_fn(f"\nRate ({options}): ").strip().lower()
                if raw == 'q':
                    break
                if raw.isdigit() and int(raw) in {r.value for r in Rating}:
                    rating = int(raw)
                else:
                    output_fn("  Please enter 0, 1, 2 or 3.")
        except (EOFError, KeyboardInterrupt):
            output_fn("\nSession ended.")
            quit_early = True
            break

        if rating is None:
            quit_early = True
            break

        result = session.rate(rating)
        output_fn(f"  Next review: {format_timestamp(result.next_review_at)} "
                  f"(interval: {result.state.interval_days}d)")

    summary = session.summary()
    output_fn(f"\n{'='*60}")
    output_fn("Ending session early." if quit_early else "SESSION COMPLETE")
    output_fn(f"  Reviewed: {summary['reviewed']}  Passed: {summary['passed']}  "
              f"Failed: {summary['failed']}")
    if summary['save_failures']:
        output_fn(f"  Not saved: {summary['save_failures']} card(s)")
    output_fn(f"{'='*60}")
    return summary
