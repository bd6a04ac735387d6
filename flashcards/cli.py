"""
Flashcard study CLI.

Usage:
    python -m flashcards.cli --db study_decks.jsonl decks
    python -m flashcards.cli --db study_decks.jsonl add-card --deck bio --front "Q" --back "A" [--hint H]
    python -m flashcards.cli --db study_decks.jsonl cards --deck bio
    python -m flashcards.cli --db study_decks.jsonl due [--deck bio]
    python -m flashcards.cli --db study_decks.jsonl study --deck bio [--all]
    python -m flashcards.cli --db study_decks.jsonl show <card_id>
"""

import argparse
import logging
import os
import sys

from flashcards.due import count_due, is_due
from flashcards.models import format_timestamp
from flashcards.scheduler import preview_intervals
from flashcards.session import StudySession, run_study_session
from flashcards.storage import DeckStore


def cmd_decks(args):
    """List decks with card and due counts."""
    store = DeckStore(args.db)
    decks = store.decks()
    if not decks:
        print("No decks yet. Add a card with 'add-card'.")
        return
    print(f"\n{len(decks)} deck(s):\n")
    for deck_id, total in decks.items():
        states = [s for _, s in store.load_cards_and_states(deck_id, args.learner)]
        print(f"  {deck_id}: {total} card(s), {count_due(states)} due")


def cmd_add_card(args):
    """Append a card to a deck."""
    store = DeckStore(args.db)
    try:
        card = store.add_card(args.deck, args.front, args.back, hint=args.hint)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Added card {card.card_id} to '{card.deck_id}' at position {card.order_index}")


def cmd_cards(args):
    """List a deck's cards in study order."""
    store = DeckStore(args.db)
    pairs = store.load_cards_and_states(args.deck, args.learner)
    if not pairs:
        print(f"Deck '{args.deck}' has no cards.")
        return
    for i, (card, state) in enumerate(pairs, 1):
        flag = 'due' if is_due(state) else 'later'
        print(f"  {i}. [{flag}] {card.front_text[:70]}  ({card.card_id})")


def cmd_due(args):
    """Show how many cards are due, overall or for one deck."""
    store = DeckStore(args.db)
    deck_ids = [args.deck] if args.deck else list(store.decks())
    total = 0
    for deck_id in deck_ids:
        states = [s for _, s in store.load_cards_and_states(deck_id, args.learner)]
        due = count_due(states)
        total += due
        print(f"  {deck_id}: {due} due")
    print(f"\n{total} card(s) due for review.")


def cmd_study(args):
    """Run an interactive study pass over a deck."""
    store = DeckStore(args.db)
    session = StudySession(store, due_only=not args.all)
    session.open(args.deck, args.learner)
    if session.is_complete:
        print("No cards due in this deck. Come back later!")
        return
    run_study_session(session, input_fn=input, output_fn=print)


def cmd_show(args):
    """Show a card and the learner's scheduling state."""
    store = DeckStore(args.db)
    card = store.get_card(args.card_id)
    if card is None:
        print(f"Card not found: {args.card_id}")
        sys.exit(1)
    state = store.get_state(card.card_id, args.learner)
    print(f"\n  Card {card.card_id} (deck '{card.deck_id}', position {card.order_index})")
    print(f"    Front:      {card.front_text}")
    print(f"    Back:       {card.back_text}")
    if card.hint:
        print(f"    Hint:       {card.hint}")
    if state is None:
        print("    Reviewed:   never")
    else:
        print(f"    Ease:       {state.ease_factor:.2f}")
        print(f"    Interval:   {state.interval_days}d")
        print(f"    Reps:       {state.repetitions}")
        print(f"    Next:       {format_timestamp(state.next_review_at)}")
    preview = preview_intervals(state)
    print("    If rated:   " + ', '.join(f"{k} {v}d" for k, v in preview.items()))


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Spaced-repetition flashcard study (SM-2)",
    )
    parser.add_argument(
        '--db', default=os.environ.get('STUDY_DB_PATH', 'study_decks.jsonl'),
        help="Path to deck storage JSONL file (default: $STUDY_DB_PATH or study_decks.jsonl)",
    )
    parser.add_argument(
        '--learner', default='local',
        help="Learner whose review state is used (default: local)",
    )
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('decks', help='List decks')

    add_parser = subparsers.add_parser('add-card', help='Add a card to a deck')
    add_parser.add_argument('--deck', required=True, help='Deck ID')
    add_parser.add_argument('--front', required=True, help='Front (question) text')
    add_parser.add_argument('--back', required=True, help='Back (answer) text')
    add_parser.add_argument('--hint', default=None, help='Optional hint')

    cards_parser = subparsers.add_parser('cards', help='List cards in a deck')
    cards_parser.add_argument('--deck', required=True, help='Deck ID')

    due_parser = subparsers.add_parser('due', help='Count cards due for review')
    due_parser.add_argument('--deck', default=None, help='Limit to one deck')

    study_parser = subparsers.add_parser('study', help='Run interactive study session')
    study_parser.add_argument('--deck', required=True, help='Deck ID')
    study_parser.add_argument('--all', action='store_true',
                              help='Walk every card in the deck, not only due ones')

    show_parser = subparsers.add_parser('show', help='Show card details')
    show_parser.add_argument('card_id', help='Card ID to display')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == 'decks':
        cmd_decks(args)
    elif args.command == 'add-card':
        cmd_add_card(args)
    elif args.command == 'cards':
        cmd_cards(args)
    elif args.command == 'due':
        cmd_due(args)
    elif args.command == 'study':
        cmd_study(args)
    elif args.command == 'show':
        cmd_show(args)
    else:
        parser.print_help()


if __name__ == '__main__':
    main()
