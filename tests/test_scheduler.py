"""Tests for flashcards/scheduler.py -- SM-2 spaced repetition."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from flashcards.models import ReviewState
from flashcards.scheduler import (
    MAX_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    new_state,
    preview_intervals,
    review,
    sanitize_state,
    update_ease,
)

NOW = datetime(2026, 1, 1, 9, 30, tzinfo=timezone.utc)


def _state(ease=2.5, interval=0, reps=0):
    return ReviewState(ease_factor=ease, interval_days=interval, repetitions=reps)


# ============================================================================
# New cards
# ============================================================================

def test_new_card_good():
    """First successful review (Good) gives a 1 day interval."""
    result = review(2, new_state())
    assert result.state.interval_days == 1
    assert result.state.repetitions == 1
    assert result.passed


def test_new_card_easy():
    """Easy on a new card still only gets the 1 day probe."""
    result = review(3, new_state())
    assert result.state.interval_days == 1
    assert result.state.repetitions == 1


def test_new_card_again():
    result = review(0, new_state())
    assert result.state.interval_days == 1
    assert result.state.repetitions == 0
    assert not result.passed


def test_none_prior_state_is_new_card():
    assert review(2, None, now=NOW).state == review(2, new_state(), now=NOW).state


def test_second_success_is_three_days():
    first = review(3, new_state())
    second = review(3, first.state)
    assert second.state.interval_days == 3
    assert second.state.repetitions == 2


# ============================================================================
# Ease-driven growth
# ============================================================================

def test_third_success_uses_ease():
    """repetitions >= 2: interval = round(interval * new_ease)."""
    result = review(3, _state(ease=2.5, interval=3, reps=2))
    assert result.state.interval_days > 3
    assert result.state.interval_days == 8  # round(3 * 2.6)
    assert result.state.repetitions == 3


def test_growth_rounds_half_up():
    """4.5 days rounds up to 5."""
    result = review(3, _state(ease=1.4, interval=3, reps=2))
    assert result.state.ease_factor == pytest.approx(1.5)
    assert result.state.interval_days == 5


def test_easy_raises_ease():
    result = review(3, _state(ease=2.5, interval=6, reps=3))
    assert result.state.ease_factor == pytest.approx(2.6)


def test_good_lowers_ease():
    result = review(2, _state(ease=2.5, interval=6, reps=3))
    assert result.state.ease_factor == pytest.approx(2.36)
    assert result.state.interval_days == 14  # round(6 * 2.36)


def test_ease_update_formula():
    assert update_ease(2.5, 5) == pytest.approx(2.6)
    assert update_ease(2.5, 4) == pytest.approx(2.5)
    assert update_ease(2.5, 3) == pytest.approx(2.36)
    assert update_ease(2.5, 2) == pytest.approx(2.18)
    assert update_ease(2.5, 0) == pytest.approx(1.7)


# ============================================================================
# Failures
# ============================================================================

def test_again_resets_mature_card():
    result = review(0, _state(ease=2.5, interval=10, reps=5))
    assert result.state.repetitions == 0
    assert result.state.interval_days == 1


def test_hard_resets_mature_card():
    """Hard maps to confidence 2, which is a failure."""
    result = review(1, _state(ease=2.5, interval=10, reps=5))
    assert result.state.repetitions == 0
    assert result.state.interval_days == 1
    assert result.confidence == 2


def test_failure_still_erodes_ease():
    result = review(0, _state(ease=2.5, interval=10, reps=5))
    assert result.state.ease_factor == pytest.approx(1.7)


# ============================================================================
# Clamping and bounds
# ============================================================================

def test_rating_below_range_behaves_as_again():
    prior = _state(ease=2.2, interval=4, reps=3)
    assert review(-5, prior, now=NOW).state == review(0, prior, now=NOW).state


def test_rating_above_range_behaves_as_easy():
    prior = _state(ease=2.2, interval=4, reps=3)
    assert review(10, prior, now=NOW).state == review(3, prior, now=NOW).state
    assert review(10, new_state()).state.repetitions == 1


def test_ease_never_below_floor():
    state = _state(ease=1.3, interval=1, reps=0)
    for _ in range(25):
        state = review(2, state).state
        assert state.ease_factor >= MIN_EASE_FACTOR


def test_again_at_floor_stays_at_floor():
    result = review(0, _state(ease=1.3, interval=10, reps=3))
    assert result.state.ease_factor == MIN_EASE_FACTOR


def test_interval_capped():
    result = review(3, _state(ease=2.5, interval=300, reps=20))
    assert result.state.interval_days == MAX_INTERVAL_DAYS


def test_invariants_hold_for_all_ratings():
    priors = [
        new_state(),
        _state(ease=1.3, interval=1, reps=1),
        _state(ease=2.5, interval=3, reps=2),
        _state(ease=3.1, interval=200, reps=9),
        _state(ease=2.0, interval=365, reps=40),
    ]
    for prior in priors:
        for rating in range(4):
            state = review(rating, prior).state
            assert state.ease_factor >= MIN_EASE_FACTOR
            assert 1 <= state.interval_days <= MAX_INTERVAL_DAYS
            if rating < 2:
                assert state.repetitions == 0


def test_degenerate_prior_state_is_sanitized():
    """NaN / zero / negative fields never raise."""
    result = review(2, ReviewState(ease_factor=float('nan'), interval_days=-4, repetitions=-1))
    assert result.state.ease_factor == pytest.approx(2.36)
    assert result.state.interval_days == 1
    assert result.state.repetitions == 1

    result = review(3, _state(ease=0.0, interval=0, reps=7))
    assert result.state.ease_factor == MIN_EASE_FACTOR
    assert result.state.interval_days == 1


def test_extreme_finite_values_stay_in_bounds():
    """Huge but representable eases, intervals and ratings are clamped, not raised on."""
    priors = [
        _state(ease=1e308, interval=300, reps=20),
        _state(ease=2.5, interval=10**400, reps=5),
        _state(ease=10**400, interval=10, reps=10**400),
        _state(ease=1e308, interval=1e308, reps=3),
    ]
    for prior in priors:
        for rating in (0, 1, 2, 3, 10**400, -10**400):
            state = review(rating, prior, now=NOW).state
            assert state.ease_factor >= MIN_EASE_FACTOR
            assert 1 <= state.interval_days <= MAX_INTERVAL_DAYS

    result = review(3, _state(ease=1e308, interval=300, reps=20), now=NOW)
    assert result.state.interval_days == MAX_INTERVAL_DAYS
    assert result.next_review_at == NOW + timedelta(days=MAX_INTERVAL_DAYS)


def test_huge_rating_clamps_to_nearest_end():
    assert review(10**400, new_state(), now=NOW).rating == 3
    assert review(-10**400, new_state(), now=NOW).rating == 0


def test_sanitize_caps_interval():
    assert sanitize_state(_state(interval=10**6, reps=4)).interval_days == MAX_INTERVAL_DAYS
    assert sanitize_state(_state(interval=10**400, reps=4)).interval_days == 0


def test_now_at_calendar_limit_does_not_raise():
    result = review(3, _state(ease=2.5, interval=3, reps=2), now=datetime.max)
    assert result.state.interval_days == 8
    assert result.next_review_at.year == 9999


def test_sanitize_keeps_valid_state():
    prior = _state(ease=2.2, interval=4, reps=3)
    assert sanitize_state(prior) == prior


# ============================================================================
# next_review_at
# ============================================================================

def test_next_review_is_now_plus_interval():
    result = review(3, _state(ease=2.5, interval=3, reps=2), now=NOW)
    assert result.next_review_at == NOW + timedelta(days=8)
    assert result.state.next_review_at == result.next_review_at


def test_next_review_in_future_for_every_rating():
    before = datetime.now(timezone.utc)
    for rating in range(4):
        result = review(rating, new_state())
        assert result.next_review_at > before


def test_naive_now_is_treated_as_utc():
    result = review(2, new_state(), now=datetime(2026, 1, 1))
    assert result.next_review_at == datetime(2026, 1, 2, tzinfo=timezone.utc)


def test_preview_intervals():
    assert preview_intervals(None) == {'Again': 1, 'Hard': 1, 'Good': 1, 'Easy': 1}
    preview = preview_intervals(_state(ease=2.5, interval=3, reps=2))
    assert preview['Again'] == 1
    assert preview['Easy'] == 8
