"""Tests for importance scoring and decay."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from content_intelligence.intelligence.importance import (
    BASE_IMPORTANCE,
    DECAY_HALF_LIFE_HOURS,
    MAX_IMPORTANCE_SCORE,
    MAX_VELOCITY_BONUS,
    RECENCY_SIGNAL_HOURS,
    ImportanceEngine,
    calculate_importance,
    decayed_importance,
    recency_signal,
    resubmission_multiplier,
    velocity_bonus,
)
from content_intelligence.models import ContentItem, Submission

T0 = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


def submissions_at(*hours: float):
    return [Submission(timestamp=T0 + timedelta(hours=h)) for h in hours]


def new_item() -> ContentItem:
    return ContentItem(text="dentist tuesday", fingerprint="fp", first_seen=T0, last_submitted=T0)


def test_resubmission_multiplier_values():
    assert resubmission_multiplier(1) == pytest.approx(1.0)
    assert resubmission_multiplier(2) == pytest.approx(2.0)
    assert resubmission_multiplier(3) == pytest.approx(3.2)
    assert resubmission_multiplier(4) == pytest.approx(4.64)


def test_single_submission_is_baseline():
    assert calculate_importance(submissions_at(0)) == pytest.approx(BASE_IMPORTANCE)
    assert calculate_importance([]) == BASE_IMPORTANCE


def test_four_submissions_within_a_day():
    """Test the reference case: 4 quick submissions score 8.22."""
    assert calculate_importance(submissions_at(0, 1, 2, 3)) == pytest.approx(8.22, abs=0.01)


def test_order_of_history_does_not_matter():
    assert calculate_importance(submissions_at(3, 0, 2, 1)) == pytest.approx(
        calculate_importance(submissions_at(0, 1, 2, 3))
    )


def test_slow_resubmissions_get_no_boost():
    """Test that resubmissions more than a day apart only compound."""
    assert calculate_importance(submissions_at(0, 48)) == pytest.approx(2.0)
    assert calculate_importance(submissions_at(0, 48, 96)) == pytest.approx(3.2)


def test_score_is_capped():
    assert calculate_importance(submissions_at(*range(12))) == MAX_IMPORTANCE_SCORE


def test_velocity_bonus_is_capped():
    assert velocity_bonus(submissions_at(*range(20))) == MAX_VELOCITY_BONUS
    assert velocity_bonus(submissions_at(0)) == 0.0


def test_engine_reproduces_reference_case():
    """Test that recording submissions through the engine matches the reference."""
    engine = ImportanceEngine()
    item = engine.initialize(new_item(), Submission(timestamp=T0))
    assert item.importance_score == pytest.approx(1.0)

    for hours in (1, 2, 3):
        item = engine.record_submission(item, Submission(timestamp=T0 + timedelta(hours=hours)))

    assert item.submission_count == 4
    assert item.importance_score == pytest.approx(8.22, abs=0.01)
    assert item.last_submitted == T0 + timedelta(hours=3)
    assert item.first_seen == T0
    assert item.urgency.level == "high"
    assert item.urgency_score == pytest.approx(1.0)
    assert "critical" in item.tags
    assert "trending" in item.tags


def test_stored_importance_never_decreases():
    """Test monotonicity even when a late resubmission loses the recency boost."""
    engine = ImportanceEngine()
    item = engine.initialize(new_item(), Submission(timestamp=T0))

    scores = [item.importance_score]
    for hours in (1, 48, 49, 200, 400, 401, 402):
        item = engine.record_submission(item, Submission(timestamp=T0 + timedelta(hours=hours)))
        scores.append(item.importance_score)

    assert scores == sorted(scores)
    assert scores[-1] > scores[0]


def test_record_submission_returns_copy():
    engine = ImportanceEngine()
    item = engine.initialize(new_item(), Submission(timestamp=T0))

    updated = engine.record_submission(item, Submission(timestamp=T0 + timedelta(hours=1)))

    assert item.submission_count == 1
    assert updated.submission_count == 2
    assert updated.id == item.id


def test_urgency_hint_raises_urgency_score():
    engine = ImportanceEngine()
    item = new_item().model_copy(update={"urgency_hint": 0.9})

    item = engine.initialize(item, Submission(timestamp=T0))

    assert item.urgency_score == pytest.approx(0.9)


def test_decay_halves_after_half_life():
    decayed = decayed_importance(8.0, T0, T0 + timedelta(hours=DECAY_HALF_LIFE_HOURS))
    assert decayed == pytest.approx(4.0)


def test_decay_is_monotonic_and_positive():
    values = [decayed_importance(5.0, T0, T0 + timedelta(hours=h)) for h in (0, 1, 24, 200, 2000)]
    assert values[0] == pytest.approx(5.0)
    assert values == sorted(values, reverse=True)
    assert all(value > 0 for value in values)


def test_decay_ignores_future_submissions():
    assert decayed_importance(5.0, T0 + timedelta(hours=5), T0) == pytest.approx(5.0)


def test_recency_signal():
    assert recency_signal(T0, T0) == pytest.approx(1.0)
    assert recency_signal(T0, T0 + timedelta(hours=RECENCY_SIGNAL_HOURS)) == pytest.approx(
        math.exp(-1)
    )


def test_current_importance_uses_engine_half_life():
    engine = ImportanceEngine(decay_half_life_hours=24)
    item = new_item().model_copy(update={"importance_score": 6.0})

    assert engine.current_importance(item, T0 + timedelta(hours=24)) == pytest.approx(3.0)
